# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Process-wide events published by the restore engine.

A successful restore replaces whole collections, so every cached read in
the application is stale afterwards. The engine publishes CacheInvalidated
and caching layers subscribe to it.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, List, Tuple

import structlog

logger = structlog.get_logger()


@dataclass(frozen=True)
class CacheInvalidated:
    """Every cached read must be dropped."""

    reason: str
    collections: Tuple[str, ...] = field(default_factory=tuple)


EventHandler = Callable[[Any], None]


class EventBus:
    """
    Synchronous publish/subscribe.

    Handlers run in subscription order. A failing handler is logged and
    does not prevent the others from running.
    """

    def __init__(self) -> None:
        self._handlers: List[EventHandler] = []

    def subscribe(self, handler: EventHandler) -> Callable[[], None]:
        """Register a handler and return a function that removes it."""
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def publish(self, event: Any) -> None:
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception as e:
                logger.error(
                    "event_handler_failed",
                    event_type=type(event).__name__,
                    error=str(e),
                )

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)


# Default bus used by restore_database_backup()
cache_events = EventBus()
