# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Read-through cache for document store queries.

Entries expire after a TTL and the cache holds at most MAX_ENTRIES values.
Concurrent loads of the same key share one in-flight task. The cache
clears itself when a CacheInvalidated event is published on the bus it is
attached to.
"""

import asyncio
import json
import time
from collections import OrderedDict
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Tuple

import structlog

from docbackup.events import CacheInvalidated, EventBus

logger = structlog.get_logger()

DEFAULT_TTL_SECONDS = 60.0
MAX_ENTRIES = 400


def _normalize_for_key(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_normalize_for_key(item) for item in value]
    if isinstance(value, dict):
        return {
            key: _normalize_for_key(value[key])
            for key in sorted(value)
            if value[key] is not None
        }
    return value


def make_cache_key(scope: str, params: Any = None) -> str:
    """Build a cache key; parameter dicts are key-order independent."""
    if params is None:
        return scope
    return f"{scope}:{json.dumps(_normalize_for_key(params), separators=(',', ':'))}"


class ReadCache:
    """TTL cache with in-flight de-duplication."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int = MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._values: "OrderedDict[str, Tuple[Any, float]]" = OrderedDict()
        self._in_flight: Dict[str, asyncio.Future] = {}

    def __len__(self) -> int:
        return len(self._values)

    def _expiry(self, ttl_seconds: float | None) -> float:
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        return self._clock() + max(ttl, 0.001)

    def _trim(self) -> None:
        if len(self._values) <= self.max_entries:
            return

        now = self._clock()
        for key in [k for k, (_, expires_at) in self._values.items() if expires_at <= now]:
            del self._values[key]
            if len(self._values) <= self.max_entries:
                return

        while len(self._values) > self.max_entries:
            self._values.popitem(last=False)

    def get(self, key: str) -> Any:
        """Return a fresh cached value or None."""
        entry = self._values.get(key)
        if entry and entry[1] > self._clock():
            return entry[0]
        return None

    def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        self._values[key] = (value, self._expiry(ttl_seconds))
        self._trim()

    async def get_or_load(
        self,
        key: str,
        loader: Callable[[], Awaitable[Any]],
        ttl_seconds: float | None = None,
    ) -> Any:
        """
        Return the cached value, loading it once if missing or expired.
        """
        entry = self._values.get(key)
        if entry and entry[1] > self._clock():
            return entry[0]

        in_flight = self._in_flight.get(key)
        if in_flight is not None:
            return await asyncio.shield(in_flight)

        future = asyncio.ensure_future(loader())
        self._in_flight[key] = future
        try:
            value = await future
        finally:
            # Invalidated while loading: hand the value back but do not cache it
            still_current = self._in_flight.get(key) is future
            if still_current:
                del self._in_flight[key]

        if still_current:
            self.set(key, value, ttl_seconds)
        return value

    def invalidate_key(self, key: str) -> None:
        self._values.pop(key, None)
        self._in_flight.pop(key, None)

    def invalidate_prefix(self, prefix: str) -> None:
        for key in [k for k in self._values if k.startswith(prefix)]:
            del self._values[key]
        for key in [k for k in self._in_flight if k.startswith(prefix)]:
            del self._in_flight[key]

    def clear(self) -> None:
        self._values.clear()
        self._in_flight.clear()

    def attach(self, bus: EventBus) -> Callable[[], None]:
        """Clear this cache whenever CacheInvalidated is published on ``bus``."""

        def on_event(event: Any) -> None:
            if isinstance(event, CacheInvalidated):
                logger.info("read_cache_cleared", reason=event.reason, entries=len(self))
                self.clear()

        return bus.subscribe(on_event)
