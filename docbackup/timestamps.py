# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Timestamp capability and the native timestamp type of the bundled stores.

Document stores expose their own timestamp values. The codec only relies
on the TimestampLike capability: a to-datetime conversion plus integer
seconds/nanoseconds fields.
"""

from dataclasses import dataclass
from datetime import datetime, UTC
from typing import Protocol, runtime_checkable


@runtime_checkable
class TimestampLike(Protocol):
    """Capability implemented by a store's timestamp values."""

    seconds: int
    nanoseconds: int

    def to_datetime(self) -> datetime:
        """Return the instant as an aware UTC datetime."""
        ...


@dataclass(frozen=True, order=True)
class Timestamp:
    """
    Seconds + nanoseconds since the Unix epoch (UTC).
    """

    seconds: int
    nanoseconds: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.nanoseconds < 1_000_000_000:
            raise ValueError(f"nanoseconds must be in [0, 1e9), got {self.nanoseconds}")

    @classmethod
    def from_datetime(cls, value: datetime) -> "Timestamp":
        """Build a Timestamp from a datetime (naive values are taken as UTC)."""
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        delta = value - datetime(1970, 1, 1, tzinfo=UTC)
        seconds = delta.days * 86400 + delta.seconds
        return cls(seconds=seconds, nanoseconds=delta.microseconds * 1000)

    @classmethod
    def now(cls) -> "Timestamp":
        return cls.from_datetime(datetime.now(UTC))

    def to_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.seconds, UTC).replace(
            microsecond=self.nanoseconds // 1000
        )


def format_iso(value: datetime) -> str:
    """
    Format a datetime as UTC ISO-8601 with millisecond precision.

    Example: 2024-05-01T12:00:00.000Z
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    value = value.astimezone(UTC)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_iso(text: str) -> datetime | None:
    """
    Parse an ISO-8601 string into an aware UTC datetime.

    Returns None when the string cannot be parsed.
    """
    if not text:
        return None
    try:
        value = datetime.fromisoformat(text)
    except ValueError:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
