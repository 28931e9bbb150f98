# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
docbackup Codec - Portable value trees for backup payloads.

Live documents can hold native date and timestamp values that JSON cannot
represent. serialize_value() replaces them with tagged wrappers:

    {"__backupType": "timestamp", "value": "2024-05-01T12:00:00.000Z"}

deserialize_value() turns the wrappers back into the store's native
timestamp type. stable_stringify() is a deterministic encoding used to
compare trees during restore verification.
"""

import json
from collections.abc import Mapping
from datetime import date, datetime, time, UTC
from typing import Any, Callable

import structlog

from docbackup.exceptions import ValidationError
from docbackup.timestamps import Timestamp, TimestampLike, format_iso, parse_iso

logger = structlog.get_logger()

BACKUP_TYPE_KEY = "__backupType"
DATE_TYPE = "date"
TIMESTAMP_TYPE = "timestamp"

UNDEFINED_TOKEN = '"__undefined__"'


class _Undefined:
    """A missing value, kept distinct from None."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False


UNDEFINED = _Undefined()

DatetimeFactory = Callable[[datetime], Any]


def _wrap(kind: str, value: datetime) -> dict:
    return {BACKUP_TYPE_KEY: kind, "value": format_iso(value)}


def serialize_value(value: Any) -> Any:
    """
    Map a live value into a JSON-safe tree.

    Rules, in order:
    - None and UNDEFINED pass through
    - datetime/date become a "date" wrapper
    - TimestampLike values become a "timestamp" wrapper
    - lists and tuples map element-wise
    - mappings map key-wise, preserving every key
    - any other scalar passes through
    """
    if value is None or value is UNDEFINED:
        return value

    if isinstance(value, datetime):
        return _wrap(DATE_TYPE, value)

    if isinstance(value, date):
        return _wrap(DATE_TYPE, datetime.combine(value, time(), tzinfo=UTC))

    if isinstance(value, TimestampLike):
        return _wrap(TIMESTAMP_TYPE, value.to_datetime())

    if isinstance(value, (list, tuple)):
        return [serialize_value(item) for item in value]

    if isinstance(value, Mapping):
        return {key: serialize_value(item) for key, item in value.items()}

    return value


def _is_wrapper(value: Mapping) -> bool:
    return value.get(BACKUP_TYPE_KEY) in (DATE_TYPE, TIMESTAMP_TYPE)


def deserialize_value(
    value: Any,
    from_datetime: DatetimeFactory = Timestamp.from_datetime,
    *,
    strict: bool = False,
) -> Any:
    """
    Inverse of serialize_value().

    Wrappers are parsed into native timestamps via ``from_datetime``. An
    unparsable date string becomes None, or raises ValidationError when
    ``strict`` is set.
    """
    if value is None or value is UNDEFINED:
        return value

    if isinstance(value, list):
        return [deserialize_value(item, from_datetime, strict=strict) for item in value]

    if isinstance(value, Mapping):
        if _is_wrapper(value):
            raw = value.get("value")
            parsed = parse_iso(raw) if isinstance(raw, str) else None
            if parsed is None:
                if strict:
                    raise ValidationError(
                        f"Unparsable {value[BACKUP_TYPE_KEY]} value: {raw!r}",
                        details={"value": raw},
                    )
                logger.warning(
                    "backup_date_unparsable",
                    backup_type=value[BACKUP_TYPE_KEY],
                    value=raw,
                )
                return None
            return from_datetime(parsed)

        return {
            key: deserialize_value(item, from_datetime, strict=strict)
            for key, item in value.items()
        }

    return value


def normalize_tree(value: Any, from_datetime: DatetimeFactory = Timestamp.from_datetime) -> Any:
    """
    Serialize the deserialized form of a tree.

    This is what a store hands back after the tree has been written, so it
    is the reference for restore verification.
    """
    return serialize_value(deserialize_value(value, from_datetime))


def _stringify_number(value: int | float) -> str:
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def stable_stringify(value: Any) -> str:
    """
    Deterministic text encoding used for equality checks.

    Object keys are sorted, array order is kept and strings use JSON
    escaping. UNDEFINED encodes to a token distinct from null.
    """
    if value is None:
        return "null"

    if value is UNDEFINED:
        return UNDEFINED_TOKEN

    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)

    if isinstance(value, bool):
        return "true" if value else "false"

    if isinstance(value, (int, float)):
        return _stringify_number(value)

    if isinstance(value, (list, tuple)):
        return "[" + ",".join(stable_stringify(item) for item in value) + "]"

    if isinstance(value, Mapping):
        pairs = [
            f"{json.dumps(str(key), ensure_ascii=False)}:{stable_stringify(value[key])}"
            for key in sorted(value.keys(), key=str)
        ]
        return "{" + ",".join(pairs) + "}"

    return json.dumps(str(value), ensure_ascii=False)
