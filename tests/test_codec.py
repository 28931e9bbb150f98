# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Codec Tests - Portable value trees and stable encoding.
"""

from datetime import date, datetime, timedelta, timezone, UTC

import pytest

from docbackup.codec import (
    BACKUP_TYPE_KEY,
    UNDEFINED,
    deserialize_value,
    normalize_tree,
    serialize_value,
    stable_stringify,
)
from docbackup.exceptions import ValidationError
from docbackup.timestamps import Timestamp, TimestampLike, format_iso, parse_iso


# ============================================================================
# serialize_value
# ============================================================================

def test_datetime_becomes_date_wrapper():
    value = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)

    assert serialize_value(value) == {
        BACKUP_TYPE_KEY: "date",
        "value": "2024-05-01T12:00:00.000Z",
    }


def test_plain_date_is_midnight_utc():
    assert serialize_value(date(2024, 5, 1)) == {
        BACKUP_TYPE_KEY: "date",
        "value": "2024-05-01T00:00:00.000Z",
    }


def test_timestamp_becomes_timestamp_wrapper():
    value = Timestamp(seconds=1714564800, nanoseconds=123_000_000)

    assert serialize_value(value) == {
        BACKUP_TYPE_KEY: "timestamp",
        "value": "2024-05-01T12:00:00.123Z",
    }


def test_any_timestamp_like_value_is_wrapped():
    """Stores bring their own timestamp type; only the capability matters."""

    class StoreTimestamp:
        seconds = 0
        nanoseconds = 0

        def to_datetime(self) -> datetime:
            return datetime(1970, 1, 1, tzinfo=UTC)

    value = StoreTimestamp()
    assert isinstance(value, TimestampLike)
    assert serialize_value(value)[BACKUP_TYPE_KEY] == "timestamp"


def test_nested_structures_keep_every_key():
    value = {
        "nome": "Obra Centro",
        "etapas": [{"inicio": datetime(2024, 1, 2, tzinfo=UTC)}, None, 3],
        "vazio": None,
        "ausente": UNDEFINED,
    }

    result = serialize_value(value)

    assert set(result) == {"nome", "etapas", "vazio", "ausente"}
    assert result["etapas"][0]["inicio"][BACKUP_TYPE_KEY] == "date"
    assert result["etapas"][1] is None
    assert result["etapas"][2] == 3
    assert result["vazio"] is None
    assert result["ausente"] is UNDEFINED


def test_tuples_serialize_as_lists():
    assert serialize_value((1, "a")) == [1, "a"]


# ============================================================================
# deserialize_value
# ============================================================================

def test_wrappers_become_native_timestamps():
    tree = {
        "criadoEm": {BACKUP_TYPE_KEY: "timestamp", "value": "2024-05-01T12:00:00.123Z"},
        "vencimento": {BACKUP_TYPE_KEY: "date", "value": "2024-05-01T00:00:00.000Z"},
    }

    result = deserialize_value(tree)

    assert result["criadoEm"] == Timestamp(seconds=1714564800, nanoseconds=123_000_000)
    assert result["vencimento"] == Timestamp(seconds=1714521600)


def test_deserialize_uses_store_factory():
    tree = {BACKUP_TYPE_KEY: "date", "value": "2024-05-01T00:00:00.000Z"}

    result = deserialize_value(tree, lambda dt: ("native", dt.year))

    assert result == ("native", 2024)


def test_unparsable_date_becomes_none():
    tree = {"data": {BACKUP_TYPE_KEY: "date", "value": "not a date"}}

    assert deserialize_value(tree) == {"data": None}


def test_unparsable_date_raises_when_strict():
    tree = {BACKUP_TYPE_KEY: "timestamp", "value": "31/12/2024"}

    with pytest.raises(ValidationError):
        deserialize_value(tree, strict=True)


def test_unknown_backup_type_is_left_as_object():
    tree = {BACKUP_TYPE_KEY: "geopoint", "value": [1, 2]}

    assert deserialize_value(tree) == tree


def test_round_trip_preserves_instants():
    original = {
        "a": Timestamp(seconds=1714564800, nanoseconds=5_000_000),
        "b": [Timestamp(seconds=0)],
        "c": "texto",
    }

    assert deserialize_value(serialize_value(original)) == original


# ============================================================================
# normalize_tree / stable_stringify
# ============================================================================

def test_normalize_tree_maps_dates_to_timestamps():
    tree = {"d": {BACKUP_TYPE_KEY: "date", "value": "2024-05-01T12:00:00Z"}}

    assert normalize_tree(tree) == {
        "d": {BACKUP_TYPE_KEY: "timestamp", "value": "2024-05-01T12:00:00.000Z"}
    }


def test_stable_stringify_sorts_keys():
    assert stable_stringify({"b": 1, "a": [True, None]}) == '{"a":[true,null],"b":1}'
    assert stable_stringify({"x": {"b": 2, "a": 1}}) == stable_stringify({"x": {"a": 1, "b": 2}})


def test_stable_stringify_keeps_array_order():
    assert stable_stringify([1, 2]) != stable_stringify([2, 1])


def test_stable_stringify_distinguishes_undefined_from_null():
    assert stable_stringify({"a": None}) != stable_stringify({"a": UNDEFINED})


def test_stable_stringify_integral_floats_match_ints():
    assert stable_stringify({"valor": 10.0}) == stable_stringify({"valor": 10})
    assert stable_stringify(0.5) == "0.5"


def test_stable_stringify_booleans_are_not_numbers():
    assert stable_stringify(True) == "true"
    assert stable_stringify(1) == "1"


def test_stable_stringify_keeps_unicode():
    assert stable_stringify("medição") == '"medição"'


# ============================================================================
# Timestamps
# ============================================================================

def test_format_iso_treats_naive_as_utc():
    assert format_iso(datetime(2024, 5, 1, 12, 0, 0, 987654)) == "2024-05-01T12:00:00.987Z"


def test_parse_iso_converts_offsets_to_utc():
    parsed = parse_iso("2024-05-01T09:00:00-03:00")

    assert parsed == datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def test_parse_iso_rejects_garbage():
    assert parse_iso("") is None
    assert parse_iso("ontem") is None


def test_timestamp_rejects_out_of_range_nanoseconds():
    with pytest.raises(ValueError):
        Timestamp(seconds=1, nanoseconds=1_000_000_000)


def test_timestamp_from_aware_datetime():
    value = datetime(2024, 5, 1, 9, 0, tzinfo=timezone(timedelta(hours=-3)))

    ts = Timestamp.from_datetime(value)

    assert ts.seconds == 1714564800
    assert ts.to_datetime() == datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
