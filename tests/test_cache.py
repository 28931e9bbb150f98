# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Cache Tests - Read cache and cache invalidation events.
"""

import asyncio
from datetime import datetime, UTC

import pytest

from docbackup.cache import ReadCache, make_cache_key
from docbackup.events import CacheInvalidated, EventBus


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


# ============================================================================
# Cache keys
# ============================================================================

def test_cache_key_ignores_parameter_order():
    assert make_cache_key("obras", {"a": 1, "b": 2}) == make_cache_key("obras", {"b": 2, "a": 1})


def test_cache_key_drops_none_parameters():
    assert make_cache_key("obras", {"a": 1, "b": None}) == make_cache_key("obras", {"a": 1})


def test_cache_key_formats_datetimes():
    key = make_cache_key("contasPagar", {"desde": datetime(2024, 5, 1, tzinfo=UTC)})

    assert "2024-05-01T00:00:00+00:00" in key
    assert make_cache_key("obras") == "obras"


# ============================================================================
# ReadCache
# ============================================================================

def test_entries_expire_after_ttl():
    clock = FakeClock()
    cache = ReadCache(ttl_seconds=60, clock=clock)

    cache.set("k", "v")
    clock.now = 59
    assert cache.get("k") == "v"

    clock.now = 61
    assert cache.get("k") is None


def test_oldest_entries_are_trimmed():
    cache = ReadCache(max_entries=2, clock=FakeClock())

    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("c", 3)

    assert len(cache) == 2
    assert cache.get("a") is None
    assert cache.get("c") == 3


def test_expired_entries_are_trimmed_first():
    clock = FakeClock()
    cache = ReadCache(max_entries=2, clock=clock)

    cache.set("a", 1, ttl_seconds=100)
    cache.set("b", 2, ttl_seconds=1)
    clock.now = 5
    cache.set("c", 3)

    assert cache.get("a") == 1
    assert cache.get("c") == 3


def test_invalidate_prefix():
    cache = ReadCache(clock=FakeClock())
    cache.set("obras:1", 1)
    cache.set("obras:2", 2)
    cache.set("users:1", 3)

    cache.invalidate_prefix("obras:")

    assert cache.get("obras:1") is None
    assert cache.get("users:1") == 3

    cache.invalidate_key("users:1")
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_concurrent_loads_share_one_call():
    cache = ReadCache()
    calls = []

    async def loader():
        calls.append(1)
        await asyncio.sleep(0)
        return ["o1"]

    first, second = await asyncio.gather(
        cache.get_or_load("obras", loader),
        cache.get_or_load("obras", loader),
    )

    assert first == second == ["o1"]
    assert len(calls) == 1
    assert await cache.get_or_load("obras", loader) == ["o1"]
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_value_loaded_during_invalidation_is_not_cached():
    cache = ReadCache()

    async def loader():
        cache.clear()
        return "stale"

    assert await cache.get_or_load("obras", loader) == "stale"
    assert cache.get("obras") is None


# ============================================================================
# EventBus
# ============================================================================

def test_attached_cache_clears_on_invalidation():
    bus = EventBus()
    cache = ReadCache(clock=FakeClock())
    cache.attach(bus)
    cache.set("obras", ["o1"])

    bus.publish("unrelated event")
    assert cache.get("obras") == ["o1"]

    bus.publish(CacheInvalidated(reason="restore"))
    assert len(cache) == 0


def test_failing_handler_does_not_stop_others():
    bus = EventBus()
    received = []

    def broken(event):
        raise RuntimeError("boom")

    bus.subscribe(broken)
    bus.subscribe(received.append)

    bus.publish(CacheInvalidated(reason="restore"))

    assert len(received) == 1


def test_unsubscribe():
    bus = EventBus()
    received = []

    unsubscribe = bus.subscribe(received.append)
    assert bus.subscriber_count == 1

    unsubscribe()
    unsubscribe()
    bus.publish(CacheInvalidated(reason="restore"))

    assert received == []
    assert bus.subscriber_count == 0
