"""
Tests for the in-memory hot tier: LRU eviction and per-entry TTL.
"""
from datetime import timedelta

import pytest

from weekly_recap.cache import CacheKey, CacheRecord, HotTier


def _record(clock, value):
    return CacheRecord(payload={"value": value}, cached_at=clock())


def test_set_and_get(hot, clock):
    key = CacheKey.week(1)
    hot.set(key, _record(clock, 1), timedelta(hours=1))
    assert hot.has(key)
    assert hot.get(key).payload == {"value": 1}
    assert hot.size == 1


def test_missing_key(hot):
    assert hot.get(CacheKey.week(7)) is None
    assert not hot.has(CacheKey.week(7))


def test_capacity_evicts_least_recently_used(hot, clock):
    """
    Insert A..J into a capacity-10 tier, touch A, then insert K.
    A was written first but its later access protects it; B is evicted.
    """
    keys = [CacheKey.week(n) for n in range(10)]   # A..J
    for n, key in enumerate(keys):
        hot.set(key, _record(clock, n), timedelta(hours=1))

    assert hot.get(keys[0]) is not None            # touch A
    hot.set(CacheKey.week(10), _record(clock, 10), timedelta(hours=1))  # K

    assert hot.size == 10
    assert hot.has(keys[0])
    assert not hot.has(keys[1])
    assert hot.has(CacheKey.week(10))


def test_write_refreshes_recency(hot, clock):
    keys = [CacheKey.week(n) for n in range(10)]
    for n, key in enumerate(keys):
        hot.set(key, _record(clock, n), None)

    hot.set(keys[0], _record(clock, "updated"), None)
    hot.set(CacheKey.week(99), _record(clock, 99), None)

    assert hot.get(keys[0]).payload == {"value": "updated"}
    assert not hot.has(keys[1])


def test_has_does_not_refresh_recency(clock):
    tier = HotTier(capacity=2, clock=clock)
    a, b, c = CacheKey.week(0), CacheKey.week(1), CacheKey.week(2)
    tier.set(a, _record(clock, "a"))
    tier.set(b, _record(clock, "b"))
    assert tier.has(a)
    tier.set(c, _record(clock, "c"))
    assert not tier.has(a)
    assert tier.has(b)
    assert tier.has(c)


def test_entry_expires_after_its_ttl(hot, clock):
    key = CacheKey.week(2)
    hot.set(key, _record(clock, 2), timedelta(minutes=10))

    clock.advance(minutes=9)
    assert hot.get(key) is not None

    clock.advance(minutes=2)
    assert hot.get(key) is None
    assert hot.size == 0


def test_ttl_is_capped_by_ceiling(hot, clock):
    """Entries that never expire durably still leave the hot tier after the ceiling."""
    key = CacheKey.week(60)
    hot.set(key, _record(clock, 60), None)

    clock.advance(minutes=59)
    assert hot.has(key)
    clock.advance(minutes=2)
    assert not hot.has(key)

    hot.set(key, _record(clock, 60), timedelta(days=7))
    clock.advance(hours=1, seconds=1)
    assert not hot.has(key)


def test_delete_and_clear(hot, clock):
    hot.set(CacheKey.week(0), _record(clock, 0))
    hot.set(CacheKey.year(2024), _record(clock, 2024))

    assert hot.delete(CacheKey.week(0)) is True
    assert hot.delete(CacheKey.week(0)) is False
    assert hot.clear() == 1
    assert hot.size == 0


def test_invalid_capacity():
    with pytest.raises(ValueError):
        HotTier(capacity=0)
