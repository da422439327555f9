"""
Tests for the week data service: cache-first reads and the
parallel-cached / sequential-uncached fetch policy.
"""
import threading
import time
from datetime import date

import pytest

from weekly_recap.cache import CacheKey, CacheManager
from weekly_recap.week_data import WeekDataService


class ConcurrencyTracker:
    """Week builder that measures how many calls overlap."""

    def __init__(self, delay=0.02, fail_on=()):
        self.delay = delay
        self.fail_on = set(fail_on)
        self.calls = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def __call__(self, week_number):
        with self._lock:
            self.calls.append(week_number)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            time.sleep(self.delay)
            if week_number in self.fail_on:
                raise RuntimeError(f"provider failed for week {week_number}")
            return {"weekNumber": week_number}
        finally:
            with self._lock:
                self.active -= 1


@pytest.fixture
def builder():
    return ConcurrencyTracker()


@pytest.fixture
def service(manager, builder, clock):
    return WeekDataService(
        manager,
        week_builder=builder,
        year_builder=lambda year: {"year": year},
        clock=clock,
    )


# =============================================================================
# Single records
# =============================================================================

def test_get_week_builds_once(service, builder):
    first = service.get_week(3)
    second = service.get_week(3)

    assert first == second == {"weekNumber": 3}
    assert builder.calls == [3]


def test_get_week_propagates_builder_errors(manager, clock):
    def failing(week_number):
        raise RuntimeError("boom")

    service = WeekDataService(manager, week_builder=failing, clock=clock)
    with pytest.raises(RuntimeError):
        service.get_week(0)
    assert manager.get_record(CacheKey.week(0)) is None


def test_get_year_is_cached(service, manager):
    assert service.get_year(2022) == {"year": 2022}
    assert manager.get_record(CacheKey.year(2022)).payload == {"year": 2022}


def test_available_years(service):
    assert service.available_years() == [2025, 2024, 2023, 2022, 2021, 2020]


# =============================================================================
# Windows of weeks
# =============================================================================

class TestGetWeeks:
    """Partitioned multi-week fetches."""

    def test_returns_sorted_window(self, service):
        weeks = service.get_weeks(count=5, offset=2)
        assert [w["weekNumber"] for w in weeks] == [2, 3, 4, 5, 6]

    def test_cached_weeks_skip_the_builder(self, service, manager, builder):
        for n in (0, 2, 4):
            manager.set_record(CacheKey.week(n), {"weekNumber": n})

        weeks = service.get_weeks(count=6)

        assert sorted(builder.calls) == [1, 3, 5]
        assert [w["weekNumber"] for w in weeks] == [0, 1, 2, 3, 4, 5]

    def test_uncached_weeks_fetched_one_at_a_time(self, service, manager, builder):
        """Cold fetches never overlap, even while cached weeks run in parallel."""
        for n in (1, 4, 7):
            manager.set_record(CacheKey.week(n), {"weekNumber": n})

        weeks = service.get_weeks(count=9)

        assert len(weeks) == 9
        assert len(builder.calls) == 6
        assert builder.max_active == 1

    @staticmethod
    def _gate_lookups(manager, after, parties):
        """Make every get_record call past the first `after` wait for `parties` peers."""
        barrier = threading.Barrier(parties, timeout=5)
        original_get = manager.get_record
        lock = threading.Lock()
        calls = []

        def get_record(key):
            with lock:
                calls.append(key)
                index = len(calls)
            if index > after:
                barrier.wait()
            return original_get(key)

        manager.get_record = get_record
        return barrier

    def test_cached_weeks_fetched_in_parallel(self, manager, clock):
        """Cached lookups may overlap: all of them run at once."""
        for n in range(4):
            manager.set_record(CacheKey.week(n), {"weekNumber": n})

        # The first 4 calls are the partition probes; the next 4 must overlap
        barrier = self._gate_lookups(manager, after=4, parties=4)
        service = WeekDataService(manager, week_builder=ConcurrencyTracker(), clock=clock)

        weeks = service.get_weeks(count=4)

        assert [w["weekNumber"] for w in weeks] == [0, 1, 2, 3]
        assert not barrier.broken

    def test_large_cached_window_fully_parallel(self, manager, clock):
        """Twelve cached weeks are fetched at once, not in fixed-size batches."""
        for n in range(12):
            manager.set_record(CacheKey.week(n), {"weekNumber": n})

        barrier = self._gate_lookups(manager, after=12, parties=12)
        builder = ConcurrencyTracker()
        service = WeekDataService(manager, week_builder=builder, clock=clock)

        weeks = service.get_weeks(count=12)

        assert [w["weekNumber"] for w in weeks] == list(range(12))
        assert builder.calls == []
        assert not barrier.broken

    def test_probes_run_all_at_once(self, manager, clock):
        """Every week in the window is probed concurrently."""
        barrier = self._gate_lookups(manager, after=0, parties=12)
        service = WeekDataService(manager, week_builder=ConcurrencyTracker(delay=0), clock=clock)

        cached, uncached = service._partition(list(range(12)))

        assert cached == []
        assert uncached == list(range(12))
        assert not barrier.broken

    def test_failed_weeks_are_dropped(self, manager, clock):
        builder = ConcurrencyTracker(fail_on={2, 5})
        service = WeekDataService(manager, week_builder=builder, clock=clock)

        weeks = service.get_weeks(count=7)

        assert [w["weekNumber"] for w in weeks] == [0, 1, 3, 4, 6]
        assert sorted(builder.calls) == list(range(7))

    def test_empty_window(self, service):
        assert service.get_weeks(count=0) == []


# =============================================================================
# Warm-up through the service
# =============================================================================

def test_warm_uses_builders(service, manager, builder):
    manager.set_record(CacheKey.week(0), {"weekNumber": 0})

    summary = service.warm(count=3)

    assert summary.cached == 1
    assert summary.warmed == 2
    assert sorted(builder.calls) == [1, 2]


def test_warm_year_keys(service, manager):
    summary = service.warm(keys=[CacheKey.year(2021)])
    assert summary.warmed == 1
    assert manager.get_record(CacheKey.year(2021)).payload == {"year": 2021}


def test_default_builders_produce_real_summaries(clock):
    service = WeekDataService(CacheManager(clock=clock), clock=clock)
    week = service.get_week(1)
    assert week["weekNumber"] == 1
    assert set(week) >= {"startDate", "endDate", "listening", "activity", "places", "reading"}
    assert date.fromisoformat(week["startDate"]).weekday() == 0
