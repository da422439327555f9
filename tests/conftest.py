"""
Shared fixtures: a controllable clock and in-memory cache tiers.
"""
from datetime import datetime, timedelta, timezone

import pytest

from weekly_recap.cache import CacheManager, DurableTier, HotTier
from weekly_recap.db import create_cache_engine, init_db


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 6, 11, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def engine(tmp_path):
    engine = create_cache_engine(f"sqlite:///{tmp_path / 'cache.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def durable(engine):
    return DurableTier(engine, "test-project")


@pytest.fixture
def hot(clock):
    return HotTier(capacity=10, max_ttl=timedelta(hours=1), clock=clock)


@pytest.fixture
def manager(hot, durable, clock):
    return CacheManager(hot_tier=hot, durable_tier=durable, clock=clock, delete_batch_size=2)
