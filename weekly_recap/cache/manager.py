"""
Main cache orchestration across the hot and durable tiers.
"""
import logging
import threading
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from .core import CacheKey, CacheRecord, CacheStats, utcnow
from .durable_tier import DEFAULT_DELETE_BATCH_SIZE, DurableTier
from .hot_tier import HotTier
from .ttl_policies import expires_at_for, ttl_for_key

logger = logging.getLogger("cache.manager")


class CacheManager:
    """
    Two-tier cache with:
    - Hot tier: in-memory LRU for the most recent keys
    - Durable tier: persistent store, optional (None disables it)
    - Age-tiered expiration, checked lazily on read
    - Process-lifetime hit/miss/write counters
    """

    def __init__(
        self,
        hot_tier: Optional[HotTier] = None,
        durable_tier: Optional[DurableTier] = None,
        clock: Optional[Callable[[], datetime]] = None,
        delete_batch_size: int = DEFAULT_DELETE_BATCH_SIZE,
    ):
        """
        Initialize the cache manager.

        Args:
            hot_tier: In-memory tier (a default-sized one is created if omitted)
            durable_tier: Persistent tier, or None to run on the hot tier alone
            clock: Source of the current time
            delete_batch_size: Documents per transaction when clearing the durable tier
        """
        self._clock = clock or utcnow
        self.hot = hot_tier or HotTier(clock=self._clock)
        self.durable = durable_tier
        self.delete_batch_size = delete_batch_size

        self._stats_lock = threading.Lock()
        self._stats = {
            "hot_hits": 0,
            "durable_hits": 0,
            "misses": 0,
            "writes": 0,
        }

    @property
    def durable_enabled(self) -> bool:
        return self.durable is not None

    def _count(self, counter: str) -> None:
        with self._stats_lock:
            self._stats[counter] += 1

    def get_record(self, key: CacheKey) -> Optional[CacheRecord]:
        """
        Look a key up in the hot tier, then the durable tier.

        Durable hits are promoted into the hot tier. Expired durable
        documents read as a miss and are left in place.
        """
        record = self.hot.get(key)
        if record is not None:
            self._count("hot_hits")
            logger.debug(f"HOT HIT: {key}")
            return record

        if self.durable is None:
            self._count("misses")
            logger.debug(f"CACHE MISS (durable tier disabled): {key}")
            return None

        record = self.durable.get(key)
        now = self._clock()
        if record is None:
            self._count("misses")
            logger.info(f"CACHE MISS: {key}")
            return None

        if record.is_expired(now):
            self._count("misses")
            logger.info(f"CACHE EXPIRED: {key} [expired at {record.expires_at.isoformat()}]")
            return None

        self._count("durable_hits")
        logger.info(f"DURABLE HIT: {key}")
        self.hot.set(key, record, self._promotion_ttl(key, record, now))
        return record

    def _promotion_ttl(
        self, key: CacheKey, record: CacheRecord, now: datetime
    ) -> Optional[timedelta]:
        """TTL from the key's age class, never outliving the stored expiry."""
        ttl = ttl_for_key(key, now)
        remaining = record.remaining_seconds(now)
        if remaining is None:
            return ttl
        remaining_ttl = timedelta(seconds=max(remaining, 0))
        return remaining_ttl if ttl is None else min(ttl, remaining_ttl)

    def set_record(self, key: CacheKey, payload: Dict[str, Any]) -> CacheRecord:
        """
        Write a freshly produced payload to both tiers.

        The durable write is best-effort: a failure is logged by the tier and
        the hot-tier copy keeps serving for this process lifetime.
        """
        now = self._clock()
        record = CacheRecord(
            payload=payload,
            cached_at=now,
            expires_at=expires_at_for(key, now),
        )
        self.hot.set(key, record, ttl_for_key(key, now))
        if self.durable is not None:
            self.durable.set(key, record)
        self._count("writes")
        logger.debug(f"CACHE WRITE: {key}")
        return record

    def invalidate(self, key: CacheKey) -> None:
        """Remove a key from both tiers. Absent keys are not an error."""
        self.hot.delete(key)
        if self.durable is not None:
            self.durable.delete(key)
        logger.info(f"Invalidated cache: {key}")

    def clear_all(self) -> Dict[str, Any]:
        """
        Empty both tiers.

        Returns:
            Counts of removed entries per tier
        """
        hot_cleared = self.hot.clear()
        logger.info(f"Cleared {hot_cleared} hot cache entries")

        durable_cleared = 0
        if self.durable is not None:
            durable_cleared = self.durable.delete_all(self.delete_batch_size)

        return {
            "hotCleared": hot_cleared,
            "durableCleared": durable_cleared,
            "durableEnabled": self.durable_enabled,
        }

    def get_stats(self) -> CacheStats:
        """Snapshot of the counters; does not mutate state."""
        with self._stats_lock:
            counters = dict(self._stats)
        return CacheStats(
            hot_size=self.hot.size,
            durable_enabled=self.durable_enabled,
            **counters,
        )

    def reset_stats(self) -> None:
        """Zero the counters. Operator action only."""
        with self._stats_lock:
            for counter in self._stats:
                self._stats[counter] = 0
        logger.info("Cache statistics reset")


# Global cache manager instance
_cache_manager: Optional[CacheManager] = None
_cache_manager_lock = threading.Lock()


def get_cache_manager() -> CacheManager:
    """Get or create the global cache manager from application settings."""
    global _cache_manager
    with _cache_manager_lock:
        if _cache_manager is None:
            from config.settings import settings

            hot_tier = HotTier(
                capacity=settings.hot_cache_capacity,
                max_ttl=timedelta(seconds=settings.hot_cache_max_ttl_seconds),
            )
            _cache_manager = CacheManager(
                hot_tier=hot_tier,
                durable_tier=DurableTier.from_settings(settings),
                delete_batch_size=settings.durable_delete_batch_size,
            )
        return _cache_manager


def reset_cache_manager() -> None:
    """Drop the global instance so the next call rebuilds it."""
    global _cache_manager
    with _cache_manager_lock:
        _cache_manager = None
