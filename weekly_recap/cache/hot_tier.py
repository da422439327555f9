"""
Bounded in-memory cache tier.

Least-recently-used eviction with a per-entry TTL. Every entry's TTL is
capped by a uniform ceiling, so even records that never expire in the
durable tier are re-read from it periodically.
"""
import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from .core import CacheKey, CacheRecord, utcnow

logger = logging.getLogger("cache.hot_tier")

DEFAULT_CAPACITY = 10
DEFAULT_MAX_TTL = timedelta(hours=1)


@dataclass
class _HotEntry:
    record: CacheRecord
    deadline: datetime


class HotTier:
    """
    Fixed-capacity LRU store keyed by CacheKey.

    Reads and writes refresh recency. Expired entries are dropped when
    touched; capacity eviction is silent.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        max_ttl: timedelta = DEFAULT_MAX_TTL,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Args:
            capacity: Maximum number of entries
            max_ttl: Ceiling applied to every entry's TTL
            clock: Source of the current time (tests inject a fake one)
        """
        if capacity < 1:
            raise ValueError(f"Hot tier capacity must be at least 1, got {capacity}")
        self.capacity = capacity
        self.max_ttl = max_ttl
        self._clock = clock or utcnow
        self._entries: "OrderedDict[CacheKey, _HotEntry]" = OrderedDict()
        self._lock = threading.RLock()

    def _live_entry(self, key: CacheKey) -> Optional[_HotEntry]:
        """Return the entry if present and unexpired, dropping it otherwise."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() > entry.deadline:
            del self._entries[key]
            logger.debug(f"HOT EXPIRED: {key}")
            return None
        return entry

    def has(self, key: CacheKey) -> bool:
        """Presence check; does not refresh recency."""
        with self._lock:
            return self._live_entry(key) is not None

    def get(self, key: CacheKey) -> Optional[CacheRecord]:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return None
            self._entries.move_to_end(key)
            return entry.record

    def set(self, key: CacheKey, record: CacheRecord, ttl: Optional[timedelta] = None) -> None:
        """
        Store a record.

        Args:
            key: Cache key
            record: Record to store
            ttl: Entry TTL; None (never expires) falls back to the ceiling
        """
        effective_ttl = self.max_ttl if ttl is None else min(ttl, self.max_ttl)
        entry = _HotEntry(record=record, deadline=self._clock() + effective_ttl)
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
            self._entries[key] = entry
            while len(self._entries) > self.capacity:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"HOT EVICTED: {evicted}")

    def delete(self, key: CacheKey) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> int:
        """Remove every entry. Returns the number removed."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._entries)
