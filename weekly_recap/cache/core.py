"""
Core cache data structures.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from functools import total_ordering
from typing import Any, Dict, Optional


class RecordKind(Enum):
    """Kinds of cacheable records. Each kind lives in its own collection."""
    WEEK = "week"    # offset from the current week, 0 = current
    YEAR = "year"    # absolute calendar year


@total_ordering
@dataclass(frozen=True)
class CacheKey:
    """
    Identifies one cacheable unit.

    String form is "week-N" or "year-Y"; the prefix keeps kinds from colliding.
    Ordering is by kind, then by number.
    """
    kind: RecordKind
    value: int

    def __post_init__(self):
        if not isinstance(self.kind, RecordKind):
            raise ValueError(f"Unknown record kind: {self.kind!r}")
        if self.kind == RecordKind.WEEK and self.value < 0:
            raise ValueError(f"Week offset must be non-negative, got {self.value}")

    def __lt__(self, other):
        if not isinstance(other, CacheKey):
            return NotImplemented
        return (self.kind.value, self.value) < (other.kind.value, other.value)

    @classmethod
    def week(cls, week_number: int) -> "CacheKey":
        return cls(RecordKind.WEEK, int(week_number))

    @classmethod
    def year(cls, year: int) -> "CacheKey":
        return cls(RecordKind.YEAR, int(year))

    @property
    def collection(self) -> str:
        """Durable-tier collection holding this kind of key."""
        return f"{self.kind.value}s"

    def __str__(self) -> str:
        return f"{self.kind.value}-{self.value}"


def utcnow() -> datetime:
    """Timezone-aware current time; the default clock for the cache."""
    return datetime.now(timezone.utc)


@dataclass
class CacheRecord:
    """
    Aggregated payload for one key plus cache metadata.

    expires_at of None means the record never expires.
    """
    payload: Dict[str, Any]
    cached_at: datetime
    expires_at: Optional[datetime] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """A record is still valid at exactly expires_at."""
        if self.expires_at is None:
            return False
        return (now or utcnow()) > self.expires_at

    def remaining_seconds(self, now: Optional[datetime] = None) -> Optional[float]:
        """Seconds of life left, or None for records that never expire."""
        if self.expires_at is None:
            return None
        return (self.expires_at - (now or utcnow())).total_seconds()

    def to_document(self) -> Dict[str, Any]:
        """Persisted layout: {payload, cachedAt, expiresAt|null}."""
        return {
            "payload": self.payload,
            "cachedAt": self.cached_at.isoformat(),
            "expiresAt": self.expires_at.isoformat() if self.expires_at else None,
        }

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "CacheRecord":
        expires_at = doc.get("expiresAt")
        return cls(
            payload=doc["payload"],
            cached_at=_parse_timestamp(doc["cachedAt"]),
            expires_at=_parse_timestamp(expires_at) if expires_at else None,
        )


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    # SQLite round-trips may drop the offset; stored values are always UTC
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class CacheStats:
    """
    Snapshot of process-lifetime cache counters.
    """
    hot_hits: int = 0
    durable_hits: int = 0
    misses: int = 0
    writes: int = 0
    hot_size: int = 0
    durable_enabled: bool = False

    @property
    def total(self) -> int:
        return self.hot_hits + self.durable_hits + self.misses

    @property
    def hit_rate(self) -> float:
        """Fraction of lookups served by either tier (0.0 with no lookups)."""
        if self.total == 0:
            return 0.0
        return (self.hot_hits + self.durable_hits) / self.total

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON response."""
        return {
            "hotHits": self.hot_hits,
            "durableHits": self.durable_hits,
            "misses": self.misses,
            "writes": self.writes,
            "total": self.total,
            "hitRatePercent": round(self.hit_rate * 100, 2),
            "hotSize": self.hot_size,
            "durableEnabled": self.durable_enabled,
        }
