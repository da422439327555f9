"""
TTL configuration by record age.

Provider data about the recent past is still being finalized upstream, so
young records expire quickly. Old data is settled and never expires.
"""
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from .core import CacheKey, RecordKind, utcnow


# Week TTL schedule: (max_offset_inclusive, ttl). Offsets past the last
# bucket are historical and never expire.
WEEK_TTL_SCHEDULE: List[Tuple[int, timedelta]] = [
    (0, timedelta(hours=1)),      # current week changes as the day progresses
    (4, timedelta(hours=24)),     # recent weeks, late-arriving provider data
    (52, timedelta(days=7)),      # older weeks of this year, essentially static
]

TTL_CONFIG: Dict[RecordKind, Dict[str, Optional[timedelta]]] = {
    RecordKind.YEAR: {
        "current": timedelta(hours=24),
        "past": None,
    },
}


def ttl_for_week(offset: int) -> Optional[timedelta]:
    """
    Get the TTL for a week record.

    Args:
        offset: Weeks back from the current week (0 = current)

    Returns:
        TTL, or None if the record never expires
    """
    if offset < 0:
        raise ValueError(f"Week offset must be non-negative, got {offset}")

    for max_offset, ttl in WEEK_TTL_SCHEDULE:
        if offset <= max_offset:
            return ttl
    return None


def ttl_for_year(year: int, current_year: int) -> Optional[timedelta]:
    """Current calendar year is still accumulating data; past years are final."""
    config = TTL_CONFIG[RecordKind.YEAR]
    if year == current_year:
        return config["current"]
    return config["past"]


def ttl_for_key(key: CacheKey, now: Optional[datetime] = None) -> Optional[timedelta]:
    """
    Get the TTL for any cache key from its age class.

    Args:
        key: Week or year key
        now: Reference time (the current year is taken from it)
    """
    if key.kind == RecordKind.WEEK:
        return ttl_for_week(key.value)
    now = now or utcnow()
    return ttl_for_year(key.value, now.year)


def expires_at_for(key: CacheKey, now: datetime) -> Optional[datetime]:
    """Absolute expiry for a record written at `now`, or None for never."""
    ttl = ttl_for_key(key, now)
    if ttl is None:
        return None
    return now + ttl
