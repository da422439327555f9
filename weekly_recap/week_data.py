"""
Week and year data service.

Cache-first access to week and year summaries. Multi-week requests are split
by cache status: cached weeks are fetched in parallel (no upstream calls),
uncached weeks strictly one at a time so cold fetches never stack up against
provider rate limits.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from weekly_recap import aggregation
from weekly_recap.cache import CacheKey, CacheManager, CacheWarmer, RecordKind, WarmupSummary, week_keys
from weekly_recap.cache.core import utcnow

logger = logging.getLogger("week_data")

WeekBuilder = Callable[[int], Dict[str, Any]]
YearBuilder = Callable[[int], Dict[str, Any]]

# Years offered by the year picker: current year and this many before it
YEARS_BACK = 5


class WeekDataService:
    """
    Serves week and year summaries through a CacheManager.

    Usage:
        service = WeekDataService(get_cache_manager())
        weeks = service.get_weeks(count=10, offset=0)
    """

    def __init__(
        self,
        cache: CacheManager,
        week_builder: Optional[WeekBuilder] = None,
        year_builder: Optional[YearBuilder] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Args:
            cache: Cache manager shared with the rest of the process
            week_builder: Produces a fresh week payload on a miss
            year_builder: Produces a fresh year payload on a miss
            clock: Source of the current time (for the current year)
        """
        self.cache = cache
        self.week_builder = week_builder or aggregation.build_week
        self.year_builder = year_builder or aggregation.build_year
        self._clock = clock or utcnow

    def get_week(self, week_number: int) -> Dict[str, Any]:
        """
        Get one week, computing and caching it on a miss.

        Raises whatever the week builder raises.
        """
        key = CacheKey.week(week_number)
        record = self.cache.get_record(key)
        if record is not None:
            return record.payload

        payload = self.week_builder(week_number)
        self.cache.set_record(key, payload)
        return payload

    def _partition(self, week_numbers: Sequence[int]) -> Tuple[List[int], List[int]]:
        """Probe the cache for every week concurrently. Returns (cached, uncached)."""
        def probe(week_number: int) -> bool:
            return self.cache.get_record(CacheKey.week(week_number)) is not None

        # One thread per key
        with ThreadPoolExecutor(max_workers=len(week_numbers), thread_name_prefix="cache-probe") as pool:
            flags = list(pool.map(probe, week_numbers))

        cached = [n for n, hit in zip(week_numbers, flags) if hit]
        uncached = [n for n, hit in zip(week_numbers, flags) if not hit]
        return cached, uncached

    def _safe_get_week(self, week_number: int) -> Optional[Dict[str, Any]]:
        try:
            return self.get_week(week_number)
        except Exception as e:
            logger.error(f"Error generating week {week_number}: {e}")
            return None

    def get_weeks(self, count: int = 10, offset: int = 0) -> List[Dict[str, Any]]:
        """
        Get a window of consecutive weeks.

        Args:
            count: Number of weeks
            offset: First week number in the window

        Returns:
            Week payloads sorted by week number; weeks that failed are omitted
        """
        week_numbers = list(range(offset, offset + count))
        if not week_numbers:
            return []

        cached, uncached = self._partition(week_numbers)
        logger.info(
            f"Generating {count} weeks: {len(cached)} cached, {len(uncached)} uncached"
        )

        results: List[Tuple[int, Dict[str, Any]]] = []

        if cached:
            with ThreadPoolExecutor(max_workers=len(cached), thread_name_prefix="cached-week") as pool:
                for week_number, payload in zip(cached, pool.map(self._safe_get_week, cached)):
                    if payload is not None:
                        results.append((week_number, payload))

        # Sequential on purpose: concurrent cold fetches multiply upstream calls
        for week_number in uncached:
            payload = self._safe_get_week(week_number)
            if payload is not None:
                results.append((week_number, payload))

        results.sort(key=lambda item: item[0])
        return [payload for _, payload in results]

    def get_year(self, year: int) -> Dict[str, Any]:
        """Get one year summary, computing and caching it on a miss."""
        key = CacheKey.year(year)
        record = self.cache.get_record(key)
        if record is not None:
            return record.payload

        payload = self.year_builder(year)
        self.cache.set_record(key, payload)
        return payload

    def available_years(self) -> List[int]:
        """Current year first, then the previous YEARS_BACK years."""
        current = self._clock().year
        return [current - i for i in range(YEARS_BACK + 1)]

    def _produce(self, key: CacheKey) -> Dict[str, Any]:
        if key.kind == RecordKind.WEEK:
            return self.week_builder(key.value)
        return self.year_builder(key.value)

    def warm(self, keys: Optional[Sequence[CacheKey]] = None, count: int = 12) -> WarmupSummary:
        """Warm the cache for `keys` (default: the `count` most recent weeks)."""
        keys = list(keys) if keys is not None else week_keys(count)
        return CacheWarmer(self.cache).warm(self._produce, keys)

    def warm_in_background(self, count: int = 12):
        """Fire-and-forget warm-up of the `count` most recent weeks."""
        return CacheWarmer(self.cache).warm_in_background(self._produce, week_keys(count))
