"""
Start-up cache warming.

Populates the cache for a fixed key set concurrently, one task per key.
Per-key failures are recorded and never affect sibling tasks.
"""
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from .core import CacheKey
from .manager import CacheManager

logger = logging.getLogger("cache.warmup")

Producer = Callable[[CacheKey], Dict[str, Any]]

STATUS_CACHED = "cached"
STATUS_WARMED = "warmed"


@dataclass
class WarmupSummary:
    """Outcome of one warm-up run."""
    cached: int = 0
    warmed: int = 0
    failed: int = 0
    elapsed_seconds: float = 0.0
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return self.cached + self.warmed + self.failed

    def to_dict(self) -> dict:
        return {
            "cached": self.cached,
            "warmed": self.warmed,
            "failed": self.failed,
            "elapsedSeconds": round(self.elapsed_seconds, 2),
            "errors": dict(self.errors),
        }


class CacheWarmer:
    """
    Warms a CacheManager for a set of keys.

    Usage:
        warmer = CacheWarmer(get_cache_manager())
        warmer.warm_in_background(produce, [CacheKey.week(n) for n in range(12)])
    """

    def __init__(self, manager: CacheManager):
        self.manager = manager

    def _warm_one(self, produce: Producer, key: CacheKey) -> str:
        if self.manager.get_record(key) is not None:
            logger.info(f"{key} already cached (skipped)")
            return STATUS_CACHED

        payload = produce(key)
        self.manager.set_record(key, payload)
        logger.info(f"Warmed {key}")
        return STATUS_WARMED

    def warm(self, produce: Producer, keys: Sequence[CacheKey]) -> WarmupSummary:
        """
        Warm every key concurrently and wait for all of them.

        Args:
            produce: Computes a fresh payload for a key
            keys: Keys to warm

        Returns:
            Counts of already-cached, freshly warmed and failed keys
        """
        keys = list(keys)
        summary = WarmupSummary()
        if not keys:
            return summary

        logger.info(
            f"Warming cache for {len(keys)} keys in parallel: "
            f"{', '.join(str(k) for k in keys)}"
        )
        started = time.monotonic()

        with ThreadPoolExecutor(
            max_workers=len(keys),
            thread_name_prefix="cache-warm",
        ) as pool:
            futures = [(key, pool.submit(self._warm_one, produce, key)) for key in keys]
            for key, future in futures:
                try:
                    status = future.result()
                except Exception as e:
                    logger.error(f"Error warming {key}: {e}")
                    summary.failed += 1
                    summary.errors[str(key)] = str(e)
                    continue
                if status == STATUS_CACHED:
                    summary.cached += 1
                else:
                    summary.warmed += 1

        summary.elapsed_seconds = time.monotonic() - started
        logger.info(
            f"Warming complete in {summary.elapsed_seconds:.2f}s "
            f"({summary.cached} cached, {summary.warmed} warmed, {summary.failed} failed)"
        )
        return summary

    def warm_in_background(
        self,
        produce: Producer,
        keys: Sequence[CacheKey],
        on_complete: Optional[Callable[[WarmupSummary], None]] = None,
    ) -> threading.Thread:
        """
        Fire-and-forget warm-up on a daemon thread.

        Nothing raised inside the thread reaches the caller.
        """
        keys = list(keys)

        def run():
            try:
                summary = self.warm(produce, keys)
                if on_complete is not None:
                    on_complete(summary)
            except Exception as e:
                logger.error(f"Background cache warming failed: {e}")

        thread = threading.Thread(target=run, name="cache-warmup", daemon=True)
        thread.start()
        logger.info(f"Started background cache warming for {len(keys)} keys")
        return thread


def week_keys(count: int, offset: int = 0) -> List[CacheKey]:
    """Keys for weeks offset .. offset+count-1."""
    return [CacheKey.week(n) for n in range(offset, offset + count)]
