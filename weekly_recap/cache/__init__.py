"""
Two-tier caching: in-memory LRU hot tier, durable document tier, age-tiered TTL.
"""
from .core import CacheKey, CacheRecord, CacheStats, RecordKind
from .ttl_policies import (
    TTL_CONFIG,
    WEEK_TTL_SCHEDULE,
    expires_at_for,
    ttl_for_key,
    ttl_for_week,
    ttl_for_year,
)
from .hot_tier import HotTier
from .durable_tier import DurableTier
from .manager import CacheManager, get_cache_manager, reset_cache_manager
from .warmup import CacheWarmer, WarmupSummary, week_keys

__all__ = [
    # Core types
    "CacheKey",
    "CacheRecord",
    "CacheStats",
    "RecordKind",
    # TTL policies
    "TTL_CONFIG",
    "WEEK_TTL_SCHEDULE",
    "expires_at_for",
    "ttl_for_key",
    "ttl_for_week",
    "ttl_for_year",
    # Tiers
    "HotTier",
    "DurableTier",
    # Manager
    "CacheManager",
    "get_cache_manager",
    "reset_cache_manager",
    # Warm-up
    "CacheWarmer",
    "WarmupSummary",
    "week_keys",
]
