"""
Cache — multi-tier caching.

    from naaz import cache as C

    service = C.CacheService.in_memory()
    await service.set("k", {"a": 1}, C.CacheOptions(tier=C.Tier.LOCAL, compress=True))

    products = C.cache(service, key_fn, fetch_fn).tier(C.CacheOptions()).build()
    result = await products.get(product_id)
"""

from __future__ import annotations

from naaz.cache._types import (
    KEY_PREFIX,
    COMPRESSION_THRESHOLD,
    CLEANUP_INTERVAL,
    DEFAULT_QUOTA,
    CacheTime,
    Tier,
    CacheOptions,
    CacheEntry,
    TierStore,
    CacheResult,
    CachedValue,
    TierStats,
    QuotaExceeded,
    CorruptEntry,
)
from naaz.cache._storage import Storage, MemoryStorage, FileStorage
from naaz.cache._tiers import MemoryTier, KeyValueTier, IndexedTier
from naaz.cache._service import CacheService, system_clock
from naaz.cache._builder import cache, Cache, CacheExecutor

__all__ = (
    "KEY_PREFIX",
    "COMPRESSION_THRESHOLD",
    "CLEANUP_INTERVAL",
    "DEFAULT_QUOTA",
    "CacheTime",
    "Tier",
    "CacheOptions",
    "CacheEntry",
    "TierStore",
    "CacheResult",
    "CachedValue",
    "TierStats",
    "QuotaExceeded",
    "CorruptEntry",
    "Storage",
    "MemoryStorage",
    "FileStorage",
    "MemoryTier",
    "KeyValueTier",
    "IndexedTier",
    "CacheService",
    "system_clock",
    "cache",
    "Cache",
    "CacheExecutor",
)
