"""
CacheService — uniform set/get/delete/clear over the four tiers.

The cache is best-effort: no method raises. A failed write is logged and
reported as False; an unreadable entry is deleted and read as a miss.
"""

from __future__ import annotations

import asyncio
import fnmatch
import time
from collections.abc import Mapping
from typing import Any

import structlog

from naaz._types import Clock, Millis
from naaz.cache import _codec
from naaz.cache._storage import FileStorage, MemoryStorage
from naaz.cache._tiers import IndexedTier, KeyValueTier, MemoryTier
from naaz.cache._types import (
    CLEANUP_INTERVAL,
    CacheEntry,
    CacheOptions,
    CachedValue,
    CacheTime,
    QuotaExceeded,
    Tier,
    TierStats,
    TierStore,
)
from naaz.config import Settings

logger = structlog.get_logger(__name__)


def system_clock() -> Millis:
    return int(time.time() * 1000)


# ═══════════════════════════════════════════════════════════════════════════════
# Cache Service
# ═══════════════════════════════════════════════════════════════════════════════


class CacheService:
    """
    Multi-tier cache.

    Example:
        cache = CacheService.in_memory(version="1.0.0")
        await cache.set("products:p1", product, C.CacheOptions(ttl=C.CacheTime.MEDIUM))
        product = await cache.get("products:p1")
    """

    def __init__(
        self,
        stores: Mapping[Tier, TierStore],
        *,
        version: str = "1.0.0",
        default_ttl: Millis = CacheTime.SHORT,
        clock: Clock = system_clock,
        cleanup_interval: Millis = CLEANUP_INTERVAL,
    ) -> None:
        self._stores = dict(stores)
        self._version = version
        self._default_ttl = default_ttl
        self._clock = clock
        self._cleanup_interval = cleanup_interval
        self._sweeper: asyncio.Task[None] | None = None

    @classmethod
    def in_memory(cls, **kwargs: Any) -> CacheService:
        """All tiers process-local: for tests and the demo server."""
        return cls(
            {
                Tier.MEMORY: MemoryTier(),
                Tier.LOCAL: KeyValueTier(MemoryStorage(), Tier.LOCAL),
                Tier.SESSION: KeyValueTier(MemoryStorage(), Tier.SESSION),
                Tier.INDEXED: IndexedTier(),
            },
            **kwargs,
        )

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> CacheService:
        quota = settings.cache_storage_quota
        return cls(
            {
                Tier.MEMORY: MemoryTier(),
                Tier.LOCAL: KeyValueTier(
                    FileStorage(settings.cache_dir / "local-storage.json", quota),
                    Tier.LOCAL,
                ),
                Tier.SESSION: KeyValueTier(MemoryStorage(quota), Tier.SESSION),
                Tier.INDEXED: IndexedTier(settings.indexed_cache_url),
            },
            version=settings.app_version,
            default_ttl=settings.cache_ttl,
            **kwargs,
        )

    @property
    def version(self) -> str:
        return self._version

    def store(self, tier: Tier) -> TierStore:
        return self._stores[tier]

    # ─── Lifecycle ───

    async def initialize(self) -> None:
        """Start the periodic sweep. Calling twice is a no-op."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self._sweep_forever(), name="naaz-cache-sweep")

    async def dispose(self) -> None:
        if self._sweeper is not None:
            self._sweeper.cancel()
            try:
                await self._sweeper
            except asyncio.CancelledError:
                pass
            self._sweeper = None
        for store in self._stores.values():
            try:
                await store.close()
            except Exception:
                logger.debug("cache.close_failed", tier=store.tier.value, exc_info=True)

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self._cleanup_interval / 1000)
            removed = await self.cleanup()
            if removed:
                logger.debug("cache.sweep", removed=removed)

    # ─── Operations ───

    async def set(self, key: str, value: Any, options: CacheOptions | None = None) -> bool:
        """
        Write value; False when it could not be stored.

        Values are stored as JSON on every tier, the memory tier included, so
        reads return JSON shapes: tuples come back as lists and non-string
        dict keys as strings.
        """
        options = options or CacheOptions()
        store = self._stores[options.tier]
        try:
            payload, compressed, encrypted = _codec.encode(
                value,
                compress_payload=options.compress,
                encrypt_payload=options.encrypt,
            )
        except (TypeError, ValueError):
            logger.warning("cache.unserialisable", key=key, tier=options.tier.value)
            return False

        entry = CacheEntry(
            data=payload,
            timestamp=self._clock(),
            ttl=options.ttl if options.ttl is not None else self._default_ttl,
            version=self._version,
            compressed=compressed,
            encrypted=encrypted,
        )
        try:
            await store.set(key, entry)
            return True
        except QuotaExceeded:
            removed = await self._sweep(store)
            logger.warning("cache.quota_exceeded", key=key, tier=options.tier.value, swept=removed)
        except Exception:
            logger.warning("cache.write_failed", key=key, tier=options.tier.value, exc_info=True)
        return False

    async def lookup(self, key: str, tier: Tier = Tier.MEMORY) -> CachedValue | None:
        """Like get, also reporting the remaining lifetime."""
        store = self._stores[tier]
        try:
            entry = await store.get(key)
            if entry is None:
                return None
            if not self._valid(entry):
                await store.delete(key)
                return None
            value = _codec.decode(entry.data, compressed=entry.compressed, encrypted=entry.encrypted)
            return CachedValue(value, entry.remaining(self._clock()))
        except Exception:
            logger.debug("cache.corrupt_entry", key=key, tier=tier.value, exc_info=True)
            await self._discard(store, key)
            return None

    async def get(self, key: str, tier: Tier = Tier.MEMORY) -> Any | None:
        """Value for key, None when absent, expired, stale or unreadable."""
        found = await self.lookup(key, tier)
        return found.value if found is not None else None

    async def delete(self, key: str, tier: Tier = Tier.MEMORY) -> bool:
        try:
            return await self._stores[tier].delete(key)
        except Exception:
            logger.debug("cache.delete_failed", key=key, tier=tier.value, exc_info=True)
            return False

    async def delete_pattern(self, pattern: str, tier: Tier | None = None) -> int:
        """Delete keys matching a glob pattern."""
        total = 0
        for store in self._targets(tier):
            try:
                for key in await store.keys():
                    if fnmatch.fnmatchcase(key, pattern) and await store.delete(key):
                        total += 1
            except Exception:
                logger.debug("cache.delete_pattern_failed", tier=store.tier.value, exc_info=True)
        return total

    async def clear(self, tier: Tier | None = None) -> None:
        """Clear one tier, or every tier when omitted."""
        for store in self._targets(tier):
            try:
                await store.clear()
            except Exception:
                logger.debug("cache.clear_failed", tier=store.tier.value, exc_info=True)

    async def cleanup(self) -> int:
        """Evict expired, stale and unreadable entries from every tier."""
        total = 0
        for store in self._stores.values():
            total += await self._sweep(store)
        return total

    async def stats(self) -> dict[Tier, TierStats]:
        result: dict[Tier, TierStats] = {}
        for tier, store in self._stores.items():
            try:
                result[tier] = TierStats(entries=len(await store.keys()), size=await store.size())
            except Exception:
                result[tier] = TierStats(entries=0, size=0)
        return result

    # ─── Internals ───

    def _targets(self, tier: Tier | None) -> list[TierStore]:
        if tier is None:
            return list(self._stores.values())
        return [self._stores[tier]]

    def _valid(self, entry: CacheEntry) -> bool:
        return entry.version == self._version and not entry.is_expired(self._clock())

    async def _discard(self, store: TierStore, key: str) -> None:
        try:
            await store.delete(key)
        except Exception:
            logger.debug("cache.discard_failed", key=key, tier=store.tier.value, exc_info=True)

    async def _sweep(self, store: TierStore) -> int:
        removed = 0
        try:
            keys = await store.keys()
        except Exception:
            logger.debug("cache.sweep_failed", tier=store.tier.value, exc_info=True)
            return 0
        for key in keys:
            try:
                entry = await store.get(key)
                stale = entry is not None and not self._valid(entry)
            except Exception:
                stale = True
            if stale:
                await self._discard(store, key)
                removed += 1
        return removed


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = ("CacheService", "system_clock")
