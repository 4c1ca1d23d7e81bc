"""
Cache builder — read-through fluent API over CacheService.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from collections.abc import Callable
from kungfu import LazyCoroResult, Result, Ok, Error

from naaz.cache._service import CacheService
from naaz.cache._types import CacheOptions, CacheResult

# ═══════════════════════════════════════════════════════════════════════════════
# Key Function Type
# ═══════════════════════════════════════════════════════════════════════════════

type KeyFn[K] = Callable[[K], str]


# ═══════════════════════════════════════════════════════════════════════════════
# Cache Builder
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True, frozen=True)
class Cache[K, T, E]:
    """
    Fluent cache builder.

    Type parameters:
        K: Key input type
        T: Value type
        E: Error type from fetch

    Example:
        product_cache = (
            C.cache(service, lambda pid: f"product:{pid}", fetch_product)
            .tier(C.CacheOptions(ttl=C.CacheTime.MEDIUM))
            .build()
        )
    """

    _service: CacheService
    _key_fn: KeyFn[K]
    _fetch: Callable[[K], LazyCoroResult[T, E]]
    _tiers: tuple[CacheOptions, ...]

    def tier(self, options: CacheOptions) -> Cache[K, T, E]:
        """Add cache tier; tiers are read in the order they were added."""
        return Cache(
            _service=self._service,
            _key_fn=self._key_fn,
            _fetch=self._fetch,
            _tiers=(*self._tiers, options),
        )

    def build(self) -> CacheExecutor[K, T, E]:
        """Build executable cache."""
        return CacheExecutor(
            service=self._service,
            key_fn=self._key_fn,
            tiers=self._tiers or (CacheOptions(),),
            fetch=self._fetch,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Cache Executor
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True, frozen=True)
class CacheExecutor[K, T, E]:
    """Compiled cache executor."""

    service: CacheService
    key_fn: KeyFn[K]
    tiers: tuple[CacheOptions, ...]
    fetch: Callable[[K], LazyCoroResult[T, E]]

    def get(self, key: K) -> LazyCoroResult[CacheResult[T], E]:
        """
        Get value from cache.

        Tries tiers in order, then falls back to fetch.
        On fetch success, populates all tiers.
        """
        cache_key = self.key_fn(key)
        service = self.service
        tiers = self.tiers
        fetch_fn = self.fetch

        async def execute() -> Result[CacheResult[T], E]:
            for options in tiers:
                found = await service.lookup(cache_key, options.tier)
                if found is not None:
                    return Ok(
                        CacheResult(
                            value=found.value,
                            hit=True,
                            tier=options.tier,
                            ttl_remaining=timedelta(milliseconds=found.ttl_remaining),
                        )
                    )

            # Miss: fetch from source
            result = await fetch_fn(key)
            match result:
                case Ok(value):
                    for options in tiers:
                        await service.set(cache_key, value, options)

                    return Ok(
                        CacheResult(
                            value=value,
                            hit=False,
                            tier=None,
                            ttl_remaining=None,
                        )
                    )
                case Error(e):
                    return Error(e)

        return LazyCoroResult(execute)

    async def invalidate(self, key: K) -> bool:
        """Invalidate key in all tiers."""
        cache_key = self.key_fn(key)
        deleted = False
        for options in self.tiers:
            if await self.service.delete(cache_key, options.tier):
                deleted = True
        return deleted

    async def invalidate_pattern(self, pattern: str) -> int:
        """Invalidate keys matching pattern in all tiers."""
        total = 0
        for options in self.tiers:
            total += await self.service.delete_pattern(pattern, options.tier)
        return total


# ═══════════════════════════════════════════════════════════════════════════════
# cache() — Entry Point (Type-Safe)
# ═══════════════════════════════════════════════════════════════════════════════


def cache[K, T, E](
    service: CacheService,
    key: KeyFn[K],
    fetch: Callable[[K], LazyCoroResult[T, E]],
) -> Cache[K, T, E]:
    """
    Create cache builder with key function and fetch.

    Types are inferred from the arguments.

    Example:
        from naaz import cache as C

        def fetch_product(pid: str) -> LazyCoroResult[Row, AppError]:
            return L.remote(lambda: backend.select("products", eq("id", pid)))

        product_cache = C.cache(service, lambda pid: f"product:{pid}", fetch_product).build()

        result = await product_cache.get(product_id)
    """
    return Cache(
        _service=service,
        _key_fn=key,
        _fetch=fetch,
        _tiers=(),
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = ("Cache", "CacheExecutor", "cache")
