"""
Catalog reads through the read-through cache, plus admin stock changes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog
from kungfu import Ok, Error, LazyCoroResult

from naaz import cache as C
from naaz import lift as L
from naaz._types import Row
from naaz.backend import Backend, Order, eq, ilike
from naaz.errors import AppError, NotAuthorized, NotFound, Unauthenticated

log = structlog.get_logger(__name__)

STOCK_ADJUSTMENT = "adjustment"


@dataclass(frozen=True, slots=True)
class ProductQuery:
    category: str | None = None
    search: str | None = None
    page: int = 1
    limit: int = 12

    @property
    def cache_key(self) -> str:
        return f"products:{self.category or '*'}:{self.search or '*'}:{self.page}:{self.limit}"


@dataclass(frozen=True, slots=True)
class ProductRating:
    average: float
    count: int


async def _unwrap[T](lazy: LazyCoroResult[C.CacheResult[T], AppError]) -> T:
    match await lazy:
        case Ok(found):
            return found.value
        case Error(e):
            raise e


class CatalogService:
    """
    Example:
        catalog = CatalogService(backend, cache_service)
        page = await catalog.products(ProductQuery(category="tafsir"))
        product = await catalog.product(product_id)
    """

    def __init__(self, backend: Backend, cache: C.CacheService) -> None:
        self.backend = backend
        self.cache = cache
        self._products = (
            C.cache(cache, lambda q: q.cache_key, self._fetch_products)
            .tier(C.CacheOptions(ttl=C.CacheTime.MEDIUM))
            .build()
        )
        self._product = (
            C.cache(cache, lambda pid: f"product:{pid}", self._fetch_product)
            .tier(C.CacheOptions(ttl=C.CacheTime.MEDIUM))
            .build()
        )
        self._categories = (
            C.cache(cache, lambda _: "categories", self._fetch_categories)
            .tier(C.CacheOptions(ttl=C.CacheTime.VERY_LONG))
            .build()
        )

    # ─── Fetchers ───

    def _fetch_products(self, query: ProductQuery) -> LazyCoroResult[list[Row], AppError]:
        filters = [eq("is_active", True)]
        if query.category:
            filters.append(eq("category_id", query.category))
        if query.search:
            filters.append(ilike("name", f"%{query.search}%"))
        return L.remote(lambda: self.backend.select(
            "products",
            *filters,
            order=Order("created_at", ascending=False),
            limit=query.limit,
            offset=(max(query.page, 1) - 1) * query.limit,
        ))

    def _fetch_product(self, product_id: str) -> LazyCoroResult[Row, AppError]:
        async def fetch() -> Row:
            rows = await self.backend.select("products", eq("id", product_id), limit=1)
            if not rows:
                raise NotFound(f"Product {product_id} not found")
            return rows[0]

        return L.remote(fetch)

    def _fetch_categories(self, _: Any) -> LazyCoroResult[list[Row], AppError]:
        return L.remote(lambda: self.backend.select(
            "categories", order=Order("display_order")
        ))

    # ─── Reads ───

    async def products(self, query: ProductQuery | None = None) -> list[Row]:
        return await _unwrap(self._products.get(query or ProductQuery()))

    async def product(self, product_id: str) -> Row:
        return await _unwrap(self._product.get(product_id))

    async def categories(self) -> list[Row]:
        return await _unwrap(self._categories.get(None))

    async def rating(self, product_id: str) -> ProductRating:
        params = {"product_uuid": product_id}
        average = await self.backend.rpc("get_product_average_rating", params)
        count = await self.backend.rpc("get_product_review_count", params)
        return ProductRating(average=float(average or 0), count=int(count or 0))

    # ─── Admin ───

    async def adjust_stock(self, product_id: str, new_stock: int, reason: str) -> int:
        """Set stock to `new_stock`, recording the change; returns the delta."""
        user = await self.backend.auth_user()
        if user is None:
            raise Unauthenticated()
        if not await self.backend.rpc("is_admin", {"user_id": user.id}):
            raise NotAuthorized("Admin access required")

        rows = await self.backend.select(
            "products", eq("id", product_id), columns="id,quantity_in_stock", limit=1
        )
        if not rows:
            raise NotFound(f"Product {product_id} not found")
        change = new_stock - int(rows[0].get("quantity_in_stock") or 0)
        if change:
            await self.backend.rpc("update_product_stock", {
                "product_uuid": product_id,
                "quantity_change": change,
                "change_reason": reason,
                "change_type_param": STOCK_ADJUSTMENT,
            })
        await self.invalidate(product_id)
        log.info("catalog.stock_adjusted", product_id=product_id, change=change)
        return change

    async def invalidate(self, product_id: str | None = None) -> None:
        if product_id is not None:
            await self._product.invalidate(product_id)
        await self._products.invalidate_pattern("products:*")


__all__ = (
    "STOCK_ADJUSTMENT",
    "ProductQuery",
    "ProductRating",
    "CatalogService",
)
