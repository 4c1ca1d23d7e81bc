"""Tests for cached catalog reads, stock adjustment and the blog."""

from __future__ import annotations

import pytest

from naaz.backend import MemoryBackend
from naaz.cache import CacheService
from naaz.catalog import STOCK_ADJUSTMENT, BlogService, CatalogService, ProductQuery
from naaz.errors import NotAuthorized, NotFound


class TestProducts:
    async def test_listing_is_served_from_cache(
        self, backend: MemoryBackend, cache_service: CacheService
    ) -> None:
        catalog = CatalogService(backend, cache_service)
        first = await catalog.products()
        backend.fail("select", "products")
        second = await catalog.products()

        assert {p["id"] for p in first} == {"p1", "p2"}
        assert second == first

    async def test_category_and_search(
        self, backend: MemoryBackend, cache_service: CacheService
    ) -> None:
        catalog = CatalogService(backend, cache_service)
        hadith = await catalog.products(ProductQuery(category="hadith"))
        tafsir = await catalog.products(ProductQuery(search="TAFSIR"))

        assert [p["id"] for p in hadith] == ["p2"]
        assert [p["id"] for p in tafsir] == ["p1"]

    async def test_missing_product_is_not_cached(
        self, backend: MemoryBackend, cache_service: CacheService
    ) -> None:
        catalog = CatalogService(backend, cache_service)
        with pytest.raises(NotFound):
            await catalog.product("p9")

        backend.seed("products", [{"id": "p9", "name": "Seerah", "is_active": True}])
        assert (await catalog.product("p9"))["name"] == "Seerah"

    async def test_rating(self, backend: MemoryBackend, cache_service: CacheService) -> None:
        backend.seed("product_reviews", [
            {"product_id": "p1", "rating": 4},
            {"product_id": "p1", "rating": 5},
        ])
        catalog = CatalogService(backend, cache_service)

        rating = await catalog.rating("p1")
        assert (rating.average, rating.count) == (4.5, 2)
        assert (await catalog.rating("p2")).count == 0


class TestStockAdjustment:
    async def test_admin_adjusts_and_invalidates(
        self, backend: MemoryBackend, admin_backend: MemoryBackend, cache_service: CacheService
    ) -> None:
        catalog = CatalogService(admin_backend, cache_service)
        assert (await catalog.product("p1"))["quantity_in_stock"] == 10
        await catalog.products()

        change = await catalog.adjust_stock("p1", 7, "Damaged in transit")

        assert change == -3
        [history] = backend.rows("stock_history")
        assert history["change_type"] == STOCK_ADJUSTMENT
        assert history["change_reason"] == "Damaged in transit"
        assert (await catalog.product("p1"))["quantity_in_stock"] == 7
        listed = {p["id"]: p for p in await catalog.products()}
        assert listed["p1"]["quantity_in_stock"] == 7

    async def test_customer_cannot_adjust(
        self, backend: MemoryBackend, cache_service: CacheService
    ) -> None:
        with pytest.raises(NotAuthorized):
            await CatalogService(backend, cache_service).adjust_stock("p1", 0, "audit")
        assert backend.rows("stock_history") == []


@pytest.fixture
def blog(backend: MemoryBackend) -> BlogService:
    backend.seed("blog_posts", [
        {
            "id": "b1",
            "slug": "ramadan-reading",
            "title": "Ramadan reading list",
            "content": "Ten books",
            "status": "published",
            "created_at": "2026-01-02T00:00:00+00:00",
        },
        {
            "id": "b2",
            "slug": "new-arrivals",
            "title": "New arrivals",
            "content": "Fresh from the press for Ramadan",
            "status": "published",
            "created_at": "2026-01-05T00:00:00+00:00",
        },
        {
            "id": "b3",
            "slug": "draft",
            "title": "Unfinished",
            "content": "",
            "status": "draft",
            "created_at": "2026-01-07T00:00:00+00:00",
        },
    ])
    backend.seed("blog_categories", [{"name": "News"}, {"name": "Books"}])
    return BlogService(backend, page_size=1)


class TestBlog:
    async def test_published_pages(self, blog: BlogService) -> None:
        page = await blog.posts(status="published")
        assert page.total == 2
        assert page.pages == 2
        assert [p["id"] for p in page.posts] == ["b2"]

    async def test_search_title_or_content(self, blog: BlogService) -> None:
        page = await blog.posts(search="ramadan", limit=10)
        assert {p["id"] for p in page.posts} == {"b1", "b2"}

    async def test_post_counts_views(self, blog: BlogService, backend: MemoryBackend) -> None:
        await blog.post("ramadan-reading")
        await blog.post("ramadan-reading")
        assert backend.rows("blog_posts")[0]["view_count"] == 2

    async def test_view_count_failure_still_returns_post(
        self, blog: BlogService, backend: MemoryBackend
    ) -> None:
        backend.fail("rpc", "increment_blog_view_count")
        assert (await blog.post("new-arrivals"))["id"] == "b2"

    async def test_unknown_slug(self, blog: BlogService) -> None:
        with pytest.raises(NotFound):
            await blog.post("nope")

    async def test_save_inserts_then_updates(self, blog: BlogService) -> None:
        created = await blog.save({"slug": "eid", "title": "Eid", "status": "draft"})
        updated = await blog.save({"id": created["id"], "status": "published"})
        assert updated["title"] == "Eid"
        assert updated["status"] == "published"

        with pytest.raises(NotFound):
            await blog.save({"id": "missing", "title": "x"})

    async def test_categories_by_name(self, blog: BlogService) -> None:
        assert [c["name"] for c in await blog.categories()] == ["Books", "News"]
