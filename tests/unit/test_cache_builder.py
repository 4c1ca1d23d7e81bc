"""Tests for the read-through cache builder."""

from __future__ import annotations

from kungfu import Error, Ok

from naaz import cache as C
from naaz import lift as L
from naaz.errors import AppError, NotFound
from tests.fakes.fake_clock import FakeClock


class CountingSource:
    def __init__(self) -> None:
        self.calls: list[str] = []

    def fetch(self, key: str):
        async def run() -> dict[str, str]:
            self.calls.append(key)
            if key == "missing":
                raise NotFound(f"{key} not found")
            return {"id": key}

        return L.remote(run)


def _products(service: C.CacheService, source: CountingSource) -> C.CacheExecutor:
    return (
        C.cache(service, lambda pid: f"product:{pid}", source.fetch)
        .tier(C.CacheOptions(ttl=C.CacheTime.SHORT))
        .tier(C.CacheOptions(ttl=C.CacheTime.LONG, tier=C.Tier.SESSION))
        .build()
    )


class TestReadThrough:
    async def test_miss_then_hit(self, cache_service: C.CacheService) -> None:
        source = CountingSource()
        products = _products(cache_service, source)

        first = await products.get("p1")
        second = await products.get("p1")

        match first, second:
            case Ok(miss), Ok(hit):
                assert miss.hit is False and miss.tier is None
                assert hit.hit is True and hit.tier is C.Tier.MEMORY
                assert hit.value == {"id": "p1"}
            case _:
                raise AssertionError("expected two successes")
        assert source.calls == ["p1"]

    async def test_later_tier_answers_when_first_expired(
        self, cache_service: C.CacheService, clock: FakeClock
    ) -> None:
        source = CountingSource()
        products = _products(cache_service, source)
        await products.get("p1")

        clock.advance(C.CacheTime.SHORT + 1)
        match await products.get("p1"):
            case Ok(found):
                assert found.tier is C.Tier.SESSION
            case Error(e):
                raise AssertionError(e)
        assert source.calls == ["p1"]

    async def test_fetch_error_is_returned_and_not_cached(
        self, cache_service: C.CacheService
    ) -> None:
        source = CountingSource()
        products = _products(cache_service, source)

        for _ in range(2):
            match await products.get("missing"):
                case Error(e):
                    assert isinstance(e, AppError)
                    assert isinstance(e, NotFound)
                case Ok(_):
                    raise AssertionError("expected an error")
        assert source.calls == ["missing", "missing"]


class TestInvalidation:
    async def test_invalidate_clears_every_tier(self, cache_service: C.CacheService) -> None:
        source = CountingSource()
        products = _products(cache_service, source)
        await products.get("p1")

        assert await products.invalidate("p1") is True
        await products.get("p1")
        assert source.calls == ["p1", "p1"]

    async def test_invalidate_pattern(self, cache_service: C.CacheService) -> None:
        source = CountingSource()
        products = _products(cache_service, source)
        await products.get("p1")
        await products.get("p2")

        assert await products.invalidate_pattern("product:*") == 4
