"""Tests for pricing and the order-placing checkout."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import pytest

from naaz.backend import MemoryBackend
from naaz.checkout import (
    ROLLBACK_REASON,
    AddressInput,
    CheckoutInput,
    CheckoutService,
    coupon_discount,
    coupon_problem,
    money,
)
from naaz.errors import (
    BackendError,
    CartEmpty,
    InvalidQuantity,
    OutOfStock,
    ProductUnavailable,
    Unauthenticated,
)

ADDRESS = AddressInput("12 MG Road", "Pune", "Maharashtra", "411001")
BILLING = AddressInput("7 Park Street", "Kolkata", "West Bengal", "700016")


def _checkout(backend: MemoryBackend, now: datetime) -> CheckoutService:
    return CheckoutService(backend, now=lambda: now)


def _stock(backend: MemoryBackend) -> dict[str, int]:
    return {p["id"]: p["quantity_in_stock"] for p in backend.rows("products")}


class TestPricingRules:
    def test_money_rounds_half_up(self) -> None:
        assert money("10.005") == Decimal("10.01")
        assert money(None) == Decimal("0.00")

    def test_percentage_and_fixed_discounts(self) -> None:
        amount = Decimal("1000.00")
        assert coupon_discount({"discount_type": "percentage", "discount_value": 10}, amount) == Decimal("100.00")
        assert coupon_discount({"discount_type": "fixed", "discount_value": 50}, amount) == Decimal("50.00")
        assert coupon_discount({"discount_type": "fixed", "discount_value": 5000}, amount) == amount

    def test_coupon_problems(self, now: datetime) -> None:
        amount = Decimal("100.00")
        open_until = {"end_date": "2026-12-31T00:00:00Z"}
        assert coupon_problem({"end_date": "2025-01-01T00:00:00Z"}, amount, now) == (
            "Coupon is expired or not yet active"
        )
        assert coupon_problem({**open_until, "usage_limit": 5, "used_count": 5}, amount, now) == (
            "Coupon usage limit reached"
        )
        assert coupon_problem({**open_until, "min_purchase": 500}, amount, now) == (
            "Minimum purchase amount of 500.00 required"
        )
        assert coupon_problem({**open_until, "start_date": "2026-01-01"}, amount, now) is None

    def test_coupon_without_end_date_is_not_active(self, now: datetime) -> None:
        coupon = {"start_date": "2026-01-01", "discount_type": "fixed", "discount_value": 100}
        assert coupon_problem(coupon, Decimal("1000.00"), now) == (
            "Coupon is expired or not yet active"
        )


class TestPreview:
    async def test_totals_with_coupon(self, backend: MemoryBackend, now: datetime) -> None:
        priced = await _checkout(backend, now).preview("WELCOME10")

        assert priced.subtotal == Decimal("1000.00")
        assert priced.discount == Decimal("100.00")
        assert priced.tax == Decimal("45.00")
        assert priced.shipping == Decimal("100.00")
        assert priced.total == Decimal("1045.00")
        assert priced.coupon is not None and priced.coupon.code == "WELCOME10"

    async def test_sale_price_wins(self, backend: MemoryBackend, now: datetime) -> None:
        priced = await _checkout(backend, now).preview()
        line = next(item for item in priced.lines if item.product_id == "p2")
        assert line.unit_price == Decimal("400.00")

    async def test_expired_coupon_is_ignored(self, backend: MemoryBackend, now: datetime) -> None:
        priced = await _checkout(backend, now).preview("OLD50")
        assert priced.discount == Decimal("0.00")
        assert priced.coupon is None
        assert priced.total == Decimal("1150.00")

    async def test_unknown_coupon_is_ignored(self, backend: MemoryBackend, now: datetime) -> None:
        priced = await _checkout(backend, now).preview("NOPE")
        assert priced.total == Decimal("1150.00")

    async def test_requires_sign_in(self, backend: MemoryBackend, now: datetime) -> None:
        with pytest.raises(Unauthenticated):
            await _checkout(backend.bind(None), now).preview()


class TestPlaceOrder:
    async def test_order_is_written(self, backend: MemoryBackend, now: datetime) -> None:
        receipt = await _checkout(backend, now).place_order(
            CheckoutInput(ADDRESS, "cod", coupon_code="WELCOME10")
        )

        [order] = backend.rows("orders")
        assert order["id"] == receipt.order_id
        assert order["total_amount"] == 1045.0
        assert order["discount_amount"] == 100.0
        assert order["shipping_address_id"] == order["billing_address_id"]
        assert len(backend.rows("order_items")) == 2
        assert len(backend.rows("addresses")) == 1
        assert backend.rows("cart_items") == []
        assert _stock(backend) == {"p1": 8, "p2": 2}
        assert next(c for c in backend.rows("coupons") if c["code"] == "WELCOME10")["used_count"] == 5
        assert list(backend.transactions.values()) == ["committed"]
        assert [r["action_type"] for r in backend.rows("activity_logs")] == ["place_order"]
        assert receipt.total == Decimal("1045.00")

    async def test_separate_billing_address(self, backend: MemoryBackend, now: datetime) -> None:
        await _checkout(backend, now).place_order(
            CheckoutInput(ADDRESS, "payu", billing_address=BILLING, same_as_billing=False)
        )
        [order] = backend.rows("orders")
        assert len(backend.rows("addresses")) == 2
        assert order["shipping_address_id"] != order["billing_address_id"]

    async def test_customer_note_is_visible(self, backend: MemoryBackend, now: datetime) -> None:
        await _checkout(backend, now).place_order(
            CheckoutInput(ADDRESS, "cod", notes="Please gift wrap")
        )
        [note] = backend.rows("order_notes")
        assert note["note"] == "Please gift wrap"
        assert note["is_customer_visible"] is True

    async def test_empty_cart(self, backend: MemoryBackend, now: datetime) -> None:
        backend.tables["cart_items"].clear()
        with pytest.raises(CartEmpty):
            await _checkout(backend, now).place_order(CheckoutInput(ADDRESS, "cod"))

    async def test_insufficient_stock_writes_nothing(
        self, backend: MemoryBackend, now: datetime
    ) -> None:
        backend.tables["cart_items"][1]["quantity"] = 5

        with pytest.raises(OutOfStock) as info:
            await _checkout(backend, now).place_order(CheckoutInput(ADDRESS, "cod"))

        assert info.value.product_name == "Riyad us Saliheen"
        assert info.value.available == 3
        assert backend.rows("orders") == []
        assert backend.rows("order_items") == []
        assert _stock(backend) == {"p1": 10, "p2": 3}
        assert backend.transactions == {}

    async def test_expired_coupon_still_places_order(
        self, backend: MemoryBackend, now: datetime
    ) -> None:
        receipt = await _checkout(backend, now).place_order(
            CheckoutInput(ADDRESS, "cod", coupon_code="OLD50")
        )

        [order] = backend.rows("orders")
        assert receipt.total == Decimal("1150.00")
        assert order["total_amount"] == 1150.0
        assert order["discount_amount"] == 0.0
        assert next(c for c in backend.rows("coupons") if c["code"] == "OLD50")["used_count"] == 0
        assert ("update", "coupons") not in backend.calls

    async def test_missing_product_writes_nothing(
        self, backend: MemoryBackend, now: datetime
    ) -> None:
        backend.tables["products"] = [p for p in backend.tables["products"] if p["id"] != "p2"]

        with pytest.raises(ProductUnavailable) as info:
            await _checkout(backend, now).place_order(CheckoutInput(ADDRESS, "cod"))

        assert info.value.product_id == "p2"
        assert backend.rows("orders") == []
        assert len(backend.rows("cart_items")) == 2
        assert backend.transactions == {}

    @pytest.mark.parametrize("quantity", [0, -3])
    async def test_non_positive_quantity_writes_nothing(
        self, backend: MemoryBackend, now: datetime, quantity: int
    ) -> None:
        backend.tables["cart_items"][0]["quantity"] = quantity

        with pytest.raises(InvalidQuantity) as info:
            await _checkout(backend, now).place_order(CheckoutInput(ADDRESS, "cod"))

        assert info.value.quantity == quantity
        assert backend.rows("orders") == []
        assert _stock(backend) == {"p1": 10, "p2": 3}
        assert backend.transactions == {}


class TestRollback:
    async def test_late_failure_undoes_every_step(
        self, backend: MemoryBackend, now: datetime
    ) -> None:
        backend.fail("delete", "cart_items")

        with pytest.raises(BackendError):
            await _checkout(backend, now).place_order(
                CheckoutInput(ADDRESS, "cod", coupon_code="WELCOME10", notes="Call first")
            )

        assert backend.rows("orders") == []
        assert backend.rows("order_items") == []
        assert backend.rows("addresses") == []
        assert backend.rows("order_notes") == []
        assert len(backend.rows("cart_items")) == 2
        assert _stock(backend) == {"p1": 10, "p2": 3}
        assert {r["change_reason"] for r in backend.rows("stock_history")} == {ROLLBACK_REASON}
        assert next(c for c in backend.rows("coupons") if c["code"] == "WELCOME10")["used_count"] == 4
        assert list(backend.transactions.values()) == ["rolled_back"]

    async def test_rollback_without_transaction_id(
        self, backend: MemoryBackend, now: datetime
    ) -> None:
        backend.issue_transaction_ids = False
        backend.fail("insert", "order_items")

        with pytest.raises(BackendError):
            await _checkout(backend, now).place_order(CheckoutInput(ADDRESS, "cod"))

        assert ("rpc", "rollback_transaction") not in backend.calls
        assert backend.rows("orders") == []
        assert backend.rows("addresses") == []
        assert _stock(backend) == {"p1": 10, "p2": 3}

    async def test_stock_failure_restores_earlier_lines(
        self, backend: MemoryBackend, now: datetime
    ) -> None:
        calls = 0

        async def flaky_decrement(params: dict) -> int:
            nonlocal calls
            calls += 1
            if calls == 2:
                raise BackendError("rpc decrement", "lock timeout", status=503)
            product = next(p for p in backend.tables["products"] if p["id"] == params["product_id"])
            product["quantity_in_stock"] -= params["inc_amount"]
            return product["quantity_in_stock"]

        backend.register_rpc("decrement", flaky_decrement)

        with pytest.raises(BackendError):
            await _checkout(backend, now).place_order(CheckoutInput(ADDRESS, "cod"))

        assert _stock(backend) == {"p1": 10, "p2": 3}
        assert backend.rows("orders") == []
