"""Tests for the order lifecycle: views, cancellation, reorder and admin actions."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from naaz.backend import MemoryBackend
from naaz.errors import (
    NotAuthorized,
    NotFound,
    NothingToReorder,
    OrderNotCancellable,
)
from naaz.orders import OrderFilter, OrderService, OrderStatus, invoice_number
from tests.fakes.fake_backend import ADMIN, CUSTOMER


def _orders(backend: MemoryBackend, now: datetime) -> OrderService:
    return OrderService(backend, now=lambda: now)


@pytest.fixture
def placed(backend: MemoryBackend) -> MemoryBackend:
    backend.seed("addresses", [{"id": "a1", "user_id": CUSTOMER.id, "city": "Pune"}])
    backend.seed("orders", [
        {
            "id": "0a1b2c3d-order-pending",
            "user_id": CUSTOMER.id,
            "status": "pending",
            "total_amount": 1045.0,
            "shipping_address_id": "a1",
            "billing_address_id": "a1",
            "created_at": "2026-01-10T10:00:00+00:00",
        },
        {
            "id": "order-shipped",
            "user_id": CUSTOMER.id,
            "status": "shipped",
            "total_amount": 400.0,
            "created_at": "2026-01-12T10:00:00+00:00",
        },
        {
            "id": "order-other",
            "user_id": "someone-else",
            "status": "pending",
            "total_amount": 10.0,
            "created_at": "2026-01-11T10:00:00+00:00",
        },
    ])
    backend.seed("order_items", [
        {"order_id": "0a1b2c3d-order-pending", "product_id": "p1", "quantity": 2},
        {"order_id": "0a1b2c3d-order-pending", "product_id": "p2", "quantity": 5},
        {"order_id": "order-shipped", "product_id": "gone", "quantity": 1},
    ])
    backend.seed("order_notes", [
        {"order_id": "0a1b2c3d-order-pending", "note": "fragile", "is_customer_visible": True},
        {"order_id": "0a1b2c3d-order-pending", "note": "fraud check", "is_customer_visible": False},
    ])
    return backend


class TestCustomerViews:
    async def test_orders_are_newest_first_with_items(
        self, placed: MemoryBackend, now: datetime
    ) -> None:
        orders = await _orders(placed, now).customer_orders()
        assert [o["id"] for o in orders] == ["order-shipped", "0a1b2c3d-order-pending"]
        assert len(orders[1]["items"]) == 2

    async def test_details_hide_internal_notes(self, placed: MemoryBackend, now: datetime) -> None:
        details = await _orders(placed, now).details("0a1b2c3d-order-pending")
        assert [n["note"] for n in details.notes] == ["fragile"]
        assert details.shipping_address is not None
        assert details.items[0]["product"]["name"] == "Tafsir Ibn Kathir"

    async def test_someone_elses_order_is_not_found(
        self, placed: MemoryBackend, now: datetime
    ) -> None:
        with pytest.raises(NotFound):
            await _orders(placed, now).details("order-other")


class TestCancel:
    @pytest.mark.parametrize("status", ["pending", "processing"])
    async def test_cancellable_statuses(
        self, placed: MemoryBackend, now: datetime, status: str
    ) -> None:
        placed.tables["orders"][0]["status"] = status
        entry = await _orders(placed, now).cancel("0a1b2c3d-order-pending", "ordered twice")

        assert entry["status"] == "cancelled"
        assert entry["note"] == "Cancelled by customer: ordered twice"
        assert placed.rows("orders")[0]["status"] == "cancelled"

    async def test_shipped_order_cannot_be_cancelled(
        self, placed: MemoryBackend, now: datetime
    ) -> None:
        with pytest.raises(OrderNotCancellable) as info:
            await _orders(placed, now).cancel("order-shipped")

        assert info.value.user_message == "This order cannot be cancelled"
        assert placed.rows("orders")[1]["status"] == "shipped"
        assert placed.rows("order_timeline") == []

    async def test_only_the_owner_can_cancel(self, placed: MemoryBackend, now: datetime) -> None:
        with pytest.raises(NotAuthorized):
            await _orders(placed, now).cancel("order-other")


class TestReorder:
    async def test_cart_is_replaced_and_capped_by_stock(
        self, placed: MemoryBackend, now: datetime
    ) -> None:
        result = await _orders(placed, now).reorder("0a1b2c3d-order-pending")

        assert (result.added, result.unavailable) == (2, 0)
        cart = {c["product_id"]: c["quantity"] for c in placed.rows("cart_items")}
        assert cart == {"p1": 2, "p2": 3}

    async def test_nothing_available(self, placed: MemoryBackend, now: datetime) -> None:
        with pytest.raises(NothingToReorder):
            await _orders(placed, now).reorder("order-shipped")
        assert len(placed.rows("cart_items")) == 2


class TestAdmin:
    async def test_customer_is_not_admin(self, placed: MemoryBackend, now: datetime) -> None:
        with pytest.raises(NotAuthorized):
            await _orders(placed, now).list_orders()

    async def test_list_filters_and_pages(self, placed: MemoryBackend, now: datetime) -> None:
        admin = _orders(placed.bind("admin-token"), now)

        page = await admin.list_orders(OrderFilter(status=OrderStatus.PENDING, limit=1))
        assert page.total_count == 2
        assert page.page_count == 2
        assert [o["id"] for o in page.orders] == ["order-other"]

        dated = await admin.list_orders(OrderFilter(date_from="2026-01-11", date_to="2026-01-11"))
        assert [o["id"] for o in dated.orders] == ["order-other"]

    async def test_status_update_appends_timeline(
        self, placed: MemoryBackend, now: datetime
    ) -> None:
        admin = _orders(placed.bind("admin-token"), now)
        await admin.update_status("order-shipped", OrderStatus.DELIVERED, note="Signed by reader")

        [entry] = placed.rows("order_timeline")
        assert entry["status"] == "delivered"
        assert entry["user_id"] == ADMIN.id
        [activity] = placed.rows("activity_logs")
        assert activity["action_type"] == "update_order_status"

    async def test_unknown_order_status_update(self, placed: MemoryBackend, now: datetime) -> None:
        admin = _orders(placed.bind("admin-token"), now)
        with pytest.raises(NotFound):
            await admin.update_status("missing", OrderStatus.SHIPPED)

    async def test_bulk_update(self, placed: MemoryBackend, now: datetime) -> None:
        admin = _orders(placed.bind("admin-token"), now)
        entries = await admin.bulk_update_status(
            ["0a1b2c3d-order-pending", "order-other"], OrderStatus.PROCESSING
        )
        assert [e["note"] for e in entries] == ["Bulk updated to processing"] * 2
        assert {o["status"] for o in placed.rows("orders") if o["id"] != "order-shipped"} == {
            "processing"
        }

    async def test_notes(self, placed: MemoryBackend, now: datetime) -> None:
        admin = _orders(placed.bind("admin-token"), now)
        note = await admin.add_note("order-other", "Called customer")
        assert note["is_customer_visible"] is False
        await admin.delete_note(note["id"])
        assert all(n["id"] != note["id"] for n in placed.rows("order_notes"))

    async def test_invoice(self, placed: MemoryBackend, now: datetime) -> None:
        admin = _orders(placed.bind("admin-token"), now)
        invoice = await admin.invoice("0a1b2c3d-order-pending")

        assert invoice.number == "INV-0A1B2C3D"
        assert invoice.due_at - invoice.issued_at == timedelta(days=14)
        assert [n["note"] for n in invoice.details.notes] == ["fragile", "fraud check"]

    def test_invoice_number(self) -> None:
        assert invoice_number("abcdef123456") == "INV-ABCDEF12"
