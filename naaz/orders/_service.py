"""
Order service — customer views, cancellation, admin status changes.

Status changes always append to the timeline; existing timeline entries
are never edited.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import structlog

from naaz._types import Row
from naaz.backend import Backend, Order, User, eq, gte, ilike, in_, lt
from naaz.errors import (
    AppError,
    NotAuthorized,
    NotFound,
    NothingToReorder,
    OrderNotCancellable,
    Unauthenticated,
)
from naaz.orders._helpers import OrderHelpers
from naaz.orders._types import (
    CANCELLABLE,
    INVOICE_DUE_DAYS,
    Invoice,
    OrderDetails,
    OrderFilter,
    OrderPage,
    OrderStatus,
    ReorderResult,
    invoice_number,
)

log = structlog.get_logger(__name__)


class OrderService:
    """
    Example:
        orders = OrderService(backend)
        await orders.cancel(order_id, reason="ordered twice")
        await orders.update_status(order_id, OrderStatus.SHIPPED, note="AWB 1234")
    """

    def __init__(
        self,
        backend: Backend,
        *,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self.backend = backend
        self.helpers = OrderHelpers(backend)
        self.now = now or (lambda: datetime.now(UTC))

    # ─── Access ───

    async def _actor(self) -> User:
        user = await self.backend.auth_user()
        if user is None:
            raise Unauthenticated()
        return user

    async def _admin(self) -> User:
        user = await self._actor()
        if not await self.backend.rpc("is_admin", {"user_id": user.id}):
            raise NotAuthorized("Admin access required")
        return user

    async def _order(self, order_id: str) -> Row:
        rows = await self.backend.select("orders", eq("id", order_id), limit=1)
        if not rows:
            raise NotFound(f"Order {order_id} not found")
        return rows[0]

    async def _log_activity(self, user: User, action: str, details: dict[str, Any]) -> None:
        try:
            await self.backend.insert("activity_logs", {
                "action_type": action,
                "details": details,
                "user_id": user.id,
            })
        except AppError as e:
            log.warning("orders.activity_log_failed", action=action, error=str(e))

    # ─── Customer ───

    async def customer_orders(self) -> list[Row]:
        """Newest first, each with its `items`."""
        user = await self._actor()
        orders = await self.backend.select(
            "orders", eq("user_id", user.id), order=Order("created_at", ascending=False)
        )
        if not orders:
            return []
        items = await self.backend.select(
            "order_items", in_("order_id", [o["id"] for o in orders])
        )
        by_order: dict[str, list[Row]] = {}
        for item in items:
            by_order.setdefault(item["order_id"], []).append(item)
        return [{**o, "items": by_order.get(o["id"], [])} for o in orders]

    async def details(self, order_id: str, *, customer_view: bool = True) -> OrderDetails:
        """
        Order with items, addresses, timeline and notes.

        The customer view only returns the caller's own order and only its
        customer-visible notes.
        """
        user = await self._actor()
        order = await self._order(order_id)
        if customer_view and order.get("user_id") != user.id:
            raise NotFound(f"Order {order_id} not found")

        items = await self.backend.select("order_items", eq("order_id", order_id))
        products = {
            p["id"]: p
            for p in await self.backend.select(
                "products",
                in_("id", {i["product_id"] for i in items}),
                columns="id,name,slug,sku",
            )
        } if items else {}

        return OrderDetails(
            order=order,
            items=[{**i, "product": products.get(i["product_id"])} for i in items],
            shipping_address=await self._address(order.get("shipping_address_id")),
            billing_address=await self._address(order.get("billing_address_id")),
            timeline=await self.helpers.get_order_timeline(order_id),
            notes=await self.helpers.get_order_notes(
                order_id, customer_visible_only=customer_view
            ),
        )

    async def _address(self, address_id: str | None) -> Row | None:
        if not address_id:
            return None
        try:
            rows = await self.backend.select("addresses", eq("id", address_id), limit=1)
        except AppError as e:
            log.warning("orders.address_lookup_failed", address_id=address_id, error=str(e))
            return None
        return rows[0] if rows else None

    async def cancel(self, order_id: str, reason: str | None = None) -> Row:
        user = await self._actor()
        order = await self._order(order_id)
        if order.get("user_id") != user.id:
            raise NotAuthorized("Not authorized to cancel this order")
        if order.get("status") not in CANCELLABLE:
            raise OrderNotCancellable(str(order.get("status")))

        await self.backend.update(
            "orders", {"status": OrderStatus.CANCELLED.value}, eq("id", order_id)
        )
        note = f"Cancelled by customer: {reason}" if reason else "Cancelled by customer"
        entry = await self.helpers.add_order_timeline_entry(
            order_id, OrderStatus.CANCELLED.value, note=note, user_id=user.id
        )
        log.info("orders.cancelled", order_id=order_id, previous=order.get("status"))
        return entry

    async def reorder(self, order_id: str) -> ReorderResult:
        """Replace the cart with the order's still-available items, capped by stock."""
        user = await self._actor()
        items = await self.backend.select(
            "order_items", eq("order_id", order_id), columns="product_id,quantity"
        )
        stock = {
            p["id"]: int(p.get("quantity_in_stock") or 0)
            for p in await self.backend.select(
                "products",
                in_("id", {i["product_id"] for i in items}),
                columns="id,quantity_in_stock",
            )
        } if items else {}

        valid: list[Row] = []
        unavailable = 0
        for item in items:
            available = stock.get(item["product_id"], 0)
            if available > 0:
                valid.append({
                    "product_id": item["product_id"],
                    "user_id": user.id,
                    "quantity": min(int(item["quantity"]), available),
                })
            else:
                unavailable += 1

        if not valid:
            raise NothingToReorder()

        await self.backend.delete("cart_items", eq("user_id", user.id))
        await self.backend.insert("cart_items", valid)
        return ReorderResult(added=len(valid), unavailable=unavailable)

    # ─── Admin ───

    async def list_orders(self, filters: OrderFilter | None = None) -> OrderPage:
        await self._admin()
        filters = filters or OrderFilter()
        conditions = []
        if filters.status:
            conditions.append(eq("status", filters.status.value))
        if filters.search:
            conditions.append(ilike("id", f"%{filters.search}%"))
        if filters.date_from:
            conditions.append(gte("created_at", filters.date_from))
        if filters.date_to:
            end = datetime.fromisoformat(filters.date_to) + timedelta(days=1)
            conditions.append(lt("created_at", end.isoformat()))

        total = len(await self.backend.select("orders", *conditions, columns="id"))
        rows = await self.backend.select(
            "orders",
            *conditions,
            order=Order(filters.sort_field, filters.ascending),
            limit=filters.limit,
            offset=filters.offset,
        )
        return OrderPage(
            orders=rows,
            total_count=total,
            page_count=math.ceil(total / filters.limit) if filters.limit else 0,
        )

    async def update_status(
        self,
        order_id: str,
        status: OrderStatus,
        note: str | None = None,
    ) -> Row:
        user = await self._admin()
        changed = await self.backend.update("orders", {"status": status.value}, eq("id", order_id))
        if not changed:
            raise NotFound(f"Order {order_id} not found")
        entry = await self.helpers.add_order_timeline_entry(
            order_id, status.value, note=note, user_id=user.id
        )
        await self._log_activity(
            user, "update_order_status", {"orderId": order_id, "status": status.value, "note": note}
        )
        return entry

    async def bulk_update_status(self, order_ids: list[str], status: OrderStatus) -> list[Row]:
        user = await self._admin()
        if not order_ids:
            return []
        await self.backend.update("orders", {"status": status.value}, in_("id", order_ids))
        entries = await self.helpers.bulk_add_timeline_entries([
            {
                "orderId": order_id,
                "status": status.value,
                "note": f"Bulk updated to {status.value}",
                "userId": user.id,
            }
            for order_id in order_ids
        ])
        await self._log_activity(
            user, "bulk_update_order_status", {"orderIds": order_ids, "status": status.value}
        )
        return entries

    async def add_note(
        self,
        order_id: str,
        note: str,
        *,
        customer_visible: bool = False,
    ) -> Row:
        user = await self._admin()
        return await self.helpers.add_order_note(
            order_id, note, user_id=user.id, customer_visible=customer_visible
        )

    async def delete_note(self, note_id: str) -> None:
        await self._admin()
        await self.helpers.delete_order_note(note_id)

    async def invoice(self, order_id: str) -> Invoice:
        await self._admin()
        issued = self.now()
        return Invoice(
            number=invoice_number(order_id),
            issued_at=issued,
            due_at=issued + timedelta(days=INVOICE_DUE_DAYS),
            details=await self.details(order_id, customer_view=False),
        )


__all__ = ("OrderService",)
