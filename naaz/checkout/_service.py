"""
Checkout — cart to persisted order, with compensating rollback.

The read phase (actor, cart, stock gate, pricing) writes nothing. The write
phase is one saga sequence; the first failing step unwinds every step that
already ran, newest first, and the step's error is raised to the caller.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import structlog
from kungfu import Ok, Error

from naaz import lift as L
from naaz import saga as S
from naaz._types import Row
from naaz.backend import Backend, User, eq, in_
from naaz.checkout._coupons import CouponService
from naaz.checkout._pricing import cart_line, price
from naaz.checkout._types import (
    AddressInput,
    AppliedCoupon,
    CartLine,
    CheckoutInput,
    CheckoutReceipt,
    CheckoutState,
    PricedCart,
)
from naaz.errors import (
    AppError,
    CartEmpty,
    InvalidQuantity,
    OutOfStock,
    ProductUnavailable,
    Unauthenticated,
)
from naaz.orders import OrderHelpers

log = structlog.get_logger(__name__)

ROLLBACK_REASON = "Checkout rollback"

# ═══════════════════════════════════════════════════════════════════════════════
# Checkout Service
# ═══════════════════════════════════════════════════════════════════════════════


class CheckoutService:
    """
    Example:
        checkout = CheckoutService(backend)
        receipt = await checkout.place_order(CheckoutInput(address, "cod"))
        receipt.order_id
    """

    def __init__(
        self,
        backend: Backend,
        *,
        coupons: CouponService | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self.backend = backend
        self.now = now or (lambda: datetime.now(UTC))
        self.coupons = coupons or CouponService(backend, now=self.now)
        self.helpers = OrderHelpers(backend)

    # ─── Read phase ───

    async def _actor(self) -> User:
        user = await self.backend.auth_user()
        if user is None:
            raise Unauthenticated()
        return user

    async def cart(self, user_id: str) -> tuple[CartLine, ...]:
        """Cart rows joined with live products; raises CartEmpty or ProductUnavailable."""
        items = await self.backend.select("cart_items", eq("user_id", user_id))
        if not items:
            raise CartEmpty()
        products = {
            row["id"]: row
            for row in await self.backend.select(
                "products", in_("id", {item["product_id"] for item in items})
            )
        }
        for item in items:
            if item["product_id"] not in products:
                raise ProductUnavailable(item["product_id"])
        return tuple(cart_line(item, products[item["product_id"]]) for item in items)

    @staticmethod
    def check_stock(lines: tuple[CartLine, ...]) -> None:
        for line in lines:
            if line.quantity < 1:
                raise InvalidQuantity(line.name, line.quantity)
            if line.quantity > line.in_stock:
                raise OutOfStock(line.name, line.in_stock)

    async def _coupon(self, code: str | None) -> Row | None:
        if not code:
            return None
        try:
            return await self.coupons.find_active(code)
        except AppError as e:
            log.warning("checkout.coupon_lookup_failed", code=code, error=str(e))
            return None

    async def preview(self, coupon_code: str | None = None) -> PricedCart:
        """Priced cart for the signed-in user; nothing is written."""
        user = await self._actor()
        lines = await self.cart(user.id)
        self.check_stock(lines)
        return price(lines, await self._coupon(coupon_code), self.now())

    # ─── Write phase ───

    async def place_order(self, data: CheckoutInput) -> CheckoutReceipt:
        user = await self._actor()
        lines = await self.cart(user.id)
        self.check_stock(lines)
        priced = price(lines, await self._coupon(data.coupon_code), self.now())

        state = CheckoutState(user_id=user.id)
        flow = S.sequence(*self._steps(state, priced, data))

        match await S.run_sequence(flow):
            case Ok(result):
                log.info(
                    "checkout.placed",
                    order_id=state.order["id"],
                    steps=result.steps_executed,
                    total=str(priced.total),
                )
            case Error(failure):
                log.error(
                    "checkout.failed",
                    step=failure.step_name,
                    error=str(failure.error),
                    compensators_run=failure.compensators_run,
                    compensators_failed=failure.compensators_failed,
                    rollback_complete=failure.rollback_complete,
                )
                raise failure.error

        await self._audit(state, priced)
        return CheckoutReceipt(
            order_id=state.order["id"],
            total=priced.total,
            subtotal=priced.subtotal,
            discount=priced.discount,
            tax=priced.tax,
            shipping=priced.shipping,
        )

    def _steps(
        self,
        state: CheckoutState,
        priced: PricedCart,
        data: CheckoutInput,
    ) -> list[S.SagaStep[Any, AppError]]:
        steps: list[S.SagaStep[Any, AppError]] = []

        if priced.coupon is not None:
            steps.append(S.step(
                L.remote(lambda coupon=priced.coupon: self._claim_coupon(coupon)),
                self._release_coupon,
                name="claim_coupon",
            ))

        steps.append(S.step(
            L.remote(lambda: self._begin(state)),
            self._rollback,
            name="begin_transaction",
        ))
        steps.append(S.step(
            L.remote(lambda: self._save_address(state, data.shipping_address, "shipping")),
            self._delete_address,
            name="save_shipping_address",
        ))
        if data.billing is not data.shipping_address:
            steps.append(S.step(
                L.remote(lambda: self._save_address(state, data.billing, "billing")),
                self._delete_address,
                name="save_billing_address",
            ))

        steps.append(S.step(
            L.remote(lambda: self._insert_order(state, priced, data)),
            self._delete_order,
            name="insert_order",
        ))
        steps.append(S.step(
            L.remote(lambda: self._insert_items(state, priced)),
            self._delete_items,
            name="insert_order_items",
        ))
        if data.notes:
            steps.append(S.step(
                L.remote(lambda: self._add_note(state, data.notes or "")),
                self._delete_note,
                name="add_customer_note",
            ))

        for line in priced.lines:
            steps.append(S.step(
                L.remote(lambda line=line: self._decrement(line)),
                self._restore_stock,
                name=f"decrement_stock:{line.product_id}",
            ))

        steps.append(S.step(
            L.remote(lambda: self._clear_cart(state)),
            self._restore_cart,
            name="clear_cart",
        ))
        steps.append(S.step(
            L.remote(lambda: self._commit(state)),
            name="commit_transaction",
        ))
        return steps

    # ─── Steps and their compensators ───

    async def _claim_coupon(self, coupon: AppliedCoupon) -> AppliedCoupon:
        await self.backend.update(
            "coupons", {"used_count": coupon.used_count + 1}, eq("code", coupon.code)
        )
        return coupon

    async def _release_coupon(self, coupon: AppliedCoupon) -> None:
        await self.backend.update(
            "coupons", {"used_count": coupon.used_count}, eq("code", coupon.code)
        )

    async def _begin(self, state: CheckoutState) -> str | None:
        result = await self.backend.rpc("begin_transaction")
        if isinstance(result, dict):
            state.transaction_id = result.get("transaction_id") or None
        return state.transaction_id

    async def _rollback(self, transaction_id: str | None) -> None:
        if transaction_id is None:
            log.warning("checkout.rollback_without_transaction")
            return
        await self.backend.rpc("rollback_transaction", {"transaction_id": transaction_id})

    async def _save_address(
        self,
        state: CheckoutState,
        address: AddressInput,
        kind: str,
    ) -> Row:
        rows = await self.backend.insert("addresses", address.to_row(state.user_id))
        row = rows[0]
        if kind == "shipping":
            state.shipping_address = row
        else:
            state.billing_address = row
        return row

    async def _delete_address(self, row: Row) -> None:
        await self.backend.delete("addresses", eq("id", row["id"]))

    async def _insert_order(
        self,
        state: CheckoutState,
        priced: PricedCart,
        data: CheckoutInput,
    ) -> Row:
        rows = await self.backend.insert("orders", {
            "user_id": state.user_id,
            "status": "pending",
            "total_amount": float(priced.total),
            "shipping_address_id": state.shipping_address["id"],
            "billing_address_id": (state.billing_address or state.shipping_address)["id"],
            "shipping_cost": float(priced.shipping),
            "tax_amount": float(priced.tax),
            "discount_amount": float(priced.discount),
            "payment_method": data.payment_method,
            "payment_status": "pending",
            "coupon_code": data.coupon_code or None,
        })
        state.order = rows[0]
        return state.order

    async def _delete_order(self, order: Row) -> None:
        await self.backend.delete("orders", eq("id", order["id"]))

    async def _insert_items(self, state: CheckoutState, priced: PricedCart) -> str:
        order_id = state.order["id"]
        await self.backend.insert(
            "order_items", [line.to_order_item(order_id) for line in priced.lines]
        )
        return order_id

    async def _delete_items(self, order_id: str) -> None:
        await self.backend.delete("order_items", eq("order_id", order_id))

    async def _add_note(self, state: CheckoutState, note: str) -> Row:
        return await self.helpers.add_order_note(
            state.order["id"], note, user_id=state.user_id, customer_visible=True
        )

    async def _delete_note(self, note: Row) -> None:
        await self.helpers.delete_order_note(note["id"])

    async def _decrement(self, line: CartLine) -> CartLine:
        await self.backend.rpc(
            "decrement", {"product_id": line.product_id, "inc_amount": line.quantity}
        )
        return line

    async def _restore_stock(self, line: CartLine) -> None:
        await self.backend.rpc("update_product_stock", {
            "product_uuid": line.product_id,
            "quantity_change": line.quantity,
            "change_reason": ROLLBACK_REASON,
            "change_type_param": "return",
        })

    async def _clear_cart(self, state: CheckoutState) -> list[Row]:
        return await self.backend.delete("cart_items", eq("user_id", state.user_id))

    async def _restore_cart(self, rows: list[Row]) -> None:
        if rows:
            await self.backend.insert("cart_items", rows)

    async def _commit(self, state: CheckoutState) -> None:
        if state.transaction_id is not None:
            await self.backend.rpc(
                "commit_transaction", {"transaction_id": state.transaction_id}
            )

    async def _audit(self, state: CheckoutState, priced: PricedCart) -> None:
        try:
            await self.backend.insert("activity_logs", {
                "action_type": "place_order",
                "details": {"order_id": state.order["id"], "total": float(priced.total)},
                "user_id": state.user_id,
            })
        except AppError as e:
            log.warning("checkout.audit_failed", order_id=state.order["id"], error=str(e))


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = ("ROLLBACK_REASON", "CheckoutService")
