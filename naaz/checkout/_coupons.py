"""
Coupon lookup and pre-validation.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from decimal import Decimal

from naaz._types import Row
from naaz.backend import Backend, eq
from naaz.checkout._pricing import coupon_discount, coupon_problem, money
from naaz.checkout._types import CouponValidation
from naaz.errors import AppError

INVALID_CODE = "Invalid coupon code"


class CouponService:
    """
    Example:
        result = await coupons.validate("WELCOME10", Decimal("1000"))
        result.discount  # Decimal("100.00")
    """

    def __init__(
        self,
        backend: Backend,
        *,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self.backend = backend
        self.now = now or (lambda: datetime.now(UTC))

    async def find_active(self, code: str) -> Row | None:
        rows = await self.backend.select(
            "coupons", eq("code", code), eq("is_active", True), limit=1
        )
        return rows[0] if rows else None

    async def validate(self, code: str, subtotal: Decimal) -> CouponValidation:
        """Never raises; the failure reason is in `.error`."""
        amount = money(subtotal)
        try:
            coupon = await self.find_active(code)
        except AppError:
            coupon = None
        if coupon is None:
            return CouponValidation(success=False, subtotal=amount, error=INVALID_CODE)

        problem = coupon_problem(coupon, amount, self.now())
        if problem is not None:
            return CouponValidation(success=False, subtotal=amount, error=problem)

        return CouponValidation(
            success=True,
            subtotal=amount,
            discount=coupon_discount(coupon, amount),
            code=coupon["code"],
            discount_type=coupon.get("discount_type"),
            discount_value=money(coupon.get("discount_value")),
        )


__all__ = ("INVALID_CODE", "CouponService")
