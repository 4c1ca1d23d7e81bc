"""
Pricing — subtotal, coupon discount, tax and total.

    tax   = (subtotal - discount) * TAX_RATE
    total = subtotal + SHIPPING_COST + tax - discount
"""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

from naaz._types import Row
from naaz.checkout._types import (
    CENTS,
    SHIPPING_COST,
    TAX_RATE,
    AppliedCoupon,
    CartLine,
    PricedCart,
)

# ═══════════════════════════════════════════════════════════════════════════════
# Conversions
# ═══════════════════════════════════════════════════════════════════════════════


def money(value: Any) -> Decimal:
    """Decimal with two places; None counts as zero."""
    if value is None:
        return Decimal(0).quantize(CENTS)
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def instant(value: Any) -> datetime | None:
    """Parse a stored timestamp; naive values are taken as UTC."""
    match value:
        case None | "":
            return None
        case datetime():
            parsed = value
        case str():
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        case _:
            return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


# ═══════════════════════════════════════════════════════════════════════════════
# Cart
# ═══════════════════════════════════════════════════════════════════════════════


def cart_line(item: Row, product: Row) -> CartLine:
    price = product.get("sale_price") or product["price"]
    return CartLine(
        cart_item_id=item["id"],
        product_id=product["id"],
        name=product.get("name") or product["id"],
        quantity=int(item["quantity"]),
        unit_price=money(price),
        in_stock=int(product.get("quantity_in_stock") or 0),
    )


def subtotal(lines: tuple[CartLine, ...] | list[CartLine]) -> Decimal:
    return sum((line.total for line in lines), Decimal(0)).quantize(CENTS)


# ═══════════════════════════════════════════════════════════════════════════════
# Coupons
# ═══════════════════════════════════════════════════════════════════════════════


def coupon_problem(coupon: Row, amount: Decimal, now: datetime) -> str | None:
    """
    Why the coupon cannot be applied to `amount`, None when it can.

    A missing start date is open; a missing end date fails the window.
    """
    start = instant(coupon.get("start_date"))
    end = instant(coupon.get("end_date"))
    if (start is not None and start > now) or end is None or end < now:
        return "Coupon is expired or not yet active"
    limit = coupon.get("usage_limit")
    if limit and int(coupon.get("used_count") or 0) >= int(limit):
        return "Coupon usage limit reached"
    minimum = money(coupon.get("min_purchase"))
    if minimum > amount:
        return f"Minimum purchase amount of {minimum} required"
    return None


def coupon_discount(coupon: Row, amount: Decimal) -> Decimal:
    value = money(coupon.get("discount_value"))
    if coupon.get("discount_type") == "percentage":
        return (amount * value / 100).quantize(CENTS, rounding=ROUND_HALF_UP)
    return min(value, amount)


def applied(coupon: Row) -> AppliedCoupon:
    return AppliedCoupon(
        code=coupon["code"],
        discount_type=coupon.get("discount_type") or "fixed",
        discount_value=money(coupon.get("discount_value")),
        used_count=int(coupon.get("used_count") or 0),
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Totals
# ═══════════════════════════════════════════════════════════════════════════════


def price(
    lines: tuple[CartLine, ...],
    coupon: Row | None,
    now: datetime,
) -> PricedCart:
    """
    Price the cart. A coupon that fails any condition is skipped.

    Example:
        cart = price(lines, coupon_row, datetime.now(UTC))
        cart.total  # Decimal("1045.00")
    """
    amount = subtotal(lines)
    discount = Decimal(0).quantize(CENTS)
    used: AppliedCoupon | None = None
    if coupon is not None and coupon_problem(coupon, amount, now) is None:
        discount = coupon_discount(coupon, amount)
        if discount > 0:
            used = applied(coupon)
    tax = ((amount - discount) * TAX_RATE).quantize(CENTS, rounding=ROUND_HALF_UP)
    shipping = SHIPPING_COST.quantize(CENTS)
    return PricedCart(
        lines=lines,
        subtotal=amount,
        discount=discount,
        tax=tax,
        shipping=shipping,
        total=amount + shipping + tax - discount,
        coupon=used,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "money",
    "instant",
    "cart_line",
    "subtotal",
    "coupon_problem",
    "coupon_discount",
    "applied",
    "price",
)
