"""
Checkout types — inputs, priced cart, receipts.

Money is Decimal, rounded to two places at every boundary.
"""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from decimal import Decimal
from typing import Any

from naaz._types import Row

# ═══════════════════════════════════════════════════════════════════════════════
# Fixed Pricing Constants
# ═══════════════════════════════════════════════════════════════════════════════

SHIPPING_COST = Decimal(100)
TAX_RATE = Decimal("0.05")
CENTS = Decimal("0.01")

# ═══════════════════════════════════════════════════════════════════════════════
# Input
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class AddressInput:
    address_line1: str
    city: str
    state: str
    postal_code: str
    country: str = "India"
    address_line2: str | None = None
    is_default: bool = False

    def to_row(self, user_id: str) -> Row:
        return {**asdict(self), "user_id": user_id}


@dataclass(frozen=True, slots=True)
class CheckoutInput:
    """
    Example:
        CheckoutInput(
            shipping_address=AddressInput("12 MG Road", "Pune", "MH", "411001"),
            payment_method="cod",
            coupon_code="WELCOME10",
        )
    """

    shipping_address: AddressInput
    payment_method: str
    billing_address: AddressInput | None = None
    same_as_billing: bool = True
    coupon_code: str | None = None
    notes: str | None = None

    @property
    def billing(self) -> AddressInput:
        if self.same_as_billing or self.billing_address is None:
            return self.shipping_address
        return self.billing_address


# ═══════════════════════════════════════════════════════════════════════════════
# Priced Cart
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CartLine:
    """Cart row joined with the live product snapshot."""

    cart_item_id: str
    product_id: str
    name: str
    quantity: int
    unit_price: Decimal
    in_stock: int

    @property
    def total(self) -> Decimal:
        return (self.unit_price * self.quantity).quantize(CENTS)

    def to_order_item(self, order_id: str) -> Row:
        return {
            "order_id": order_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "price_per_unit": float(self.unit_price),
            "total_price": float(self.total),
        }


@dataclass(frozen=True, slots=True)
class AppliedCoupon:
    code: str
    discount_type: str
    discount_value: Decimal
    used_count: int


@dataclass(frozen=True, slots=True)
class PricedCart:
    lines: tuple[CartLine, ...]
    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    shipping: Decimal
    total: Decimal
    coupon: AppliedCoupon | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": [
                {
                    "product_id": line.product_id,
                    "name": line.name,
                    "quantity": line.quantity,
                    "price_per_unit": str(line.unit_price),
                    "total_price": str(line.total),
                }
                for line in self.lines
            ],
            "subtotal": str(self.subtotal),
            "discount": str(self.discount),
            "tax": str(self.tax),
            "shipping": str(self.shipping),
            "total": str(self.total),
            "coupon_code": self.coupon.code if self.coupon else None,
        }


# ═══════════════════════════════════════════════════════════════════════════════
# Results
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CheckoutReceipt:
    order_id: str
    total: Decimal
    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    shipping: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "order_id": self.order_id,
            "total": str(self.total),
            "subtotal": str(self.subtotal),
            "discount": str(self.discount),
            "tax": str(self.tax),
            "shipping": str(self.shipping),
        }


@dataclass(frozen=True, slots=True)
class CouponValidation:
    success: bool
    subtotal: Decimal
    discount: Decimal = Decimal(0)
    code: str | None = None
    discount_type: str | None = None
    discount_value: Decimal | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "subtotal": str(self.subtotal),
            "discount": str(self.discount),
            "coupon": (
                {
                    "code": self.code,
                    "discount_type": self.discount_type,
                    "discount_value": str(self.discount_value),
                }
                if self.success
                else None
            ),
            "error": self.error,
        }


@dataclass(slots=True)
class CheckoutState:
    """Values produced by earlier saga steps, read by later ones."""

    user_id: str
    transaction_id: str | None = None
    shipping_address: Row = field(default_factory=dict)
    billing_address: Row = field(default_factory=dict)
    order: Row = field(default_factory=dict)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "SHIPPING_COST",
    "TAX_RATE",
    "CENTS",
    "AddressInput",
    "CheckoutInput",
    "CartLine",
    "AppliedCoupon",
    "PricedCart",
    "CheckoutReceipt",
    "CouponValidation",
    "CheckoutState",
)
