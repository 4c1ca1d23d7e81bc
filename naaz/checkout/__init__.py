"""
Checkout — pricing, coupons and the order-placing saga.

    from naaz import checkout as K

    checkout = K.CheckoutService(backend)
    receipt = await checkout.place_order(
        K.CheckoutInput(K.AddressInput("12 MG Road", "Pune", "MH", "411001"), "cod")
    )
"""

from __future__ import annotations

from naaz.checkout._types import (
    SHIPPING_COST,
    TAX_RATE,
    CENTS,
    AddressInput,
    CheckoutInput,
    CartLine,
    AppliedCoupon,
    PricedCart,
    CheckoutReceipt,
    CouponValidation,
    CheckoutState,
)
from naaz.checkout._pricing import (
    money,
    instant,
    cart_line,
    subtotal,
    coupon_problem,
    coupon_discount,
    price,
)
from naaz.checkout._coupons import INVALID_CODE, CouponService
from naaz.checkout._service import ROLLBACK_REASON, CheckoutService

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
    "money",
    "instant",
    "cart_line",
    "subtotal",
    "coupon_problem",
    "coupon_discount",
    "price",
    "INVALID_CODE",
    "CouponService",
    "ROLLBACK_REASON",
    "CheckoutService",
)
