"""Coupon checks, cart preview and order placement."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel, Field

from naaz import validation as V
from naaz.api._deps import current_scope
from naaz.app import Scope
from naaz.checkout import AddressInput, CheckoutInput
from naaz.errors import InvalidInput

router = APIRouter(tags=["checkout"])


class CouponRequest(BaseModel):
    code: str = Field(min_length=1)
    subtotal: Decimal = Field(ge=0)


class PreviewRequest(BaseModel):
    coupon_code: str | None = None


def _address(address: V.Address) -> AddressInput:
    return AddressInput(
        address_line1=address.address_line1,
        address_line2=address.address_line2,
        city=address.city,
        state=address.state,
        postal_code=address.pincode,
        country=address.country,
        is_default=address.is_default,
    )


def checkout_input(form: V.Checkout) -> CheckoutInput:
    """Validated checkout form to the service input."""
    return CheckoutInput(
        shipping_address=_address(form.shipping_address),
        billing_address=_address(form.billing_address) if form.billing_address else None,
        same_as_billing=form.use_same_address,
        payment_method=form.payment_method,
        coupon_code=form.coupon_code or None,
        notes=form.notes or None,
    )


@router.post("/coupons/validate")
async def validate_coupon(
    request: CouponRequest,
    scope: Scope = Depends(current_scope),
) -> dict[str, Any]:
    result = await scope.coupons.validate(request.code, request.subtotal)
    return result.to_dict()


@router.post("/checkout/preview")
async def preview(
    request: PreviewRequest,
    scope: Scope = Depends(current_scope),
) -> dict[str, Any]:
    priced = await scope.checkout.preview(request.coupon_code)
    return priced.to_dict()


@router.post("/checkout", status_code=201)
async def place_order(
    payload: dict[str, Any] = Body(...),
    scope: Scope = Depends(current_scope),
) -> dict[str, Any]:
    result = V.validate(V.Checkout, payload)
    if not result.ok or result.data is None:
        raise InvalidInput(result.errors)
    receipt = await scope.checkout.place_order(checkout_input(result.data))
    return receipt.to_dict()
