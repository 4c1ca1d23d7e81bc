"""Customer order history and cancellation."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from naaz.api._deps import current_scope
from naaz.app import Scope

router = APIRouter(prefix="/orders", tags=["orders"])


class CancelRequest(BaseModel):
    reason: str | None = None


@router.get("")
async def my_orders(scope: Scope = Depends(current_scope)) -> list[dict[str, Any]]:
    return await scope.orders.customer_orders()


@router.get("/{order_id}")
async def order_details(order_id: str, scope: Scope = Depends(current_scope)) -> dict[str, Any]:
    details = await scope.orders.details(order_id)
    return details.to_dict()


@router.post("/{order_id}/cancel")
async def cancel_order(
    order_id: str,
    request: CancelRequest | None = None,
    scope: Scope = Depends(current_scope),
) -> dict[str, Any]:
    entry = await scope.orders.cancel(order_id, request.reason if request else None)
    return {"status": "cancelled", "timeline_entry": entry}


@router.post("/{order_id}/reorder")
async def reorder(order_id: str, scope: Scope = Depends(current_scope)) -> dict[str, int]:
    result = await scope.orders.reorder(order_id)
    return {"added": result.added, "unavailable": result.unavailable}
