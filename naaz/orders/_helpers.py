"""
Client for the multiplexed `order-helpers` function.

Every call is `invoke("order-helpers", {"action": ..., "params": {...}})`
with camelCase params.
"""

from __future__ import annotations

from typing import Any

from naaz._types import Row
from naaz.backend import Backend

FUNCTION = "order-helpers"


class OrderHelpers:
    def __init__(self, backend: Backend) -> None:
        self.backend = backend

    async def _call(self, action: str, **params: Any) -> Any:
        return await self.backend.invoke(FUNCTION, {"action": action, "params": params})

    async def get_order_timeline(self, order_id: str) -> list[Row]:
        return list(await self._call("getOrderTimeline", orderId=order_id) or [])

    async def get_order_notes(
        self,
        order_id: str,
        *,
        customer_visible_only: bool = False,
    ) -> list[Row]:
        return list(await self._call(
            "getOrderNotes",
            orderId=order_id,
            customerVisibleOnly=customer_visible_only,
        ) or [])

    async def add_order_note(
        self,
        order_id: str,
        note: str,
        *,
        user_id: str | None = None,
        customer_visible: bool = False,
    ) -> Row:
        return await self._call(
            "addOrderNote",
            orderId=order_id,
            userId=user_id,
            note=note,
            isCustomerVisible=customer_visible,
        )

    async def delete_order_note(self, note_id: str) -> Any:
        return await self._call("deleteOrderNote", noteId=note_id)

    async def add_order_timeline_entry(
        self,
        order_id: str,
        status: str,
        *,
        note: str | None = None,
        user_id: str | None = None,
    ) -> Row:
        return await self._call(
            "addOrderTimelineEntry",
            orderId=order_id,
            status=status,
            note=note,
            userId=user_id,
        )

    async def bulk_add_timeline_entries(self, entries: list[dict[str, Any]]) -> list[Row]:
        """Entries use the same camelCase keys as add_order_timeline_entry."""
        return list(await self._call("bulkAddTimelineEntries", entries=entries) or [])


__all__ = ("FUNCTION", "OrderHelpers")
