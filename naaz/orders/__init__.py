"""
Orders — lifecycle, timeline and the order-helpers client.

    from naaz import orders as O

    service = O.OrderService(backend)
    await service.cancel(order_id)
"""

from __future__ import annotations

from naaz.orders._types import (
    OrderStatus,
    CANCELLABLE,
    INVOICE_DUE_DAYS,
    OrderFilter,
    OrderPage,
    OrderDetails,
    ReorderResult,
    Invoice,
    invoice_number,
)
from naaz.orders._helpers import FUNCTION, OrderHelpers
from naaz.orders._service import OrderService

__all__ = (
    "OrderStatus",
    "CANCELLABLE",
    "INVOICE_DUE_DAYS",
    "OrderFilter",
    "OrderPage",
    "OrderDetails",
    "ReorderResult",
    "Invoice",
    "invoice_number",
    "FUNCTION",
    "OrderHelpers",
    "OrderService",
)
