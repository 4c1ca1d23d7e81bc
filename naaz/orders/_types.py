"""
Order types — lifecycle, filters, assembled views.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from naaz._types import Row

# ═══════════════════════════════════════════════════════════════════════════════
# Lifecycle
# ═══════════════════════════════════════════════════════════════════════════════


class OrderStatus(StrEnum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


CANCELLABLE = frozenset({OrderStatus.PENDING, OrderStatus.PROCESSING})

INVOICE_DUE_DAYS = 14

# ═══════════════════════════════════════════════════════════════════════════════
# Admin Listing
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class OrderFilter:
    status: OrderStatus | None = None
    search: str | None = None
    date_from: str | None = None
    date_to: str | None = None
    page: int = 1
    limit: int = 10
    sort_field: str = "created_at"
    ascending: bool = False

    @property
    def offset(self) -> int:
        return (max(self.page, 1) - 1) * self.limit


@dataclass(frozen=True, slots=True)
class OrderPage:
    orders: list[Row]
    total_count: int
    page_count: int


# ═══════════════════════════════════════════════════════════════════════════════
# Assembled Views
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class OrderDetails:
    order: Row
    items: list[Row]
    shipping_address: Row | None
    billing_address: Row | None
    timeline: list[Row] = field(default_factory=list)
    notes: list[Row] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.order,
            "items": self.items,
            "shipping_address": self.shipping_address,
            "billing_address": self.billing_address,
            "timeline": self.timeline,
            "notes": self.notes,
        }


@dataclass(frozen=True, slots=True)
class ReorderResult:
    added: int
    unavailable: int


@dataclass(frozen=True, slots=True)
class Invoice:
    number: str
    issued_at: datetime
    due_at: datetime
    details: OrderDetails

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.details.to_dict(),
            "invoice_number": self.number,
            "invoice_date": self.issued_at.isoformat(),
            "due_date": self.due_at.isoformat(),
        }


def invoice_number(order_id: str) -> str:
    return f"INV-{order_id[:8].upper()}"


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

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
)
