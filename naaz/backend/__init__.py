"""
Backend — the remote data service.

    from naaz import backend as B

    rows = await db.select("orders", B.eq("user_id", uid), order=B.Order("created_at", False))
"""

from __future__ import annotations

from naaz.backend._types import (
    FilterOp,
    Filter,
    Order,
    eq,
    neq,
    in_,
    gt,
    gte,
    lt,
    lte,
    ilike,
    or_,
    User,
    Backend,
)
from naaz.backend._memory import MemoryBackend
from naaz.backend._rest import RestBackend, encode_filter, encode_query

__all__ = (
    "FilterOp",
    "Filter",
    "Order",
    "eq",
    "neq",
    "in_",
    "gt",
    "gte",
    "lt",
    "lte",
    "ilike",
    "or_",
    "User",
    "Backend",
    "MemoryBackend",
    "RestBackend",
    "encode_filter",
    "encode_query",
)
