"""
Backend types — the remote data service seen through a protocol.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Protocol

from naaz._types import Row

# ═══════════════════════════════════════════════════════════════════════════════
# Query Pieces
# ═══════════════════════════════════════════════════════════════════════════════

type FilterOp = Literal["eq", "neq", "in", "gt", "gte", "lt", "lte", "ilike", "or"]


@dataclass(frozen=True, slots=True)
class Filter:
    """Column predicate, rendered as `column=op.value` on the REST surface."""

    column: str
    op: FilterOp
    value: Any

    def matches(self, row: Row) -> bool:
        if self.op == "or":
            return any(f.matches(row) for f in self.value)
        actual = row.get(self.column)
        match self.op:
            case "eq":
                return actual == self.value
            case "neq":
                return actual != self.value
            case "in":
                return actual in self.value
            case "ilike":
                if actual is None:
                    return False
                needle = str(self.value).strip("%").lower()
                return needle in str(actual).lower()
        if actual is None:
            return False
        match self.op:
            case "gt":
                return actual > self.value
            case "gte":
                return actual >= self.value
            case "lt":
                return actual < self.value
            case "lte":
                return actual <= self.value
        return False


@dataclass(frozen=True, slots=True)
class Order:
    column: str
    ascending: bool = True


def eq(column: str, value: Any) -> Filter:
    return Filter(column, "eq", value)


def neq(column: str, value: Any) -> Filter:
    return Filter(column, "neq", value)


def in_(column: str, values: Any) -> Filter:
    return Filter(column, "in", tuple(values))


def gt(column: str, value: Any) -> Filter:
    return Filter(column, "gt", value)


def gte(column: str, value: Any) -> Filter:
    return Filter(column, "gte", value)


def lt(column: str, value: Any) -> Filter:
    return Filter(column, "lt", value)


def lte(column: str, value: Any) -> Filter:
    return Filter(column, "lte", value)


def ilike(column: str, pattern: str) -> Filter:
    return Filter(column, "ilike", pattern)


def or_(*filters: Filter) -> Filter:
    """Any of the filters matches."""
    return Filter("or", "or", tuple(filters))


# ═══════════════════════════════════════════════════════════════════════════════
# Authenticated User
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class User:
    id: str
    email: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


# ═══════════════════════════════════════════════════════════════════════════════
# Backend Protocol
# ═══════════════════════════════════════════════════════════════════════════════


class Backend(Protocol):
    """
    Remote data service: auth, table access, named procedures, functions.

    Every method raises BackendError on failure.
    """

    async def auth_user(self) -> User | None:
        """Currently authenticated user, None when signed out."""
        ...

    async def select(
        self,
        table: str,
        *filters: Filter,
        columns: str = "*",
        order: Order | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Row]:
        ...

    async def insert(self, table: str, rows: Row | list[Row]) -> list[Row]:
        """Insert and return the stored rows (with generated id/created_at)."""
        ...

    async def update(self, table: str, values: Row, *filters: Filter) -> list[Row]:
        ...

    async def delete(self, table: str, *filters: Filter) -> list[Row]:
        ...

    async def rpc(self, name: str, params: dict[str, Any] | None = None) -> Any:
        ...

    async def invoke(self, function: str, body: dict[str, Any]) -> Any:
        ...

    def bind(self, access_token: str | None) -> Backend:
        """Same backend acting on behalf of the given access token."""
        ...


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

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
)
