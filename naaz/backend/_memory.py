"""
In-process backend — tables, procedures and functions held in dicts.

Used by the test-suite and the local demo server. Behaves like the hosted
service for everything naaz calls, including the `order-helpers` and
`send-email` functions, and can be told to fail any call.
"""

from __future__ import annotations

import copy
import uuid
from collections import defaultdict
from collections.abc import Callable, Awaitable
from datetime import UTC, datetime
from typing import Any

from naaz._types import Row
from naaz.backend._types import Filter, Order, User
from naaz.errors import BackendError

type Procedure = Callable[[dict[str, Any]], Awaitable[Any]]

# ═══════════════════════════════════════════════════════════════════════════════
# Memory Backend
# ═══════════════════════════════════════════════════════════════════════════════


class MemoryBackend:
    """
    Backend over plain dicts.

    Example:
        backend = MemoryBackend(user=User("u1", "a@example.com"))
        backend.seed("products", [{"id": "p1", "name": "Attar", "price": 500}])
        backend.fail("insert", "order_items")
    """

    def __init__(
        self,
        *,
        user: User | None = None,
        admins: set[str] | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self.user = user
        self.admins = admins if admins is not None else set()
        self.now = now or (lambda: datetime.now(UTC))
        self.tables: dict[str, list[Row]] = defaultdict(list)
        self.transactions: dict[str, str] = {}
        self.issue_transaction_ids = True
        self.sent_emails: list[dict[str, Any]] = []
        self.sessions: dict[str, User] = {}
        self.calls: list[tuple[str, str]] = []
        self._failures: dict[tuple[str, str], Exception] = {}
        self._procedures: dict[str, Procedure] = {
            "begin_transaction": self._begin_transaction,
            "commit_transaction": self._commit_transaction,
            "rollback_transaction": self._rollback_transaction,
            "decrement": self._decrement,
            "is_admin": self._is_admin,
            "update_product_stock": self._update_product_stock,
            "get_product_average_rating": self._average_rating,
            "get_product_review_count": self._review_count,
            "increment_blog_view_count": self._increment_view_count,
        }
        self._functions: dict[str, Procedure] = {
            "order-helpers": self._order_helpers,
            "send-email": self._send_email,
        }

    # ─── Test helpers ───

    def seed(self, table: str, rows: list[Row]) -> None:
        for row in rows:
            self.tables[table].append(self._stamp(dict(row)))

    def rows(self, table: str) -> list[Row]:
        return [dict(r) for r in self.tables[table]]

    def fail(self, kind: str, name: str, error: Exception | None = None) -> None:
        """Make the next and every later `kind` call on `name` raise."""
        self._failures[(kind, name)] = error or BackendError(
            f"{kind} {name}", "injected failure", status=500
        )

    def heal(self, kind: str, name: str) -> None:
        self._failures.pop((kind, name), None)

    def register_rpc(self, name: str, fn: Procedure) -> None:
        self._procedures[name] = fn

    def register_function(self, name: str, fn: Procedure) -> None:
        self._functions[name] = fn

    def _check(self, kind: str, name: str) -> None:
        self.calls.append((kind, name))
        if (kind, name) in self._failures:
            raise self._failures[(kind, name)]

    def _stamp(self, row: Row) -> Row:
        now = self.now().isoformat()
        row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("created_at", now)
        row.setdefault("updated_at", now)
        return row

    # ─── Auth ───

    async def auth_user(self) -> User | None:
        self._check("auth", "user")
        return self.user

    def bind(self, access_token: str | None) -> MemoryBackend:
        bound = copy.copy(self)
        bound.user = self.sessions.get(access_token) if access_token else None
        return bound

    # ─── Tables ───

    async def select(
        self,
        table: str,
        *filters: Filter,
        columns: str = "*",
        order: Order | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Row]:
        self._check("select", table)
        rows = [r for r in self.tables[table] if all(f.matches(r) for f in filters)]
        if order is not None:
            present = [r for r in rows if r.get(order.column) is not None]
            absent = [r for r in rows if r.get(order.column) is None]
            present.sort(key=lambda r: r[order.column], reverse=not order.ascending)
            rows = present + absent
        start = offset or 0
        rows = rows[start : start + limit] if limit is not None else rows[start:]
        if columns != "*":
            wanted = [c.strip() for c in columns.split(",")]
            return [{c: r.get(c) for c in wanted} for r in rows]
        return [copy.deepcopy(r) for r in rows]

    async def insert(self, table: str, rows: Row | list[Row]) -> list[Row]:
        self._check("insert", table)
        batch = [rows] if isinstance(rows, dict) else rows
        stored = [self._stamp(copy.deepcopy(r)) for r in batch]
        self.tables[table].extend(stored)
        return [copy.deepcopy(r) for r in stored]

    async def update(self, table: str, values: Row, *filters: Filter) -> list[Row]:
        self._check("update", table)
        changed: list[Row] = []
        for row in self.tables[table]:
            if all(f.matches(row) for f in filters):
                row.update(copy.deepcopy(values))
                row["updated_at"] = self.now().isoformat()
                changed.append(copy.deepcopy(row))
        return changed

    async def delete(self, table: str, *filters: Filter) -> list[Row]:
        self._check("delete", table)
        kept: list[Row] = []
        removed: list[Row] = []
        for row in self.tables[table]:
            (removed if all(f.matches(row) for f in filters) else kept).append(row)
        self.tables[table] = kept
        return removed

    # ─── Procedures & Functions ───

    async def rpc(self, name: str, params: dict[str, Any] | None = None) -> Any:
        self._check("rpc", name)
        procedure = self._procedures.get(name)
        if procedure is None:
            raise BackendError(f"rpc {name}", "function not found", status=404)
        return await procedure(params or {})

    async def invoke(self, function: str, body: dict[str, Any]) -> Any:
        self._check("invoke", function)
        handler = self._functions.get(function)
        if handler is None:
            raise BackendError(f"invoke {function}", "function not found", status=404)
        return await handler(body)

    def _product(self, product_id: str) -> Row:
        for row in self.tables["products"]:
            if row["id"] == product_id:
                return row
        raise BackendError("products", f"product {product_id} not found", status=404)

    async def _begin_transaction(self, params: dict[str, Any]) -> Any:
        if not self.issue_transaction_ids:
            return None
        transaction_id = str(uuid.uuid4())
        self.transactions[transaction_id] = "open"
        return {"transaction_id": transaction_id}

    async def _commit_transaction(self, params: dict[str, Any]) -> Any:
        self.transactions[params["transaction_id"]] = "committed"
        return True

    async def _rollback_transaction(self, params: dict[str, Any]) -> Any:
        self.transactions[params["transaction_id"]] = "rolled_back"
        return True

    async def _decrement(self, params: dict[str, Any]) -> Any:
        product = self._product(params["product_id"])
        product["quantity_in_stock"] = product.get("quantity_in_stock", 0) - params["inc_amount"]
        return product["quantity_in_stock"]

    async def _is_admin(self, params: dict[str, Any]) -> Any:
        return params.get("user_id") in self.admins

    async def _update_product_stock(self, params: dict[str, Any]) -> Any:
        product = self._product(params["product_uuid"])
        previous = product.get("quantity_in_stock", 0)
        product["quantity_in_stock"] = previous + params["quantity_change"]
        self.tables["stock_history"].append(self._stamp({
            "product_id": product["id"],
            "previous_stock": previous,
            "new_stock": product["quantity_in_stock"],
            "quantity_change": params["quantity_change"],
            "change_reason": params.get("change_reason"),
            "change_type": params.get("change_type_param"),
        }))
        return None

    def _ratings(self, product_id: str) -> list[float]:
        return [
            float(r["rating"])
            for r in self.tables["product_reviews"]
            if r.get("product_id") == product_id
        ]

    async def _average_rating(self, params: dict[str, Any]) -> Any:
        ratings = self._ratings(params["product_uuid"])
        return round(sum(ratings) / len(ratings), 1) if ratings else 0

    async def _review_count(self, params: dict[str, Any]) -> Any:
        return len(self._ratings(params["product_uuid"]))

    async def _increment_view_count(self, params: dict[str, Any]) -> Any:
        for row in self.tables["blog_posts"]:
            if row["id"] == params["post_id"]:
                row["view_count"] = (row.get("view_count") or 0) + 1
        return None

    async def _send_email(self, body: dict[str, Any]) -> Any:
        self.sent_emails.append(dict(body))
        return {"success": True}

    async def _order_helpers(self, body: dict[str, Any]) -> Any:
        action = body.get("action")
        params = body.get("params") or {}
        match action:
            case "getOrderTimeline":
                rows = [r for r in self.tables["order_timeline"] if r["order_id"] == params["orderId"]]
                return sorted(rows, key=lambda r: r["created_at"])
            case "getOrderNotes":
                rows = [r for r in self.tables["order_notes"] if r["order_id"] == params["orderId"]]
                if params.get("customerVisibleOnly"):
                    rows = [r for r in rows if r.get("is_customer_visible")]
                return rows
            case "addOrderNote":
                row = self._stamp({
                    "order_id": params["orderId"],
                    "user_id": params.get("userId"),
                    "note": params["note"],
                    "is_customer_visible": bool(params.get("isCustomerVisible")),
                })
                self.tables["order_notes"].append(row)
                return dict(row)
            case "deleteOrderNote":
                before = len(self.tables["order_notes"])
                self.tables["order_notes"] = [
                    r for r in self.tables["order_notes"] if r["id"] != params["noteId"]
                ]
                return {"deleted": before - len(self.tables["order_notes"])}
            case "addOrderTimelineEntry":
                return dict(self._timeline_row(params))
            case "bulkAddTimelineEntries":
                return [dict(self._timeline_row(p)) for p in params.get("entries", [])]
            case _:
                raise BackendError("invoke order-helpers", f"unknown action {action}", status=400)

    def _timeline_row(self, params: dict[str, Any]) -> Row:
        row = self._stamp({
            "order_id": params["orderId"],
            "status": params["status"],
            "note": params.get("note"),
            "user_id": params.get("userId"),
        })
        self.tables["order_timeline"].append(row)
        return row


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = ("Procedure", "MemoryBackend")
