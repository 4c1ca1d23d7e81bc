"""
REST backend — httpx client for the hosted data service.

Speaks the PostgREST dialect on /rest/v1, procedures on /rest/v1/rpc,
edge functions on /functions/v1 and the auth API on /auth/v1.
"""

from __future__ import annotations

from typing import Any

import httpx

from naaz._types import Row
from naaz.backend._types import Filter, Order, User
from naaz.errors import BackendError, ErrorKind

# ═══════════════════════════════════════════════════════════════════════════════
# Query Encoding
# ═══════════════════════════════════════════════════════════════════════════════


def _literal(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


_RESERVED = frozenset(',.:()"\\ ')


def _item(value: Any) -> str:
    """A value inside `in.(...)` or `or=(...)`; double-quoted when it holds reserved characters."""
    text = _literal(value)
    if not _RESERVED.intersection(text):
        return text
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def encode_filter(f: Filter, *, nested: bool = False) -> tuple[str, str]:
    """Render a Filter as a PostgREST query parameter."""
    value = _item if nested else _literal
    match f.op:
        case "eq" if f.value is None:
            return f.column, "is.null"
        case "neq" if f.value is None:
            return f.column, "not.is.null"
        case "in":
            return f.column, f"in.({','.join(_item(v) for v in f.value)})"
        case "ilike":
            return f.column, f"ilike.{value(str(f.value).replace('%', '*'))}"
        case "or":
            inner = ",".join(".".join(encode_filter(g, nested=True)) for g in f.value)
            return "or", f"({inner})"
        case op:
            return f.column, f"{op}.{value(f.value)}"


def encode_query(
    filters: tuple[Filter, ...],
    *,
    columns: str | None = None,
    order: Order | None = None,
    limit: int | None = None,
    offset: int | None = None,
) -> list[tuple[str, str]]:
    params = [encode_filter(f) for f in filters]
    if columns is not None:
        params.append(("select", columns))
    if order is not None:
        params.append(("order", f"{order.column}.{'asc' if order.ascending else 'desc'}"))
    if limit is not None:
        params.append(("limit", str(limit)))
    if offset is not None:
        params.append(("offset", str(offset)))
    return params


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or body)
    return str(body)


# ═══════════════════════════════════════════════════════════════════════════════
# REST Backend
# ═══════════════════════════════════════════════════════════════════════════════


class RestBackend:
    """
    Backend over HTTP.

    Example:
        backend = RestBackend(settings.supabase_url, settings.supabase_anon_key)
        scoped = backend.bind(request_token)
        orders = await scoped.select("orders", eq("user_id", user.id))
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        *,
        access_token: str | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = url.rstrip("/")
        self._api_key = api_key
        self._access_token = access_token
        self._client = client or httpx.AsyncClient(base_url=self._url, timeout=timeout)

    def bind(self, access_token: str | None) -> RestBackend:
        return RestBackend(
            self._url,
            self._api_key,
            access_token=access_token,
            client=self._client,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self, prefer: str | None = None) -> dict[str, str]:
        headers = {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._access_token or self._api_key}",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        params: list[tuple[str, str]] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> Any:
        try:
            response = await self._client.request(
                method,
                path,
                params=params,
                json=json,
                headers=self._headers(prefer),
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise BackendError(
                operation,
                _error_message(e.response),
                status=e.response.status_code,
            ) from e
        except httpx.TransportError as e:
            raise BackendError(
                operation,
                str(e) or type(e).__name__,
                kind=ErrorKind.NETWORK,
            ) from e

        if not response.content:
            return None
        return response.json()

    # ─── Auth ───

    async def auth_user(self) -> User | None:
        if self._access_token is None:
            return None
        try:
            body = await self._request("auth user", "GET", "/auth/v1/user")
        except BackendError as e:
            if e.status in (401, 403):
                return None
            raise
        if not body:
            return None
        return User(
            id=body["id"],
            email=body.get("email"),
            metadata=body.get("user_metadata") or {},
        )

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
        params = encode_query(filters, columns=columns, order=order, limit=limit, offset=offset)
        return await self._request(f"select {table}", "GET", f"/rest/v1/{table}", params=params) or []

    async def insert(self, table: str, rows: Row | list[Row]) -> list[Row]:
        body = [rows] if isinstance(rows, dict) else rows
        return await self._request(
            f"insert {table}",
            "POST",
            f"/rest/v1/{table}",
            json=body,
            prefer="return=representation",
        ) or []

    async def update(self, table: str, values: Row, *filters: Filter) -> list[Row]:
        return await self._request(
            f"update {table}",
            "PATCH",
            f"/rest/v1/{table}",
            params=encode_query(filters),
            json=values,
            prefer="return=representation",
        ) or []

    async def delete(self, table: str, *filters: Filter) -> list[Row]:
        return await self._request(
            f"delete {table}",
            "DELETE",
            f"/rest/v1/{table}",
            params=encode_query(filters),
            prefer="return=representation",
        ) or []

    # ─── Procedures & Functions ───

    async def rpc(self, name: str, params: dict[str, Any] | None = None) -> Any:
        return await self._request(
            f"rpc {name}", "POST", f"/rest/v1/rpc/{name}", json=params or {}
        )

    async def invoke(self, function: str, body: dict[str, Any]) -> Any:
        return await self._request(
            f"invoke {function}", "POST", f"/functions/v1/{function}", json=body
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = ("RestBackend", "encode_filter", "encode_query")
