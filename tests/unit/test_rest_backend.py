"""Tests for the REST backend: query encoding and error mapping."""

from __future__ import annotations

import json

import httpx
import pytest

from naaz.backend import (
    Order,
    RestBackend,
    encode_filter,
    encode_query,
    eq,
    ilike,
    in_,
    lt,
    neq,
    or_,
)
from naaz.errors import BackendError, ErrorKind

BASE_URL = "https://shop.example.co"


def _backend(handler, token: str | None = None) -> RestBackend:
    client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    return RestBackend(BASE_URL, "anon-key", access_token=token, client=client)


class TestEncoding:
    def test_filters(self) -> None:
        assert encode_filter(eq("is_active", True)) == ("is_active", "eq.true")
        assert encode_filter(eq("deleted_at", None)) == ("deleted_at", "is.null")
        assert encode_filter(neq("deleted_at", None)) == ("deleted_at", "not.is.null")
        assert encode_filter(in_("id", ["a", "b"])) == ("id", "in.(a,b)")
        assert encode_filter(ilike("name", "%quran%")) == ("name", "ilike.*quran*")
        assert encode_filter(lt("created_at", "2026-01-02")) == ("created_at", "lt.2026-01-02")

    def test_or(self) -> None:
        f = or_(ilike("title", "%x%"), ilike("content", "%x%"))
        assert encode_filter(f) == ("or", "(title.ilike.*x*,content.ilike.*x*)")

    def test_reserved_characters_are_quoted(self) -> None:
        assert encode_filter(in_("slug", ["a,b", 'say "hi"'])) == (
            "slug",
            'in.("a,b","say \\"hi\\"")',
        )
        f = or_(ilike("title", "%fiqh (vol 1)%"), ilike("content", "%a,b%"))
        assert encode_filter(f) == (
            "or",
            '(title.ilike."*fiqh (vol 1)*",content.ilike."*a,b*")',
        )

    def test_query(self) -> None:
        params = encode_query(
            (eq("user_id", "u1"),),
            columns="id,status",
            order=Order("created_at", ascending=False),
            limit=10,
            offset=20,
        )
        assert params == [
            ("user_id", "eq.u1"),
            ("select", "id,status"),
            ("order", "created_at.desc"),
            ("limit", "10"),
            ("offset", "20"),
        ]


class TestRequests:
    async def test_select_sends_key_and_token(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[{"id": "o1"}])

        rows = await _backend(handler, token="user-jwt").select("orders", eq("id", "o1"))

        assert rows == [{"id": "o1"}]
        [request] = seen
        assert request.url.path == "/rest/v1/orders"
        assert request.url.params["id"] == "eq.o1"
        assert request.headers["apikey"] == "anon-key"
        assert request.headers["authorization"] == "Bearer user-jwt"

    async def test_insert_asks_for_representation(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["prefer"] == "return=representation"
            return httpx.Response(201, json=json.loads(request.content))

        rows = await _backend(handler).insert("orders", {"status": "pending"})
        assert rows == [{"status": "pending"}]

    async def test_rpc_and_empty_body(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/rest/v1/rpc/commit_transaction"
            return httpx.Response(204)

        assert await _backend(handler).rpc("commit_transaction", {"transaction_id": "t1"}) is None

    async def test_status_errors_are_classified(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(409, json={"message": "duplicate key"})

        with pytest.raises(BackendError) as info:
            await _backend(handler).insert("coupons", {"code": "X"})

        assert info.value.kind is ErrorKind.BUSINESS
        assert info.value.status == 409
        assert "duplicate key" in str(info.value)

    async def test_transport_errors_are_network(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(BackendError) as info:
            await _backend(handler).select("products")
        assert info.value.kind is ErrorKind.NETWORK


class TestAuth:
    async def test_no_token_means_signed_out(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        assert await _backend(handler).auth_user() is None

    async def test_user(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, json={"id": "u1", "email": "a@example.com", "user_metadata": {"role": "x"}}
            )

        user = await _backend(handler, token="jwt").auth_user()
        assert user is not None
        assert (user.id, user.email, user.metadata) == ("u1", "a@example.com", {"role": "x"})

    async def test_expired_token_means_signed_out(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"message": "JWT expired"})

        assert await _backend(handler, token="old").auth_user() is None

    async def test_bind_shares_the_client(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"id": "u2"})

        backend = _backend(handler)
        bound = backend.bind("jwt")
        assert bound._client is backend._client
        assert (await bound.auth_user()).id == "u2"
