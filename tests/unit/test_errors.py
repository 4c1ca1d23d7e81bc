"""Tests for error classification and customer-facing messages."""

from __future__ import annotations

import httpx
import pytest

from naaz.errors import (
    GENERIC_MESSAGE,
    AppError,
    BackendError,
    ErrorKind,
    InvalidInput,
    OutOfStock,
    as_app_error,
    classify,
    kind_for_status,
    sanitize,
    user_message,
)


class TestClassification:
    @pytest.mark.parametrize(
        ("status", "kind"),
        [
            (401, ErrorKind.AUTH),
            (403, ErrorKind.PERMISSION),
            (404, ErrorKind.NOT_FOUND),
            (400, ErrorKind.VALIDATION),
            (422, ErrorKind.VALIDATION),
            (409, ErrorKind.BUSINESS),
            (503, ErrorKind.SERVER),
            (418, ErrorKind.UNEXPECTED),
        ],
    )
    def test_kind_for_status(self, status: int, kind: ErrorKind) -> None:
        assert kind_for_status(status) is kind

    def test_classify_by_type(self) -> None:
        request = httpx.Request("GET", "https://db.test")
        assert classify(httpx.ConnectError("refused", request=request)) is ErrorKind.NETWORK
        assert classify(TimeoutError()) is ErrorKind.NETWORK
        assert classify(PermissionError()) is ErrorKind.PERMISSION
        assert classify(ValueError("network is down")) is ErrorKind.UNEXPECTED

    def test_backend_error_kind_from_status(self) -> None:
        assert BackendError("select orders", "jwt expired", status=401).kind is ErrorKind.AUTH
        assert BackendError("select orders", "boom").kind is ErrorKind.SERVER


class TestMessages:
    def test_business_errors_show_their_message(self) -> None:
        error = OutOfStock("Tafsir", 1)
        assert user_message(error) == "Not enough stock for Tafsir. Only 1 available."
        assert error.to_dict() == {
            "error": "business",
            "message": "Not enough stock for Tafsir. Only 1 available.",
        }

    def test_other_errors_show_the_kind_sentence(self) -> None:
        error = BackendError("rpc decrement", "relation does not exist", status=500)
        assert user_message(error) == ErrorKind.SERVER.display

    def test_invalid_input_carries_fields(self) -> None:
        error = InvalidInput({"email": ["Please enter a valid email address"]})
        assert error.to_dict()["fields"] == {"email": ["Please enter a valid email address"]}

    def test_unknown_exception_message_is_sanitised(self) -> None:
        assert user_message(RuntimeError("bad\x00  thing\n happened")) == "bad thing happened"
        assert user_message(RuntimeError("")) == GENERIC_MESSAGE

    def test_sanitize_caps_length(self) -> None:
        cleaned = sanitize("x" * 500)
        assert len(cleaned) == 200
        assert cleaned.endswith("...")

    def test_as_app_error_wraps_and_chains(self) -> None:
        cause = ConnectionError("reset by peer")
        wrapped = as_app_error(cause)
        assert wrapped.kind is ErrorKind.NETWORK
        assert wrapped.__cause__ is cause
        same = AppError("x")
        assert as_app_error(same) is same
