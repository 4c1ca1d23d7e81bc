"""
Errors — tagged error taxonomy.

Every error raised by naaz carries an ErrorKind fixed at the raise site.
The kind decides the sentence shown to the customer and the HTTP status
the API answers with.

    from naaz.errors import AppError, ErrorKind, user_message

    try:
        await checkout.place_order(data)
    except AppError as e:
        notify(user_message(e))
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any

import httpx
import pydantic

# ═══════════════════════════════════════════════════════════════════════════════
# Error Kind
# ═══════════════════════════════════════════════════════════════════════════════

GENERIC_MESSAGE = "An unexpected error occurred. Please try again."
MAX_RETRY_ATTEMPTS = 3


class ErrorKind(Enum):
    """Error categories with their HTTP status and display sentence."""

    NETWORK = ("network", 503, "Network connection failed. Please check your internet connection.")
    AUTH = ("auth", 401, "Your session has expired. Please sign in again.")
    PERMISSION = ("permission", 403, "You do not have permission to perform this action.")
    NOT_FOUND = ("not_found", 404, "The requested resource was not found.")
    VALIDATION = ("validation", 422, "Please check your input and try again.")
    SERVER = ("server", 500, "Server error. Our team has been notified.")
    BUSINESS = ("business", 409, "")
    UNEXPECTED = ("unexpected", 500, GENERIC_MESSAGE)

    def __init__(self, code: str, http_status: int, display: str) -> None:
        self.code = code
        self.http_status = http_status
        self.display = display


# ═══════════════════════════════════════════════════════════════════════════════
# AppError Hierarchy
# ═══════════════════════════════════════════════════════════════════════════════


class AppError(Exception):
    """Base error. Business errors show their own message, others the kind's sentence."""

    kind: ErrorKind = ErrorKind.UNEXPECTED

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind
        self.details = details or {}

    @property
    def user_message(self) -> str:
        if self.kind is ErrorKind.BUSINESS:
            return sanitize(self.message) or GENERIC_MESSAGE
        return self.kind.display

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.kind.code, "message": self.user_message}


class Unauthenticated(AppError):
    kind = ErrorKind.AUTH

    def __init__(self, message: str = "User not authenticated") -> None:
        super().__init__(message)


class NotAuthorized(AppError):
    kind = ErrorKind.PERMISSION


class NotFound(AppError):
    kind = ErrorKind.NOT_FOUND


class InvalidInput(AppError):
    """Field-level validation failure; details holds {field: [messages]}."""

    kind = ErrorKind.VALIDATION

    def __init__(self, errors: dict[str, list[str]]) -> None:
        joined = ", ".join(m for messages in errors.values() for m in messages)
        super().__init__(f"Validation failed: {joined}", details={"fields": errors})
        self.errors = errors

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "fields": self.errors}


class BusinessError(AppError):
    kind = ErrorKind.BUSINESS


class CartEmpty(BusinessError):
    def __init__(self) -> None:
        super().__init__("Your cart is empty")


class OutOfStock(BusinessError):
    def __init__(self, product_name: str, available: int) -> None:
        super().__init__(
            f"Not enough stock for {product_name}. Only {available} available.",
            details={"product": product_name, "available": available},
        )
        self.product_name = product_name
        self.available = available


class ProductUnavailable(BusinessError):
    def __init__(self, product_id: str) -> None:
        super().__init__(
            "A product in your cart is no longer available",
            details={"product_id": product_id},
        )
        self.product_id = product_id


class InvalidQuantity(BusinessError):
    def __init__(self, product_name: str, quantity: int) -> None:
        super().__init__(
            f"Invalid quantity for {product_name}",
            details={"product": product_name, "quantity": quantity},
        )
        self.product_name = product_name
        self.quantity = quantity


class OrderNotCancellable(BusinessError):
    def __init__(self, status: str) -> None:
        super().__init__("This order cannot be cancelled", details={"status": status})
        self.status = status


class NothingToReorder(BusinessError):
    def __init__(self) -> None:
        super().__init__("None of the products from this order are currently available")


class BackendError(AppError):
    """Failure reported by the remote data service."""

    def __init__(
        self,
        operation: str,
        message: str,
        *,
        status: int | None = None,
        kind: ErrorKind | None = None,
    ) -> None:
        super().__init__(
            f"{operation}: {message}",
            kind=kind or (kind_for_status(status) if status else ErrorKind.SERVER),
            details={"operation": operation, "status": status},
        )
        self.operation = operation
        self.status = status


class ConfigError(AppError):
    kind = ErrorKind.SERVER


# ═══════════════════════════════════════════════════════════════════════════════
# Classification
# ═══════════════════════════════════════════════════════════════════════════════


def kind_for_status(status: int) -> ErrorKind:
    """Map an HTTP status code to an ErrorKind."""
    match status:
        case 401:
            return ErrorKind.AUTH
        case 403:
            return ErrorKind.PERMISSION
        case 404:
            return ErrorKind.NOT_FOUND
        case 400 | 422:
            return ErrorKind.VALIDATION
        case 409:
            return ErrorKind.BUSINESS
        case s if s >= 500:
            return ErrorKind.SERVER
        case _:
            return ErrorKind.UNEXPECTED


def classify(exc: BaseException) -> ErrorKind:
    """Classify an exception by its type, never by its message text."""
    match exc:
        case AppError():
            return exc.kind
        case httpx.HTTPStatusError():
            return kind_for_status(exc.response.status_code)
        case httpx.TransportError() | ConnectionError() | TimeoutError():
            return ErrorKind.NETWORK
        case pydantic.ValidationError():
            return ErrorKind.VALIDATION
        case PermissionError():
            return ErrorKind.PERMISSION
        case _:
            return ErrorKind.UNEXPECTED


_WHITESPACE = re.compile(r"\s+")
_MAX_MESSAGE = 200


def sanitize(text: str) -> str:
    """Collapse whitespace, drop control characters and cap the length."""
    cleaned = "".join(ch for ch in text if ch.isprintable() or ch.isspace())
    cleaned = _WHITESPACE.sub(" ", cleaned).strip()
    if len(cleaned) > _MAX_MESSAGE:
        cleaned = cleaned[: _MAX_MESSAGE - 3].rstrip() + "..."
    return cleaned


def user_message(exc: BaseException) -> str:
    """Customer-facing sentence for any exception."""
    if isinstance(exc, AppError):
        return exc.user_message
    kind = classify(exc)
    if kind is not ErrorKind.UNEXPECTED:
        return kind.display
    return sanitize(str(exc)) or GENERIC_MESSAGE


def as_app_error(exc: Exception) -> AppError:
    """Keep AppErrors as they are, wrap anything else with its classified kind."""
    if isinstance(exc, AppError):
        return exc
    kind = classify(exc)
    wrapped = AppError(str(exc) or type(exc).__name__, kind=kind)
    wrapped.__cause__ = exc
    return wrapped


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "GENERIC_MESSAGE",
    "MAX_RETRY_ATTEMPTS",
    "ErrorKind",
    "AppError",
    "Unauthenticated",
    "NotAuthorized",
    "NotFound",
    "InvalidInput",
    "BusinessError",
    "CartEmpty",
    "OutOfStock",
    "ProductUnavailable",
    "InvalidQuantity",
    "OrderNotCancellable",
    "NothingToReorder",
    "BackendError",
    "ConfigError",
    "kind_for_status",
    "classify",
    "sanitize",
    "user_message",
    "as_app_error",
)
