"""
Field rules shared by the schemas.

Each rule is an annotated type; the first failing check reports its message.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import Annotated, Any

from pydantic import AfterValidator
from pydantic_core import PydanticCustomError

# ═══════════════════════════════════════════════════════════════════════════════
# Patterns & Messages
# ═══════════════════════════════════════════════════════════════════════════════

EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE = re.compile(r"^[+]?[1-9]\d{0,15}$")
STRONG_PASSWORD = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]")
INDIAN_PHONE = re.compile(r"^(\+91[-\s]?)?[0]?(91)?[6789]\d{9}$")
PINCODE = re.compile(r"^[1-9][0-9]{5}$")
NAME = re.compile(r"^[a-zA-Z\s]+$")
PROMO_CODE = re.compile(r"^[A-Z0-9]+$")

REQUIRED = "This field is required"
INVALID_EMAIL = "Please enter a valid email address"
INVALID_PHONE = "Please enter a valid phone number"
WEAK_PASSWORD = (
    "Password must contain at least 8 characters, including uppercase, "
    "lowercase, number, and special character"
)
INVALID_PINCODE = "Please enter a valid 6-digit pincode"
INVALID_INDIAN_PHONE = "Please enter a valid Indian phone number"
INVALID_NAME = "Name can only contain letters and spaces"
POSITIVE = "Must be a positive number"
WHOLE_NUMBER = "Must be a whole number"


def min_length(n: int) -> str:
    return f"Must be at least {n} characters long"


def max_length(n: int) -> str:
    return f"Must be no more than {n} characters long"


def at_least(n: float) -> str:
    return f"Must be at least {n:g}"


def at_most(n: float) -> str:
    return f"Must be no more than {n:g}"


# ═══════════════════════════════════════════════════════════════════════════════
# Checks
# ═══════════════════════════════════════════════════════════════════════════════


def fail(message: str, code: str = "rule") -> PydanticCustomError:
    return PydanticCustomError(code, message)


def text(
    *,
    required: bool = True,
    min_len: int | None = None,
    max_len: int | None = None,
    pattern: re.Pattern[str] | None = None,
    message: str | None = None,
    required_message: str = REQUIRED,
) -> Callable[[Any], Any]:
    """String check; optional fields accept None and the empty string."""

    def check(value: Any) -> Any:
        if value is None or value == "":
            if required:
                raise fail(required_message, "required")
            return value
        if min_len is not None and len(value) < min_len:
            raise fail(min_length(min_len), "min_length")
        if max_len is not None and len(value) > max_len:
            raise fail(max_length(max_len), "max_length")
        if pattern is not None and not pattern.search(value):
            raise fail(message or "Invalid format", "pattern")
        return value

    return check


def number(
    *,
    low: float | None = None,
    high: float | None = None,
    low_message: str | None = None,
    high_message: str | None = None,
    whole: bool = False,
) -> Callable[[Any], Any]:
    def check(value: Any) -> Any:
        if value is None:
            return value
        if whole and value != int(value):
            raise fail(WHOLE_NUMBER, "whole_number")
        if low is not None and value < low:
            raise fail(low_message or at_least(low), "too_small")
        if high is not None and value > high:
            raise fail(high_message or at_most(high), "too_big")
        return int(value) if whole else value

    return check


# ═══════════════════════════════════════════════════════════════════════════════
# Field Types
# ═══════════════════════════════════════════════════════════════════════════════

Email = Annotated[str, AfterValidator(text(pattern=EMAIL, message=INVALID_EMAIL))]
Password = Annotated[
    str, AfterValidator(text(min_len=8, pattern=STRONG_PASSWORD, message=WEAK_PASSWORD))
]
RequiredText = Annotated[str, AfterValidator(text())]
Phone = Annotated[str, AfterValidator(text(pattern=PHONE, message=INVALID_PHONE))]
IndianPhone = Annotated[
    str, AfterValidator(text(pattern=INDIAN_PHONE, message=INVALID_INDIAN_PHONE))
]
OptionalIndianPhone = Annotated[
    str | None,
    AfterValidator(text(required=False, pattern=INDIAN_PHONE, message=INVALID_INDIAN_PHONE)),
]
Pincode = Annotated[str, AfterValidator(text(pattern=PINCODE, message=INVALID_PINCODE))]
Name = Annotated[
    str, AfterValidator(text(min_len=2, max_len=50, pattern=NAME, message=INVALID_NAME))
]
Price = Annotated[
    float, AfterValidator(number(low=0.01, high=999999.99, low_message=POSITIVE))
]
Quantity = Annotated[float, AfterValidator(number(low=0, high=9999, whole=True))]


def bounded(max_len: int, *, required: bool = True) -> AfterValidator:
    return AfterValidator(text(required=required, max_len=max_len))


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "EMAIL",
    "PHONE",
    "STRONG_PASSWORD",
    "INDIAN_PHONE",
    "PINCODE",
    "NAME",
    "PROMO_CODE",
    "REQUIRED",
    "INVALID_EMAIL",
    "INVALID_PHONE",
    "WEAK_PASSWORD",
    "INVALID_PINCODE",
    "INVALID_INDIAN_PHONE",
    "INVALID_NAME",
    "POSITIVE",
    "WHOLE_NUMBER",
    "min_length",
    "max_length",
    "at_least",
    "at_most",
    "fail",
    "text",
    "number",
    "bounded",
    "Email",
    "Password",
    "RequiredText",
    "Phone",
    "IndianPhone",
    "OptionalIndianPhone",
    "Pincode",
    "Name",
    "Price",
    "Quantity",
)
