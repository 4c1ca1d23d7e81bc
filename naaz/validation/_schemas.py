"""
Input schemas.

Field rules run first; whole-object refinements (password confirmation,
date and price ordering, discount bounds) run only once every field passed.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator
from pydantic_core import PydanticCustomError

from naaz.validation._rules import (
    POSITIVE,
    PROMO_CODE,
    Email,
    IndianPhone,
    Name,
    OptionalIndianPhone,
    Password,
    Pincode,
    Price,
    Quantity,
    RequiredText,
    bounded,
    number,
    text,
)

PASSWORDS_DIFFER = "Passwords do not match"


def refine(path: str, message: str) -> PydanticCustomError:
    """Object-level failure reported against `path`."""
    return PydanticCustomError("refine", message, {"path": path})


class Schema(BaseModel):
    model_config = ConfigDict(extra="ignore")


# ═══════════════════════════════════════════════════════════════════════════════
# Authentication
# ═══════════════════════════════════════════════════════════════════════════════


class SignUp(Schema):
    full_name: Name
    email: Email
    password: Password
    confirm_password: RequiredText
    accept_terms: bool

    @model_validator(mode="after")
    def _check(self) -> SignUp:
        if not self.accept_terms:
            raise refine("accept_terms", "You must accept the terms and conditions")
        if self.password != self.confirm_password:
            raise refine("confirm_password", PASSWORDS_DIFFER)
        return self


class SignIn(Schema):
    email: Email
    password: RequiredText
    remember_me: bool | None = None


class ForgotPassword(Schema):
    email: Email


class ResetPassword(Schema):
    password: Password
    confirm_password: RequiredText

    @model_validator(mode="after")
    def _check(self) -> ResetPassword:
        if self.password != self.confirm_password:
            raise refine("confirm_password", PASSWORDS_DIFFER)
        return self


class AdminLogin(Schema):
    email: Email
    password: RequiredText


# ═══════════════════════════════════════════════════════════════════════════════
# Profile
# ═══════════════════════════════════════════════════════════════════════════════


class ProfileUpdate(Schema):
    full_name: Name
    email: Email
    phone: OptionalIndianPhone = None
    date_of_birth: str | None = None
    bio: Annotated[str | None, bounded(500, required=False)] = None


class ChangePassword(Schema):
    current_password: RequiredText
    new_password: Password
    confirm_new_password: RequiredText

    @model_validator(mode="after")
    def _check(self) -> ChangePassword:
        if self.new_password != self.confirm_new_password:
            raise refine("confirm_new_password", PASSWORDS_DIFFER)
        return self


# ═══════════════════════════════════════════════════════════════════════════════
# Address & Checkout
# ═══════════════════════════════════════════════════════════════════════════════


class Address(Schema):
    full_name: Name
    phone: IndianPhone
    address_line1: Annotated[str, bounded(100)]
    address_line2: Annotated[str | None, bounded(100, required=False)] = None
    city: Annotated[str, bounded(50)]
    state: Annotated[str, bounded(50)]
    pincode: Pincode
    country: RequiredText = "India"
    is_default: bool = False
    address_type: Literal["home", "work", "other"] = "home"


class Checkout(Schema):
    shipping_address: Address
    billing_address: Address | None = None
    use_same_address: bool = True
    payment_method: Literal["paypal", "payu", "cod"]
    coupon_code: Annotated[str | None, bounded(20, required=False)] = None
    notes: Annotated[str | None, bounded(500, required=False)] = None


# ═══════════════════════════════════════════════════════════════════════════════
# Catalog
# ═══════════════════════════════════════════════════════════════════════════════


class Product(Schema):
    title: Annotated[str, bounded(200)]
    description: Annotated[str, bounded(2000)]
    price: Price
    compare_at_price: float | None = Field(default=None, ge=0)
    category: RequiredText
    subcategory: str | None = None
    author: Annotated[str, bounded(100)]
    publisher: Annotated[str | None, bounded(100, required=False)] = None
    isbn: Annotated[str | None, bounded(20, required=False)] = None
    language: RequiredText
    pages: int | None = Field(default=None, ge=1, le=9999)
    weight: float | None = Field(default=None, ge=0, le=10)
    dimensions: Annotated[str | None, bounded(50, required=False)] = None
    tags: list[str] = Field(default_factory=list)
    in_stock: bool = True
    stock_quantity: Quantity
    low_stock_threshold: int = Field(default=5, ge=0, le=100)
    featured: bool = False
    status: Literal["draft", "published", "archived"] = "draft"

    @model_validator(mode="after")
    def _check(self) -> Product:
        if self.compare_at_price and self.compare_at_price <= self.price:
            raise refine(
                "compare_at_price", "Compare at price must be higher than the regular price"
            )
        return self


class Review(Schema):
    rating: Annotated[
        int,
        AfterValidator(number(
            low=1,
            high=5,
            low_message="Please select a rating",
            high_message="Rating cannot exceed 5 stars",
        )),
    ]
    title: Annotated[str, bounded(100)]
    comment: Annotated[str, bounded(1000)]
    would_recommend: bool = False


class Search(Schema):
    query: Annotated[
        str,
        AfterValidator(text(max_len=100, required_message="Please enter a search term")),
    ]
    category: str | None = None
    price_min: float | None = Field(default=None, ge=0)
    price_max: float | None = Field(default=None, ge=0)
    author: str | None = None
    language: str | None = None
    in_stock: bool | None = None
    sort_by: Literal["relevance", "price_low", "price_high", "newest", "rating"] = "relevance"

    @model_validator(mode="after")
    def _check(self) -> Search:
        if self.price_min and self.price_max and self.price_min > self.price_max:
            raise refine("price_min", "Minimum price cannot be greater than maximum price")
        return self


# ═══════════════════════════════════════════════════════════════════════════════
# Contact & Newsletter
# ═══════════════════════════════════════════════════════════════════════════════


class ContactForm(Schema):
    name: Name
    email: Email
    phone: OptionalIndianPhone = None
    subject: Annotated[str, bounded(100)]
    message: Annotated[str, bounded(1000)]
    category: Literal["general", "support", "order", "feedback", "complaint"] = "general"


class Newsletter(Schema):
    email: Email
    preferences: list[Literal["new_arrivals", "promotions", "author_news", "events"]] = Field(
        default_factory=list
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Admin
# ═══════════════════════════════════════════════════════════════════════════════


class PromoCode(Schema):
    code: Annotated[
        str,
        AfterValidator(text(
            max_len=20,
            pattern=PROMO_CODE,
            message="Code can only contain uppercase letters and numbers",
        )),
    ]
    description: Annotated[str, bounded(200)]
    discount_type: Literal["percentage", "fixed"]
    discount_value: Annotated[float, AfterValidator(number(low=0.01, low_message=POSITIVE))]
    minimum_order_value: float | None = Field(default=None, ge=0)
    max_usage: int | None = Field(default=None, ge=1)
    valid_from: RequiredText
    valid_until: RequiredText
    is_active: bool = True

    @model_validator(mode="after")
    def _check(self) -> PromoCode:
        if self.discount_type == "percentage" and self.discount_value > 100:
            raise refine("discount_value", "Percentage discount cannot exceed 100%")
        if not _before(self.valid_from, self.valid_until):
            raise refine("valid_until", "Valid until date must be after valid from date")
        return self


def _before(start: str, end: str) -> bool:
    try:
        return datetime.fromisoformat(start) < datetime.fromisoformat(end)
    except ValueError:
        return False


# ═══════════════════════════════════════════════════════════════════════════════
# Registry
# ═══════════════════════════════════════════════════════════════════════════════

SCHEMAS: dict[str, type[Schema]] = {
    "sign-up": SignUp,
    "sign-in": SignIn,
    "forgot-password": ForgotPassword,
    "reset-password": ResetPassword,
    "profile-update": ProfileUpdate,
    "change-password": ChangePassword,
    "address": Address,
    "product": Product,
    "checkout": Checkout,
    "contact-form": ContactForm,
    "review": Review,
    "newsletter": Newsletter,
    "search": Search,
    "admin-login": AdminLogin,
    "promo-code": PromoCode,
}

__all__ = (
    "PASSWORDS_DIFFER",
    "refine",
    "Schema",
    "SignUp",
    "SignIn",
    "ForgotPassword",
    "ResetPassword",
    "AdminLogin",
    "ProfileUpdate",
    "ChangePassword",
    "Address",
    "Checkout",
    "Product",
    "Review",
    "Search",
    "ContactForm",
    "Newsletter",
    "PromoCode",
    "SCHEMAS",
)
