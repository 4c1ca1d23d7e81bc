"""
Validation — declarative input schemas with field-level messages.

    from naaz import validation as V

    result = V.validate(V.SignUp, form)
    result.ok, result.errors
"""

from __future__ import annotations

from naaz.validation._rules import (
    EMAIL,
    PHONE,
    STRONG_PASSWORD,
    INDIAN_PHONE,
    PINCODE,
    REQUIRED,
    INVALID_EMAIL,
    WEAK_PASSWORD,
    INVALID_PINCODE,
    INVALID_INDIAN_PHONE,
    INVALID_NAME,
)
from naaz.validation._schemas import (
    PASSWORDS_DIFFER,
    Schema,
    SignUp,
    SignIn,
    ForgotPassword,
    ResetPassword,
    AdminLogin,
    ProfileUpdate,
    ChangePassword,
    Address,
    Checkout,
    Product,
    Review,
    Search,
    ContactForm,
    Newsletter,
    PromoCode,
    SCHEMAS,
)
from naaz.validation._validate import ValidationResult, field_errors, validate

__all__ = (
    "EMAIL",
    "PHONE",
    "STRONG_PASSWORD",
    "INDIAN_PHONE",
    "PINCODE",
    "REQUIRED",
    "INVALID_EMAIL",
    "WEAK_PASSWORD",
    "INVALID_PINCODE",
    "INVALID_INDIAN_PHONE",
    "INVALID_NAME",
    "PASSWORDS_DIFFER",
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
    "ValidationResult",
    "field_errors",
    "validate",
)
