"""
validate() — pass/fail plus field messages, never raises.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pydantic

from naaz.validation._schemas import Schema


@dataclass(frozen=True, slots=True)
class ValidationResult[S: Schema]:
    """
    `errors` maps a dotted field path to its messages; `data` is the parsed
    model when `ok`.
    """

    ok: bool
    data: S | None = None
    errors: dict[str, list[str]] = field(default_factory=dict)

    def first(self, path: str) -> str | None:
        messages = self.errors.get(path)
        return messages[0] if messages else None


def field_errors(error: pydantic.ValidationError) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}
    for item in error.errors():
        ctx = item.get("ctx") or {}
        path = ".".join(str(part) for part in item["loc"]) or str(ctx.get("path", ""))
        errors.setdefault(path, []).append(item["msg"])
    return errors


def validate[S: Schema](schema: type[S], data: Any) -> ValidationResult[S]:
    """
    Example:
        result = validate(SignUp, form)
        if not result.ok:
            show(result.errors)  # {"confirm_password": ["Passwords do not match"]}
    """
    try:
        return ValidationResult(ok=True, data=schema.model_validate(data))
    except pydantic.ValidationError as e:
        return ValidationResult(ok=False, errors=field_errors(e))


__all__ = ("ValidationResult", "field_errors", "validate")
