"""Form validation endpoint backed by the named schemas."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body

from naaz import validation as V
from naaz.errors import NotFound

router = APIRouter(tags=["validation"])


@router.post("/validate/{schema}")
async def validate_form(schema: str, payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
    """Always 200 for a known schema; `errors` maps field paths to messages."""
    model = V.SCHEMAS.get(schema)
    if model is None:
        raise NotFound(f"Unknown schema {schema}")
    result = V.validate(model, payload)
    return {"ok": result.ok, "errors": result.errors}
