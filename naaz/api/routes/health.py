"""Health check endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from naaz.api._deps import get_services
from naaz.app import Services

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(services: Services = Depends(get_services)) -> dict[str, Any]:
    """Liveness probe with the running version and environment."""
    return {
        "status": "ok",
        "version": services.settings.app_version,
        "environment": services.settings.node_env,
    }


@router.get("/health/cache")
async def cache_stats(services: Services = Depends(get_services)) -> dict[str, Any]:
    stats = await services.cache.stats()
    return {tier.value: {"entries": s.entries, "size": s.size} for tier, s in stats.items()}
