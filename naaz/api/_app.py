"""FastAPI application with lifespan management."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from naaz import monitoring as M
from naaz.api.routes import catalog, checkout, health, orders, validation
from naaz.app import Services
from naaz.errors import MAX_RETRY_ATTEMPTS, AppError, ErrorKind, as_app_error

log = structlog.get_logger(__name__)

_RETRYABLE = frozenset({ErrorKind.NETWORK, ErrorKind.SERVER})
_UNREPORTED = frozenset({ErrorKind.BUSINESS, ErrorKind.VALIDATION, ErrorKind.NOT_FOUND})


def register_error_handlers(app: FastAPI) -> None:
    """Map AppError kinds to HTTP statuses; anything else is a 500."""

    def respond(request: Request, error: AppError) -> JSONResponse:
        if error.kind not in _UNREPORTED:
            request.app.state.services.monitoring.capture_error(
                error,
                M.LogContext(component="api", action=request.method, page=request.url.path),
            )
        headers = (
            {"X-Retry-Attempts": str(MAX_RETRY_ATTEMPTS)} if error.kind in _RETRYABLE else None
        )
        return JSONResponse(
            status_code=error.kind.http_status, content=error.to_dict(), headers=headers
        )

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
        return respond(request, exc)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        log.exception("api.unhandled_error", path=request.url.path)
        return respond(request, as_app_error(exc))


def create_app(services: Services) -> FastAPI:
    """
    Example:
        services = Services.local(load_settings(node_env="test"))
        with TestClient(create_app(services)) as client:
            client.get("/health")
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        await services.initialize()
        try:
            yield
        finally:
            await services.dispose()

    app = FastAPI(
        title="Naaz Storefront",
        description="Catalog, checkout and order APIs",
        version=services.settings.app_version,
        lifespan=lifespan,
    )
    app.state.services = services

    app.include_router(health.router)
    app.include_router(catalog.router)
    app.include_router(checkout.router)
    app.include_router(orders.router)
    app.include_router(validation.router)
    register_error_handlers(app)
    return app


__all__ = ("create_app", "register_error_handlers")
