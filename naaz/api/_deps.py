"""Request dependencies: the shared Services and the caller's Scope."""

from __future__ import annotations

from fastapi import Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from naaz.app import Scope, Services

_bearer_scheme = HTTPBearer(auto_error=False)


def get_services(request: Request) -> Services:
    return request.app.state.services


def current_scope(
    request: Request,
    bearer: HTTPAuthorizationCredentials | None = Security(_bearer_scheme),
) -> Scope:
    """Scope bound to the bearer token; anonymous when the header is absent."""
    services = get_services(request)
    return services.for_token(bearer.credentials if bearer else None)


__all__ = ("get_services", "current_scope")
