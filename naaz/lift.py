"""
Lift — Helpers for lifting remote calls into naaz monads.
"""

from __future__ import annotations

from collections.abc import Callable, Awaitable

from kungfu import LazyCoroResult

from combinators.lift import catching_async

from naaz.errors import AppError, as_app_error


def remote[T](fn: Callable[[], Awaitable[T]]) -> LazyCoroResult[T, AppError]:
    """
    Lift a remote call into LazyCoroResult, classifying whatever it raises.

    Example:
        rows = await L.remote(lambda: backend.select("orders", eq("id", oid)))
    """
    return catching_async(fn, on_error=as_app_error)


__all__ = (
    "catching_async",
    "remote",
)
