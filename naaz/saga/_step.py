"""
Saga step creation.
"""

from __future__ import annotations

from collections.abc import Callable, Awaitable
from kungfu import LazyCoroResult
from combinators import lift as L

from naaz.saga._types import SagaStep, CompensatorWithValue

# ═══════════════════════════════════════════════════════════════════════════════
# step() — Primary Constructor
# ═══════════════════════════════════════════════════════════════════════════════


def step[T, E](
    action: LazyCoroResult[T, E],
    compensate: CompensatorWithValue[T] | None = None,
    *,
    name: str = "",
) -> SagaStep[T, E]:
    """
    Create a compensated saga step.

    Args:
        action: The operation to perform (LazyCoroResult)
        compensate: The compensation action if rollback needed
        name: Label reported in SagaError.step_name

    Returns:
        SagaStep that can be chained with .then() or put in a sequence()

    Example:
        from naaz import saga as S
        from naaz import lift as L

        insert_order = S.step(
            action=L.remote(lambda: db.insert("orders", row)),
            compensate=lambda rows: db.delete("orders", eq("id", rows[0]["id"])),
            name="insert_order",
        )
    """
    return SagaStep(action=action, compensate=compensate, name=name)


# ═══════════════════════════════════════════════════════════════════════════════
# from_async() — Create step from async callable
# ═══════════════════════════════════════════════════════════════════════════════


def from_async[T, E](
    action: Callable[[], Awaitable[T]],
    on_error: Callable[[Exception], E],
    compensate: CompensatorWithValue[T] | None = None,
    *,
    name: str = "",
) -> SagaStep[T, E]:
    """
    Create step from async callable with error handling.

    Example:
        S.from_async(
            lambda: db.rpc("begin_transaction"),
            on_error=as_app_error,
            compensate=rollback,
            name="begin_transaction",
        )
    """
    return SagaStep(
        action=L.catching_async(action, on_error=on_error),
        compensate=compensate,
        name=name,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = ("step", "from_async")
