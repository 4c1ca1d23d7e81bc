"""
Saga composition operators.
"""

from __future__ import annotations

from typing import Any

from naaz.saga._types import SagaStep, Sequence

# ═══════════════════════════════════════════════════════════════════════════════
# sequence() — Ordered, All Must Succeed
# ═══════════════════════════════════════════════════════════════════════════════


def sequence[E](
    *steps: SagaStep[Any, E],
) -> Sequence[E]:
    """
    Execute steps strictly in order, all must succeed.

    If a step fails, the compensators of the steps that already ran are
    executed in reverse order.

    Example:
        result = await S.run_sequence(
            S.sequence(
                S.step(reserve_stock, release_stock, name="reserve"),
                S.step(insert_order, delete_order, name="order"),
            )
        )
    """
    return Sequence(steps=steps)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = ("sequence",)
