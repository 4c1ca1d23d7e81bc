"""
Saga — multi-step writes with compensation.

    from naaz import saga as S

    flow = S.sequence(
        S.step(claim_coupon, release_coupon, name="claim_coupon"),
        S.step(insert_order, delete_order, name="insert_order"),
    )
    result = await S.run_sequence(flow)
"""

from __future__ import annotations

from naaz.saga._types import (
    CompensatorWithValue,
    SagaStep,
    SagaResult,
    SagaError,
    Then,
    Sequence,
)
from naaz.saga._step import step, from_async
from naaz.saga._run import run, run_chain, run_sequence, run_compensators
from naaz.saga._compose import sequence

__all__ = (
    "CompensatorWithValue",
    "SagaStep",
    "SagaResult",
    "SagaError",
    "Then",
    "Sequence",
    "step",
    "from_async",
    "run",
    "run_chain",
    "run_sequence",
    "run_compensators",
    "sequence",
)
