"""
Saga execution with automatic rollback.

Compensators run in reverse order of the steps that recorded them. A
compensator that raises is logged and counted; it never stops the rest of
the rollback and never replaces the original error.
"""

from __future__ import annotations

from typing import Any

import structlog
from kungfu import Result, Ok, Error

from naaz.saga._types import (
    SagaStep,
    SagaResult,
    SagaError,
    Then,
    Sequence,
    CompensatorWithValue,
)

log = structlog.get_logger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# Recorded Compensator
# ═══════════════════════════════════════════════════════════════════════════════

type RecordedCompensator[T] = tuple[T, CompensatorWithValue[T], str]

# ═══════════════════════════════════════════════════════════════════════════════
# run_step() — Execute single step
# ═══════════════════════════════════════════════════════════════════════════════


async def run_step[T, E](
    step: SagaStep[T, E],
    compensators: list[RecordedCompensator[T]],
) -> Result[T, E]:
    """Execute single step, recording compensator on success."""
    result = await step.action
    match result:
        case Ok(value):
            if step.compensate is not None:
                compensators.append((value, step.compensate, step.name))
            return Ok(value)
        case Error(e):
            return Error(e)


# ═══════════════════════════════════════════════════════════════════════════════
# run_compensators() — Rollback
# ═══════════════════════════════════════════════════════════════════════════════


async def run_compensators[T](
    compensators: list[RecordedCompensator[T]],
) -> tuple[int, int]:
    """Run compensators in reverse. Returns (run, failed)."""
    comp_run = 0
    comp_failed = 0

    for value, comp, name in reversed(compensators):
        try:
            await comp(value)
            comp_run += 1
        except Exception as e:
            comp_failed += 1
            log.warning("saga.compensation_failed", step=name or None, error=str(e))

    return comp_run, comp_failed


def _failure[E](
    error: E,
    step_failed: int,
    step_name: str,
    comp_run: int,
    comp_failed: int,
) -> SagaError[E]:
    return SagaError(
        error=error,
        step_failed=step_failed,
        compensators_run=comp_run,
        compensators_failed=comp_failed,
        rollback_complete=comp_failed == 0,
        step_name=step_name,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# run() — Execute Saga Step
# ═══════════════════════════════════════════════════════════════════════════════


async def run[T, E](
    saga: SagaStep[T, E],
) -> Result[SagaResult[T], SagaError[E]]:
    """
    Execute saga step with automatic rollback on failure.

    On success: returns SagaResult with value and metadata.
    On failure: runs compensators in reverse, returns SagaError.
    """
    compensators: list[RecordedCompensator[T]] = []

    result = await run_step(saga, compensators)

    match result:
        case Ok(value):
            return Ok(SagaResult(
                value=value,
                steps_executed=1,
                compensators_recorded=len(compensators),
            ))

        case Error(error):
            comp_run, comp_failed = await run_compensators(compensators)
            return Error(_failure(error, 1, saga.name, comp_run, comp_failed))


# ═══════════════════════════════════════════════════════════════════════════════
# run_chain() — Execute Then chain
# ═══════════════════════════════════════════════════════════════════════════════


async def run_chain[T, U, E, E2](
    chain: Then[T, U, E, E2],
) -> Result[SagaResult[U], SagaError[E | E2]]:
    """
    Execute chained saga steps.

    Runs inner step, then applies f to get next step, and runs that.
    On any failure, compensators run in reverse.
    """
    compensators_t: list[RecordedCompensator[T]] = []
    compensators_u: list[RecordedCompensator[U]] = []

    inner_result = await run_step(chain.inner, compensators_t)

    match inner_result:
        case Ok(value):
            next_step = chain.f(value)
            next_result = await run_step(next_step, compensators_u)

            match next_result:
                case Ok(final_value):
                    return Ok(SagaResult(
                        value=final_value,
                        steps_executed=2,
                        compensators_recorded=len(compensators_t) + len(compensators_u),
                    ))

                case Error(e):
                    comp_run1, comp_failed1 = await run_compensators(compensators_u)
                    comp_run2, comp_failed2 = await run_compensators(compensators_t)
                    return Error(_failure(
                        e,
                        2,
                        next_step.name,
                        comp_run1 + comp_run2,
                        comp_failed1 + comp_failed2,
                    ))

        case Error(e):
            comp_run, comp_failed = await run_compensators(compensators_t)
            return Error(_failure(e, 1, chain.inner.name, comp_run, comp_failed))


# ═══════════════════════════════════════════════════════════════════════════════
# run_sequence() — Execute ordered steps
# ═══════════════════════════════════════════════════════════════════════════════


async def run_sequence[E](
    seq: Sequence[E],
) -> Result[SagaResult[tuple[Any, ...]], SagaError[E]]:
    """
    Execute steps one after another.

    Each step's action is lazy, so a later step can read state written by
    an earlier one. The first failure stops the sequence and rolls back
    every recorded compensator, newest first.

    Example:
        result = await S.run_sequence(S.sequence(claim, reserve, insert))

        match result:
            case Ok(r):
                order = r.value[-1]
            case Error(e):
                raise e.error
    """
    compensators: list[RecordedCompensator[Any]] = []
    values: list[Any] = []

    for index, current in enumerate(seq.steps, start=1):
        match await run_step(current, compensators):
            case Ok(value):
                values.append(value)
            case Error(e):
                log.info(
                    "saga.step_failed",
                    step=current.name or index,
                    recorded=len(compensators),
                )
                comp_run, comp_failed = await run_compensators(compensators)
                return Error(_failure(e, index, current.name, comp_run, comp_failed))

    return Ok(SagaResult(
        value=tuple(values),
        steps_executed=len(seq.steps),
        compensators_recorded=len(compensators),
    ))


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "RecordedCompensator",
    "run_step",
    "run_compensators",
    "run",
    "run_chain",
    "run_sequence",
)
