"""
Saga types — core data structures.
"""

from __future__ import annotations

from dataclasses import dataclass
from collections.abc import Callable, Awaitable
from typing import Any
from kungfu import LazyCoroResult

# ═══════════════════════════════════════════════════════════════════════════════
# Compensator — Undo Action
# ═══════════════════════════════════════════════════════════════════════════════

type CompensatorWithValue[T] = Callable[[T], Awaitable[None]]
"""Compensation function that receives the action result and undoes it."""

# ═══════════════════════════════════════════════════════════════════════════════
# SagaStep — Single Step with Compensation
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class SagaStep[T, E]:
    """
    A single saga step: action + compensator.

    When action succeeds, compensator is recorded.
    If later step fails, compensators run in reverse.
    """

    action: LazyCoroResult[T, E]
    compensate: CompensatorWithValue[T] | None
    name: str = ""

    def then[U, E2](
        self,
        f: Callable[[T], SagaStep[U, E2]],
    ) -> Then[T, U, E, E2]:
        """Chain another saga step after this one."""
        return Then(self, f)


# ═══════════════════════════════════════════════════════════════════════════════
# Saga AST — Composition Operators
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Then[T, U, E, E2]:
    """Sequential composition (monadic bind)."""

    inner: SagaStep[T, E]
    f: Callable[[T], SagaStep[U, E2]]


@dataclass(frozen=True, slots=True)
class Sequence[E]:
    """Ordered steps; each runs only after the previous one succeeded."""

    steps: tuple[SagaStep[Any, E], ...]

    def then(self, *steps: SagaStep[Any, E]) -> Sequence[E]:
        return Sequence((*self.steps, *steps))


# ═══════════════════════════════════════════════════════════════════════════════
# Result Types
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class SagaResult[T]:
    """Successful saga result with metadata."""

    value: T
    steps_executed: int
    compensators_recorded: int


@dataclass(frozen=True, slots=True)
class SagaError[E]:
    """Saga error with rollback status."""

    error: E
    step_failed: int
    compensators_run: int
    compensators_failed: int
    rollback_complete: bool
    step_name: str = ""


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "CompensatorWithValue",
    "SagaStep",
    "Then",
    "Sequence",
    "SagaResult",
    "SagaError",
)
