"""
Core types for naaz.

Re-exports from kungfu/combinators + custom type aliases.
"""

from __future__ import annotations

from typing import Any, Never
from collections.abc import Callable, Awaitable

# Re-export from kungfu
from kungfu import Result, Ok, Error, Option, Some, Nothing, LazyCoroResult

# Re-export from combinators
from combinators import LCR, NoError

# ═══════════════════════════════════════════════════════════════════════════════
# Lazy Computation Aliases
# ═══════════════════════════════════════════════════════════════════════════════

type Lazy[T, E] = LazyCoroResult[T, E]
"""Lazy async computation that may fail."""

type Pure[T] = Lazy[T, Never]
"""Lazy computation that cannot fail."""

type Fallible[T, E] = Lazy[T, E]
"""Lazy computation that can fail with E."""

# ═══════════════════════════════════════════════════════════════════════════════
# Remote Rows
# ═══════════════════════════════════════════════════════════════════════════════

type Row = dict[str, Any]
"""A single row as returned by the remote data service."""

type Millis = int
"""Wall-clock instant or duration in milliseconds."""

type Clock = Callable[[], Millis]
"""Source of the current time in milliseconds."""

# ═══════════════════════════════════════════════════════════════════════════════
# Compensator Type (for Saga)
# ═══════════════════════════════════════════════════════════════════════════════

type Compensator = Callable[[], Awaitable[None]]
"""A compensation action that undoes a step."""

# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    # Re-exports from kungfu
    "Result",
    "Ok",
    "Error",
    "Option",
    "Some",
    "Nothing",
    "LazyCoroResult",
    # Re-exports from combinators
    "LCR",
    "NoError",
    # Type aliases
    "Lazy",
    "Pure",
    "Fallible",
    "Row",
    "Millis",
    "Clock",
    # Saga types
    "Compensator",
)
