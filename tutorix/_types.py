"""
Core types for tutorix.

Re-exports from kungfu + custom type aliases.
"""

from __future__ import annotations

from typing import Any
from collections.abc import Callable

# Re-export from kungfu
from kungfu import Result, Ok, Error, LazyCoroResult

# ═══════════════════════════════════════════════════════════════════════════════
# JSON
# ═══════════════════════════════════════════════════════════════════════════════

type Json = dict[str, Any] | list[Any] | str | int | float | bool | None
"""Raw decoded server response, as stored in the cache."""

# ═══════════════════════════════════════════════════════════════════════════════
# Lazy Computation Aliases
# ═══════════════════════════════════════════════════════════════════════════════

type Lazy[T, E] = LazyCoroResult[T, E]
"""Lazy async computation that may fail."""

type Fetcher[E] = Callable[[], Lazy[Json, E]]
"""Network call for one cache key. Produces raw JSON or fails with E."""

type Decoder[T] = Callable[[Json], T]
"""Turns raw JSON into a typed value. May raise on malformed input."""

# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    # Re-exports from kungfu
    "Result",
    "Ok",
    "Error",
    "LazyCoroResult",
    # Type aliases
    "Json",
    "Lazy",
    "Fetcher",
    "Decoder",
)
