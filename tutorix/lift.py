"""
Lift — Helpers for lifting values into tutorix monads.

Builds fetchers from ApiClient calls on top of combinators.lift.
"""

from __future__ import annotations

from collections.abc import Callable, Awaitable

from kungfu import LazyCoroResult

from combinators.lift import catching_async

from tutorix.api._types import ApiError, ApiErrorKind


# ═══════════════════════════════════════════════════════════════════════════════
# tutorix-specific helpers
# ═══════════════════════════════════════════════════════════════════════════════

def from_awaitable[T, E](
    awaitable_fn: Callable[[], Awaitable[T]],
    on_error: Callable[[Exception], E],
) -> LazyCoroResult[T, E]:
    """
    Create LazyCoroResult from async function.

    Alias for catching_async with clearer naming.
    """
    return catching_async(awaitable_fn, on_error=on_error)


def as_api_error(exc: Exception) -> ApiError:
    """Keep ApiError as is, wrap anything else as a transport failure."""
    if isinstance(exc, ApiError):
        return exc
    return ApiError(str(exc) or exc.__class__.__name__, kind=ApiErrorKind.TRANSPORT)


def from_api[T](awaitable_fn: Callable[[], Awaitable[T]]) -> LazyCoroResult[T, ApiError]:
    """
    Lift an ApiClient call into a fetcher.

    Example:
        fetch = L.from_api(lambda: api.get(url))
        result = await fetch   # Ok(raw) | Error(ApiError)
    """
    return from_awaitable(awaitable_fn, on_error=as_api_error)


__all__ = (
    "from_awaitable",
    "as_api_error",
    "from_api",
)
