"""
API types.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum, auto

from tutorix._errors import TutorixError


class ApiErrorKind(Enum):
    """API error kinds."""
    UNAUTHENTICATED = auto()  # No token available
    TRANSPORT = auto()  # Connection, DNS, timeout
    HTTP = auto()  # Non-2xx status
    DECODE = auto()  # Body is not the JSON we expected


@dataclass(slots=True, eq=False)
class ApiError(TutorixError):
    """HTTP call failed."""

    kind: ApiErrorKind = ApiErrorKind.HTTP
    status: int | None = None


type TokenProvider = Callable[[], Awaitable[str | None]]
"""Returns the current bearer token, or None when signed out."""


def static_token(token: str | None) -> TokenProvider:
    """Token provider that always returns the same token."""
    async def provide() -> str | None:
        return token
    return provide


__all__ = (
    "ApiErrorKind",
    "ApiError",
    "TokenProvider",
    "static_token",
)
