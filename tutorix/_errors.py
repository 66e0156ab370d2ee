"""
Error types shared across tutorix.

Errors are plain dataclasses so they travel inside `kungfu.Result` values,
and subclass Exception so the read pipeline can raise them at its boundary.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, eq=False)
class TutorixError(Exception):
    """Base class for every error raised by tutorix."""

    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(slots=True, eq=False)
class FetchError(TutorixError):
    """
    Network/server call for a cache key failed and there was nothing
    cached to fall back on.
    """

    key: str = ""
    cause: object = None


@dataclass(slots=True, eq=False)
class DecodeError(TutorixError):
    """Fresh data for a key could not be decoded and nothing was cached."""

    key: str = ""
    cause: object = None


@dataclass(slots=True, eq=False)
class CacheKeyError(TutorixError):
    """Malformed cache key segment."""

    segment: str = ""


__all__ = (
    "TutorixError",
    "FetchError",
    "DecodeError",
    "CacheKeyError",
)
