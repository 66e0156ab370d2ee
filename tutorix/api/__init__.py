"""
API — HTTP façade over the coaching backend.

    from tutorix import api as A

    client = A.ApiClient(session, settings, A.static_token(token))
    data = await client.get(A.Endpoints(base).batches(coaching_id))
"""

from __future__ import annotations

from tutorix.api._types import (
    ApiError,
    ApiErrorKind,
    TokenProvider,
    static_token,
)
from tutorix.api._endpoints import Endpoints, with_query
from tutorix.api._client import ApiClient

__all__ = (
    "ApiError",
    "ApiErrorKind",
    "TokenProvider",
    "static_token",
    "Endpoints",
    "with_query",
    "ApiClient",
)
