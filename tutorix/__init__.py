"""
tutorix — batch data layer with a stale-while-revalidate cache.

    from tutorix import cache as C   # SWR cache over key stores
    from tutorix import api as A     # HTTP client for the coaching backend
    from tutorix import batch as B   # Batch models and service
"""

from tutorix import cache
from tutorix import api
from tutorix import batch
from tutorix import lift
from tutorix._errors import (
    TutorixError,
    FetchError,
    DecodeError,
    CacheKeyError,
)
from tutorix._types import (
    Lazy,
    Fetcher,
    Decoder,
    Json,
)
from tutorix.config import Settings

__version__ = "0.1.0"

__all__ = (
    "cache",
    "api",
    "batch",
    "lift",
    "TutorixError",
    "FetchError",
    "DecodeError",
    "CacheKeyError",
    "Lazy",
    "Fetcher",
    "Decoder",
    "Json",
    "Settings",
)
