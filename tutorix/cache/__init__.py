"""
Cache — stale-while-revalidate reads over a key store.

    from tutorix import cache as C

    swr = C.SwrCache(C.MemoryKeyStore())
    async for value in swr.swr(C.cache_key("batch", cid, "list"), fetch, decode):
        ...
"""

from __future__ import annotations

from tutorix.cache._types import (
    CacheEntry,
    InFlightRequest,
    KeyStore,
    MemoryKeyStore,
)
from tutorix.cache._keys import SEPARATOR, cache_key, family_prefix
from tutorix.cache._swr import SwrCache

from tutorix.cache._sqlalchemy import (
    CacheRow,
    SQLAlchemyKeyStore,
    create_cache_database,
)

__all__ = (
    "CacheEntry",
    "InFlightRequest",
    "KeyStore",
    "MemoryKeyStore",
    "SEPARATOR",
    "cache_key",
    "family_prefix",
    "SwrCache",
    # SQLAlchemy
    "CacheRow",
    "SQLAlchemyKeyStore",
    "create_cache_database",
)
