"""
Cache types.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

from kungfu import Result

from tutorix._types import Json

# ═══════════════════════════════════════════════════════════════════════════════
# Cache Entry — Stored State
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """
    One stored value.

    Note: no TTL. stored_at is diagnostic only; staleness is resolved by
    revalidating on read, never by age.
    """

    key: str
    value: Json
    stored_at: datetime


# ═══════════════════════════════════════════════════════════════════════════════
# In-Flight Request — One Pending Fetch per Key
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class InFlightRequest:
    """The single active fetch for a key, shared by every attached reader."""

    key: str
    pending: asyncio.Task[Result[Json, Any]]


# ═══════════════════════════════════════════════════════════════════════════════
# KeyStore Protocol — Users Implement This
# ═══════════════════════════════════════════════════════════════════════════════


class KeyStore(Protocol):
    """
    Key → JSON blob storage protocol.

    Implement this for custom backends (file system, Redis, ...).
    `get` must never raise: storage failures and corrupt blobs read as a miss.

    Example:
        class RedisKeyStore:
            def __init__(self, client: Redis) -> None:
                self.client = client

            @property
            def name(self) -> str:
                return "redis"

            async def get(self, key: str) -> Json | None:
                try:
                    data = await self.client.get(key)
                    return json.loads(data) if data else None
                except (RedisError, ValueError):
                    return None

            ...
    """

    @property
    def name(self) -> str:
        """Store name for logging."""
        ...

    async def get(self, key: str) -> Json | None:
        """Get value. Returns None on miss."""
        ...

    async def entry(self, key: str) -> CacheEntry | None:
        """Get value with its metadata. Returns None on miss."""
        ...

    async def put(self, key: str, value: Json) -> None:
        """Insert or overwrite value. Atomic per key."""
        ...

    async def delete(self, key: str) -> bool:
        """Delete exactly this key. Returns True if existed."""
        ...

    async def delete_prefix(self, prefix: str) -> int:
        """Delete every key starting with prefix (plain string prefix). Returns count."""
        ...

    async def clear(self) -> int:
        """Delete everything. Returns count."""
        ...

    async def size_in_bytes(self) -> int:
        """Approximate size of stored blobs."""
        ...

    async def count(self) -> int:
        """Number of stored entries."""
        ...


# ═══════════════════════════════════════════════════════════════════════════════
# Memory KeyStore — In-Process (Default)
# ═══════════════════════════════════════════════════════════════════════════════


def encode(value: Json) -> str:
    """Serialize a value the way every store keeps it."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


@dataclass(slots=True)
class _StoredBlob:
    """Internal record for MemoryKeyStore."""

    key: str
    blob: str
    stored_at: datetime

    def to_entry(self) -> CacheEntry:
        return CacheEntry(key=self.key, value=json.loads(self.blob), stored_at=self.stored_at)


class MemoryKeyStore:
    """
    In-memory key store.

    Values are kept serialized, so every get returns a fresh copy and
    nothing a caller does to a returned value leaks back into the store.

    Example:
        store = MemoryKeyStore()
        await store.put("batch:c1:list", {"batches": []})
    """

    def __init__(self) -> None:
        self._blobs: dict[str, _StoredBlob] = {}

    @property
    def name(self) -> str:
        return "memory"

    async def get(self, key: str) -> Json | None:
        stored = self._blobs.get(key)
        return json.loads(stored.blob) if stored is not None else None

    async def entry(self, key: str) -> CacheEntry | None:
        stored = self._blobs.get(key)
        return stored.to_entry() if stored is not None else None

    async def put(self, key: str, value: Json) -> None:
        self._blobs[key] = _StoredBlob(key=key, blob=encode(value), stored_at=datetime.now())

    async def delete(self, key: str) -> bool:
        return self._blobs.pop(key, None) is not None

    async def delete_prefix(self, prefix: str) -> int:
        keys_to_delete = [k for k in self._blobs if k.startswith(prefix)]
        for key in keys_to_delete:
            del self._blobs[key]
        return len(keys_to_delete)

    async def clear(self) -> int:
        total = len(self._blobs)
        self._blobs.clear()
        return total

    async def size_in_bytes(self) -> int:
        return sum(len(s.blob.encode()) for s in self._blobs.values())

    async def count(self) -> int:
        return len(self._blobs)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "CacheEntry",
    "InFlightRequest",
    "KeyStore",
    "MemoryKeyStore",
    "encode",
)
