"""
Stale-while-revalidate cache.

    cache = SwrCache(MemoryKeyStore())

    async for batches in cache.swr("batch:c1:list", fetch, decode):
        render(batches)   # cached value first (if any), then the fresh one

READ:       store → yield cached → fetch (shared per key) → store → yield fresh
WRITE:      put() seeds, invalidate()/invalidate_prefix() evict
FAILURE:    fetch error after a cached yield ends quietly; without one it raises
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from typing import Any

from kungfu import Result, Ok, Error

from tutorix._errors import CacheKeyError, DecodeError, FetchError
from tutorix._types import Decoder, Fetcher, Json
from tutorix.cache._keys import SEPARATOR, family_prefix
from tutorix.cache._types import InFlightRequest, KeyStore
from tutorix.log import get_logger

logger = get_logger("tutorix.cache")


def _decode[T](decode: Decoder[T], raw: Json) -> Result[T, Exception]:
    try:
        return Ok(decode(raw))
    except Exception as exc:
        return Error(exc)


# ═══════════════════════════════════════════════════════════════════════════════
# SwrCache
# ═══════════════════════════════════════════════════════════════════════════════


class SwrCache:
    """
    Read-through cache over a KeyStore.

    Note: built for a single event loop. The in-flight table and the store
    are only touched from loop callbacks, so no locking is needed.

    When disabled, reads skip the store and writes are dropped; the network
    path (including in-flight dedup) keeps working and nothing stored is
    deleted.
    """

    def __init__(self, store: KeyStore, *, enabled: bool = True) -> None:
        self._store = store
        self._enabled = enabled
        self._in_flight: dict[str, InFlightRequest] = {}
        # fetches detached by an invalidation; their results are not stored
        self._superseded: set[asyncio.Task[Any]] = set()

    @property
    def store(self) -> KeyStore:
        return self._store

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, value: bool) -> None:
        """Toggle caching. Turning it off keeps existing data."""
        self._enabled = value
        logger.info("cache toggled", enabled=value, store=self._store.name)

    @property
    def in_flight(self) -> frozenset[str]:
        """Keys with a fetch currently pending."""
        return frozenset(self._in_flight)

    # ───────────────────────────────────────────────────────────────────────────
    # Stale-While-Revalidate
    # ───────────────────────────────────────────────────────────────────────────

    async def swr[T, E](
        self,
        key: str,
        fetch: Fetcher[E],
        decode: Decoder[T],
    ) -> AsyncIterator[T]:
        """
        Yield the cached value for key (if any), then the fresh one.

        At most two values. A cached value that fails to decode is treated
        as a miss. If the fetch fails:
            - after a cached value was yielded, the iterator just ends;
            - otherwise FetchError (or DecodeError for undecodable fresh
              data) is raised.

        Closing the iterator early does not cancel the fetch; it still
        completes and stores its result. A fetch that an invalidation
        overtook still answers the readers attached to it, but its result
        is not stored and later reads start a new fetch.
        """
        stale: Result[T, Exception] | None = None
        if self._enabled:
            cached = await self._store.get(key)
            if cached is not None:
                stale = _decode(decode, cached)
                if isinstance(stale, Error):
                    logger.warning(
                        "cached value failed to decode, treating as miss",
                        key=key,
                        error=repr(stale.error),
                    )

        pending = self._attach(key, fetch)

        emitted = isinstance(stale, Ok)
        if isinstance(stale, Ok):
            yield stale.value

        result = await asyncio.shield(pending)
        match result:
            case Ok(raw):
                match _decode(decode, raw):
                    case Ok(fresh):
                        yield fresh
                    case Error(exc):
                        if emitted:
                            logger.warning(
                                "fresh value failed to decode, keeping cached value",
                                key=key,
                                error=repr(exc),
                            )
                            return
                        raise DecodeError(
                            f"could not decode fresh value for {key!r}: {exc}",
                            key=key,
                            cause=exc,
                        ) from exc
            case Error(err):
                if emitted:
                    logger.warning(
                        "revalidation failed, serving stale value",
                        key=key,
                        error=repr(err),
                    )
                    return
                raise FetchError(
                    f"fetch failed for {key!r}: {err}",
                    key=key,
                    cause=err,
                ) from (err if isinstance(err, BaseException) else None)

    def _attach[E](self, key: str, fetch: Fetcher[E]) -> asyncio.Task[Result[Json, Any]]:
        """Return the pending fetch for key, starting one if none exists."""
        request = self._in_flight.get(key)
        if request is not None:
            logger.debug("attached to in-flight fetch", key=key)
            return request.pending

        task = asyncio.create_task(self._fetch_and_store(key, fetch), name=f"swr:{key}")
        # An eager task factory may have settled it already.
        if not task.done():
            self._in_flight[key] = InFlightRequest(key=key, pending=task)
        return task

    async def _fetch_and_store[E](self, key: str, fetch: Fetcher[E]) -> Result[Json, Any]:
        this = asyncio.current_task()
        assert this is not None
        logger.debug("fetch started", key=key)
        try:
            try:
                result: Result[Json, Any] = await fetch()
            except Exception as exc:
                result = Error(exc)

            superseded = this in self._superseded
            match result:
                case Ok(raw) if self._enabled and not superseded:
                    await self._put_best_effort(key, raw)
                case Ok(_) if superseded:
                    logger.debug("dropping result of superseded fetch", key=key)
                case _:
                    pass
            logger.debug("fetch settled", key=key, ok=isinstance(result, Ok))
            return result
        finally:
            self._superseded.discard(this)
            request = self._in_flight.get(key)
            if request is not None and request.pending is this:
                del self._in_flight[key]

    def _detach(self, keys: list[str]) -> None:
        """Forget pending fetches for keys so the next read starts fresh."""
        for key in keys:
            request = self._in_flight.pop(key)
            self._superseded.add(request.pending)
            logger.debug("detached in-flight fetch", key=key)

    async def _put_best_effort(self, key: str, raw: Json) -> None:
        try:
            await self._store.put(key, raw)
        except Exception as exc:
            logger.warning(
                "failed to store fetched value",
                key=key,
                store=self._store.name,
                error=repr(exc),
            )

    # ───────────────────────────────────────────────────────────────────────────
    # Imperative access (write flows)
    # ───────────────────────────────────────────────────────────────────────────

    async def get(self, key: str) -> Json | None:
        """One-shot cached read, no network. None on miss or when disabled."""
        if not self._enabled:
            return None
        return await self._store.get(key)

    async def put(self, key: str, value: Json) -> None:
        """Seed the cache, e.g. from a create/update response."""
        if not self._enabled:
            return
        await self._store.put(key, value)

    async def invalidate(self, key: str) -> bool:
        """Evict exactly this key. No prefix matching."""
        if key in self._in_flight:
            self._detach([key])
        return await self._store.delete(key)

    async def invalidate_prefix(self, prefix: str) -> int:
        """
        Evict a key family.

        The prefix always ends at a segment boundary: "batch:c1" evicts
        "batch:c1" and "batch:c1:..." but never "batch:c10:...".
        """
        if not prefix or prefix == SEPARATOR:
            raise CacheKeyError(f"refusing to invalidate prefix {prefix!r}", segment=prefix)

        family = family_prefix(prefix)
        self._detach([k for k in self._in_flight if k == prefix or k.startswith(family)])

        removed = 0
        if not prefix.endswith(SEPARATOR):
            removed += int(await self._store.delete(prefix))
        removed += await self._store.delete_prefix(family)
        logger.debug("invalidated prefix", prefix=prefix, removed=removed)
        return removed

    async def clear_all(self) -> int:
        self._detach(list(self._in_flight))
        return await self._store.clear()

    async def size_in_bytes(self) -> int:
        return await self._store.size_in_bytes()

    async def entry_count(self) -> int:
        return await self._store.count()


__all__ = ("SwrCache",)
