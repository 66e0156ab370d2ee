"""
Composition root.

    async with build_app(Settings()) as app:
        async for batches in app.batches.watch_batches("c1"):
            render(batches)

Nothing in tutorix is a module-level singleton; everything a screen needs
hangs off the App built here, and leaving the context closes the HTTP
session and disposes the cache database engine.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass

import aiohttp

from tutorix.api import ApiClient, TokenProvider, static_token
from tutorix.batch import BatchService
from tutorix.cache import KeyStore, MemoryKeyStore, SQLAlchemyKeyStore, SwrCache, create_cache_database
from tutorix.config import Settings
from tutorix.log import configure_logging, get_logger

logger = get_logger("tutorix.app")


@dataclass(frozen=True, slots=True)
class App:
    settings: Settings
    cache: SwrCache
    api: ApiClient
    batches: BatchService


async def _open_store(settings: Settings, stack: AsyncExitStack) -> KeyStore:
    if not settings.CACHE_DATABASE_URL:
        return MemoryKeyStore()
    session_factory, engine = await create_cache_database(settings.CACHE_DATABASE_URL)
    stack.push_async_callback(engine.dispose)
    return SQLAlchemyKeyStore(session_factory)


@asynccontextmanager
async def build_app(
    settings: Settings | None = None,
    *,
    token: TokenProvider | None = None,
    store: KeyStore | None = None,
    session: aiohttp.ClientSession | None = None,
) -> AsyncIterator[App]:
    """
    Wire settings → store → cache → api → services.

    Args:
        settings: Defaults to Settings() read from the environment
        token: Bearer token source; defaults to settings.API_TOKEN
        store: Key store override (tests); otherwise chosen by CACHE_DATABASE_URL
        session: HTTP session override; a given session is not closed here
    """
    settings = settings or Settings()
    configure_logging(settings.LOG_LEVEL, settings.LOG_FORMAT, settings.SERVICE_NAME)

    async with AsyncExitStack() as stack:
        if store is None:
            store = await _open_store(settings, stack)
        if session is None:
            session = await stack.enter_async_context(aiohttp.ClientSession())

        cache = SwrCache(store, enabled=settings.CACHE_ENABLED)
        api = ApiClient(session, settings, token or static_token(settings.API_TOKEN))
        app = App(
            settings=settings,
            cache=cache,
            api=api,
            batches=BatchService(api, cache),
        )
        logger.info(
            "app ready",
            store=store.name,
            cache_enabled=cache.is_enabled,
            base_url=settings.API_BASE_URL,
        )
        yield app
        logger.info("app shutting down")


__all__ = ("App", "build_app")
