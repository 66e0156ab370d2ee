"""Shared fixtures: settings, stores, cache, HTTP session and mocked backend."""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator

import aiohttp
import pytest
from aioresponses import aioresponses

from tutorix.api import ApiClient, static_token
from tutorix.batch import BatchService
from tutorix.cache import (
    KeyStore,
    MemoryKeyStore,
    SQLAlchemyKeyStore,
    SwrCache,
    create_cache_database,
)
from tutorix.config import Settings

BASE_URL = "http://api.test"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        API_BASE_URL=BASE_URL,
        API_TOKEN="test-token",
        HTTP_TIMEOUT_SECONDS=5.0,
        CACHE_DATABASE_URL="",
    )


@pytest.fixture
def memory_store() -> MemoryKeyStore:
    return MemoryKeyStore()


@pytest.fixture
async def sql_store() -> AsyncIterator[SQLAlchemyKeyStore]:
    session_factory, engine = await create_cache_database()
    yield SQLAlchemyKeyStore(session_factory)
    await engine.dispose()


@pytest.fixture(params=["memory", "sqlalchemy"])
async def store(request: pytest.FixtureRequest) -> AsyncIterator[KeyStore]:
    """Every KeyStore implementation, for contract tests."""
    if request.param == "memory":
        yield MemoryKeyStore()
        return
    session_factory, engine = await create_cache_database()
    yield SQLAlchemyKeyStore(session_factory)
    await engine.dispose()


@pytest.fixture
def cache(memory_store: MemoryKeyStore) -> SwrCache:
    return SwrCache(memory_store)


@pytest.fixture
async def session() -> AsyncIterator[aiohttp.ClientSession]:
    async with aiohttp.ClientSession() as s:
        yield s


@pytest.fixture
def api(session: aiohttp.ClientSession, settings: Settings) -> ApiClient:
    return ApiClient(session, settings, static_token(settings.API_TOKEN))


@pytest.fixture
def service(api: ApiClient, cache: SwrCache) -> BatchService:
    return BatchService(api, cache)


@pytest.fixture
def http() -> Iterator[aioresponses]:
    """Mocked backend; unmatched requests fail with a connection error."""
    with aioresponses() as m:
        yield m
