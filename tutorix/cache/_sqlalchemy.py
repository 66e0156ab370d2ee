"""
SQLAlchemy integration — persistent key store.

Usage:
    session_factory, engine = await create_cache_database(
        "sqlite+aiosqlite:///tutorix_cache.db"
    )
    store = SQLAlchemyKeyStore(session_factory)
    cache = SwrCache(store)

Layout: one `cache` table, one row per key, the value as a JSON text blob.
Every write is a single-row upsert in its own transaction, so an interrupted
write never touches unrelated keys.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, cast

from sqlalchemy import DateTime, String, Text, delete, func, select
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from tutorix._types import Json
from tutorix.cache._types import CacheEntry, encode
from tutorix.log import get_logger

logger = get_logger("tutorix.cache.sqlalchemy")


# ═══════════════════════════════════════════════════════════════════════════════
# Table
# ═══════════════════════════════════════════════════════════════════════════════

class Base(DeclarativeBase):
    pass


class CacheRow(Base):
    """One cached JSON blob."""

    __tablename__ = "cache"

    key: Mapped[str] = mapped_column(String(512), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    stored_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


# ═══════════════════════════════════════════════════════════════════════════════
# Database Setup
# ═══════════════════════════════════════════════════════════════════════════════

async def create_cache_database(
    url: str = "sqlite+aiosqlite:///:memory:",
) -> tuple[async_sessionmaker[AsyncSession], AsyncEngine]:
    """Create the cache schema and return (session_factory, engine)."""
    engine = create_async_engine(url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    return async_sessionmaker(engine, expire_on_commit=False), engine


# ═══════════════════════════════════════════════════════════════════════════════
# SQLAlchemy KeyStore
# ═══════════════════════════════════════════════════════════════════════════════

class SQLAlchemyKeyStore:
    """
    KeyStore over an async SQLAlchemy session factory.

    Reads never raise: a database error or a blob that is not valid JSON
    is logged and reported as a miss, so the caller falls through to the
    network.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @property
    def name(self) -> str:
        return "sqlalchemy"

    async def get(self, key: str) -> Json | None:
        found = await self.entry(key)
        return found.value if found is not None else None

    async def entry(self, key: str) -> CacheEntry | None:
        try:
            async with self._session_factory() as session:
                row = await session.get(CacheRow, key)
                if row is None:
                    return None
                blob, stored_at = row.value, row.stored_at
        except SQLAlchemyError as e:
            logger.warning("cache read failed", key=key, error=repr(e))
            return None

        try:
            value = json.loads(blob)
        except ValueError as e:
            logger.warning("corrupt cache entry", key=key, error=repr(e))
            return None
        return CacheEntry(key=key, value=value, stored_at=stored_at)

    async def put(self, key: str, value: Json) -> None:
        row = CacheRow(key=key, value=encode(value), stored_at=datetime.now())
        async with self._session_factory.begin() as session:
            await session.merge(row)

    async def delete(self, key: str) -> bool:
        async with self._session_factory.begin() as session:
            cursor = cast(
                CursorResult[Any],
                await session.execute(delete(CacheRow).where(CacheRow.key == key)),
            )
            return cursor.rowcount > 0

    async def delete_prefix(self, prefix: str) -> int:
        # autoescape: '%' and '_' in keys match literally
        stmt = delete(CacheRow).where(CacheRow.key.startswith(prefix, autoescape=True))
        async with self._session_factory.begin() as session:
            cursor = cast(CursorResult[Any], await session.execute(stmt))
            return cursor.rowcount

    async def clear(self) -> int:
        async with self._session_factory.begin() as session:
            cursor = cast(CursorResult[Any], await session.execute(delete(CacheRow)))
            return cursor.rowcount

    async def size_in_bytes(self) -> int:
        stmt = select(func.coalesce(func.sum(func.length(CacheRow.value)), 0))
        async with self._session_factory() as session:
            return int((await session.execute(stmt)).scalar_one())

    async def count(self) -> int:
        stmt = select(func.count()).select_from(CacheRow)
        async with self._session_factory() as session:
            return int((await session.execute(stmt)).scalar_one())


__all__ = (
    "Base",
    "CacheRow",
    "create_cache_database",
    "SQLAlchemyKeyStore",
)
