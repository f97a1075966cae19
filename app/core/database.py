#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Database engine and session factory.

Uses SQLAlchemy 2.x async API with aiosqlite.  One engine is owned by the
process; every connection enforces foreign keys so the schema's cascades and
join-table constraints are the integrity backstop.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.core.config import get_settings

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

class Base(DeclarativeBase):
    """Shared declarative base for all ORM models."""
    pass


# -----------------------------------------------------------------------------

def _on_connect(dbapi_connection, _record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def _on_connect_file(dbapi_connection, _record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode = WAL")
    cursor.close()


def build_engine(url: str | None = None, **kwargs) -> AsyncEngine:
    settings = get_settings()
    db_url = url or settings.database_url
    engine = create_async_engine(db_url, echo=settings.debug, **kwargs)
    event.listen(engine.sync_engine, "connect", _on_connect)
    if ":memory:" not in db_url and not db_url.endswith("://"):
        event.listen(engine.sync_engine, "connect", _on_connect_file)
    return engine


# -----------------------------------------------------------------------------

_engine: AsyncEngine | None = None
_SessionLocal: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        _engine = build_engine()
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = async_sessionmaker(
            bind=get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _SessionLocal


# -----------------------------------------------------------------------------

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields a database session."""
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# -----------------------------------------------------------------------------

async def init_db(engine: AsyncEngine | None = None) -> None:
    """Apply the schema (idempotent) and sweep expired sessions."""
    import app.models  # noqa: F401
    from app.core.security import purge_expired_sessions

    engine = engine or get_engine()
    get_settings().data_dir.mkdir(parents=True, exist_ok=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as db:
        removed = await purge_expired_sessions(db)
        await db.commit()
    logger.info("Database ready, %d expired session(s) removed", removed)


async def dispose_db() -> None:
    global _engine, _SessionLocal
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _SessionLocal = None


# -----------------------------------------------------------------------------
