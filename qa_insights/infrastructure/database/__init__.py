"""
Database Infrastructure
=======================

Engine and session lifecycle for the interaction store.

Production runs on PostgreSQL through asyncpg; any SQLAlchemy async URL
works, which is how the test suite runs on aiosqlite. The engine is a
process-wide singleton created by init_database() in the app lifespan.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from qa_insights.config import settings


class Base(DeclarativeBase):
    """Declarative base shared by the ORM models."""


_engine: Optional[AsyncEngine] = None
_session_maker: Optional[async_sessionmaker[AsyncSession]] = None


def _engine_options(url: str) -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": settings.debug}
    # SQLite uses a static pool without sizing options
    if not url.startswith("sqlite"):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=True,
        )
    return options


def get_engine() -> AsyncEngine:
    """
    The engine created by init_database().

    Raises:
        RuntimeError: init_database() has not run
    """
    if _engine is None:
        raise RuntimeError("Database engine not initialized; call init_database() first")
    return _engine


def init_database(database_url: Optional[str] = None) -> AsyncEngine:
    """
    Create the engine and session factory.

    Args:
        database_url: Overrides settings.database_url

    Returns:
        AsyncEngine: The new engine
    """
    global _engine, _session_maker

    # asyncpg takes ssl=, not libpq's sslmode=
    url = (database_url or settings.database_url).replace("sslmode=", "ssl=")

    _engine = create_async_engine(url, **_engine_options(url))
    _session_maker = async_sessionmaker(
        bind=_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    return _engine


async def close_database() -> None:
    """Dispose of pooled connections. Safe to call when never initialized."""
    global _engine, _session_maker

    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _session_maker = None


@asynccontextmanager
async def get_session_context() -> AsyncIterator[AsyncSession]:
    """
    Short-lived session for one repository call.

    Commits when the block exits cleanly and rolls back when it raises.

        async with get_session_context() as session:
            rows = (await session.execute(select(InteractionModel))).scalars().all()
    """
    if _session_maker is None:
        raise RuntimeError("Database not initialized; call init_database() first")

    async with _session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def create_tables() -> None:
    """
    Create any missing tables.

    Startup convenience for development and tests; existing tables are left
    untouched.
    """
    # Importing the models registers them on Base.metadata
    from qa_insights.analytics.infrastructure import models  # noqa: F401

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
