"""
Async SQLAlchemy engine and session lifecycle for the metadata tables.

Contributors, sentences and recording rows all live in one database.  Code
reaches it through ``get_session()``, which commits when the block exits
cleanly and rolls back when it raises, so a failed write never leaves a
half-written recording row behind.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from src.core.config import get_settings


class Base(DeclarativeBase):
    """Declarative base for the VoiceCorpus ORM models."""


# Process-wide singletons; tests swap ``_engine`` for an in-memory one.
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _ensure_sqlite_dir(db_url: str) -> None:
    """Create the directory holding a file-backed SQLite database."""
    url = make_url(db_url)
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)


def get_engine(url: str | None = None) -> AsyncEngine:
    """Return the shared async engine, building it from settings on first use.

    Args:
        url: Database URL to use instead of ``settings.database_url``.
    """
    global _engine
    if _engine is None:
        db_url = url or get_settings().database_url
        _ensure_sqlite_dir(db_url)
        _engine = create_async_engine(db_url, echo=False)
    return _engine


def get_session_factory(
    engine: AsyncEngine | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Return the shared session factory bound to *engine* (or the default engine).

    Objects stay usable after commit (``expire_on_commit=False``) so route
    handlers can serialise rows once the session has closed.
    """
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            engine or get_engine(),
            expire_on_commit=False,
        )
    return _session_factory


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    """Yield a session; commit on clean exit, roll back and re-raise otherwise."""
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db(engine: AsyncEngine | None = None) -> None:
    """Create the contributors, sentences and recordings tables if missing.

    Args:
        engine: Engine to create them on (defaults to the shared engine).
    """
    # Importing the models registers their tables on Base.metadata
    from src.services.storage import models_db  # noqa: F401

    eng = engine or get_engine()
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Dispose the shared engine and forget both singletons."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


def reset_engine() -> None:
    """Forget both singletons without disposing (test helper)."""
    global _engine, _session_factory
    _engine = None
    _session_factory = None
