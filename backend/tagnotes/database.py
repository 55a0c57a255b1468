"""
TagNotes Backend: Database Engine & Session Factory
====================================================

What:  Declarative base, async engine construction, and session factory.
How:   `build_engine()` turns a Settings object into an AsyncEngine (which owns
       the connection pool); `build_session_factory()` wraps it in an
       async_sessionmaker. Neither is created at import time; the application
       lifespan and the run-once schema script build them explicitly.
Who:   Used by StorageService, which is the only consumer of sessions.

Connection Pooling:
    PostgreSQL (asyncpg): pool_size / max_overflow / pool_pre_ping come from
    settings, pool_recycle=3600 drops connections older than an hour.
    SQLite (aiosqlite):   SQLAlchemy's default pool for file databases; the
    parent directory of the database file is created if missing, and foreign
    keys are switched on per connection so ON DELETE CASCADE applies.
"""

import logging
from pathlib import Path

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from tagnotes.config import Settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All models share this metadata object, which `StorageService.ensure_schema()`
    uses to create tables and indexes.
    """
    pass


def _ensure_sqlite_directory(database_url: str) -> None:
    """Creates the directory holding a file-backed SQLite database."""
    database = make_url(database_url).database
    if not database or database == ":memory:":
        return
    Path(database).expanduser().resolve().parent.mkdir(parents=True, exist_ok=True)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(settings: Settings) -> AsyncEngine:
    """
    Create the async engine (and its connection pool) for the configured URL.

    Args:
        settings: Application settings; only the database_* fields and
                  log_level are read.

    Returns:
        An AsyncEngine. The caller owns it and must `dispose()` it at shutdown.
    """
    # SQL echo only in DEBUG; it is very noisy otherwise
    echo = settings.log_level == "DEBUG"

    if settings.is_sqlite:
        _ensure_sqlite_directory(settings.database_url)
        engine = create_async_engine(settings.database_url, echo=echo)
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    else:
        engine = create_async_engine(
            settings.database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
            echo=echo,
        )

    logger.info("Database engine created (dialect=%s)", engine.dialect.name)
    return engine


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Create the session factory bound to `engine`.

    expire_on_commit=False keeps loaded attributes readable after the session
    that produced them has committed and closed.
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
