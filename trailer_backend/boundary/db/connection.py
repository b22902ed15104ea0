"""
Database connection management.

Builds the async SQLAlchemy engine and session factory from settings.
Nothing is created at import time: the API container and the worker
process each construct their own engine and dispose it on shutdown.

Dependencies: sqlalchemy, trailer_backend.configs
System role: Database connection lifecycle management
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from trailer_backend.boundary.db.base import Base
from trailer_backend.configs.database import DatabaseSettings
from trailer_backend.core.exceptions import PersistenceError

logger = logging.getLogger(__name__)


def create_engine_from_settings(db_config: DatabaseSettings) -> AsyncEngine:
    """
    Create async SQLAlchemy engine with connection pooling.

    pool_pre_ping=True verifies connections before use to detect
    stale/broken connections early. SQLite URLs skip pool sizing.

    Args:
        db_config: Database settings

    Returns:
        AsyncEngine: Configured async SQLAlchemy engine

    Usage:
        engine = create_engine_from_settings(settings.database)
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
    """
    if db_config.is_sqlite:
        return create_async_engine(
            db_config.async_database_url,
            echo=db_config.echo_sql,
            connect_args={"timeout": 30},
        )

    return create_async_engine(
        db_config.async_database_url,
        echo=db_config.echo_sql,
        pool_size=db_config.pool_size,
        max_overflow=db_config.max_overflow,
        pool_timeout=db_config.pool_timeout,
        pool_pre_ping=True,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """
    Create async session factory for database operations.

    Returns async_sessionmaker bound to engine with autoflush=False
    and expire_on_commit=False so objects stay readable after commit.

    Args:
        engine: Async engine to bind

    Returns:
        async_sessionmaker: Async session factory

    Usage:
        SessionFactory = create_session_factory(engine)
        async with SessionFactory() as session, session.begin():
            session.add(obj)
    """
    return async_sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )


async def init_models(engine: AsyncEngine) -> None:
    """
    Create all tables registered on the declarative base.

    Intended for local development and tests; production schema
    is owned by the surrounding application's migrations.

    Args:
        engine: Async engine to create tables with
    """
    # Import models so they are registered on Base.metadata
    from trailer_backend.boundary.db import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@asynccontextmanager
async def transaction(
    session_factory: async_sessionmaker,
    operation: str,
) -> AsyncIterator[AsyncSession]:
    """
    Open a session with a transaction committed on exit.

    SQLAlchemy errors are logged and re-raised as PersistenceError so
    callers above the boundary never depend on SQLAlchemy types.

    Args:
        session_factory: Async session factory
        operation: Name used in logs and in the raised error

    Yields:
        AsyncSession inside an open transaction

    Raises:
        PersistenceError: If the database operation or commit fails
    """
    try:
        async with session_factory() as session, session.begin():
            yield session
    except SQLAlchemyError as e:
        logger.error(f"{__name__}:{operation} - Database error: {type(e).__name__}: {e}")
        raise PersistenceError(f"Database {operation} failed: {e}", operation=operation) from e
