"""Database configuration with SQLAlchemy 2.0 async support."""

from collections.abc import AsyncGenerator
from typing import Annotated, Any

from fastapi import Depends
from sqlalchemy import MetaData, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from tanlink.core.config import get_settings

settings = get_settings()

# Naming convention for constraints (helps with migrations)
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


def is_sqlite_url(url: str) -> bool:
    """Check whether a database URL points at SQLite."""
    return url.startswith("sqlite")


def engine_options(url: str, debug: bool = False) -> dict[str, Any]:
    """Connection pool options for the given database URL.

    SQLite (used for tests and local runs) manages its own pool, so the
    Postgres pool sizing is only applied to server databases.
    """
    if is_sqlite_url(url):
        return {"echo": debug}
    return {
        "echo": debug,  # Log SQL statements in debug mode
        "pool_size": 5,  # Number of connections to keep in the pool
        "max_overflow": 10,  # Additional connections beyond pool_size
        "pool_timeout": 30,  # Seconds to wait for a connection
        "pool_recycle": 1800,  # Recycle connections after 30 minutes
        "pool_pre_ping": True,  # Verify connections before use
    }


def create_engine_for(url: str, debug: bool = False) -> AsyncEngine:
    """Create an async engine with options suited to the backend."""
    return create_async_engine(url, **engine_options(url, debug))


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to an engine."""
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = create_engine_for(settings.database_url, settings.debug)

# Session factory for creating database sessions
async_session_factory = create_session_factory(engine)

# SQLite has no schemas; everything lives in the default namespace there
_schema = None if is_sqlite_url(settings.database_url) else (settings.database_schema or None)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    metadata = MetaData(naming_convention=convention, schema=_schema)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that provides an async database session.

    Usage:
        @router.get("/items")
        async def get_items(session: AsyncSession = Depends(get_async_session)):
            ...
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Dependency that provides the session factory for background work.

    Fire-and-forget tasks outlive the request session, so they open their
    own sessions from this factory.
    """
    return async_session_factory


# Type aliases for dependency injection
AsyncSessionDep = Annotated[AsyncSession, Depends(get_async_session)]
SessionFactoryDep = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]


async def init_db(bind: AsyncEngine | None = None) -> None:
    """Initialize database tables.

    Note: In production, use Alembic migrations instead.
    This is useful for testing or initial development.
    """
    target = bind or engine
    async with target.begin() as conn:
        if Base.metadata.schema:
            await conn.execute(text(f"CREATE SCHEMA IF NOT EXISTS {Base.metadata.schema}"))
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close database connections."""
    await engine.dispose()
