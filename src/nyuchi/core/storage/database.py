"""Async database engine and session management."""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for all Nyuchi tables."""


class Database:
    """Owns the async engine and hands out sessions.

    In-memory SQLite databases share one connection so every session sees
    the same tables.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        engine_kwargs = {"echo": echo}
        if url.startswith("sqlite") and ":memory:" in url:
            engine_kwargs["poolclass"] = StaticPool
            engine_kwargs["connect_args"] = {"check_same_thread": False}
        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Open a session that is closed when the block exits."""
        async with self.session_factory() as session:
            yield session

    async def create_tables(self) -> None:
        """Create all tables known to the metadata."""
        # Import models so they register with Base.metadata
        from .. import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.debug("Tables created on %s", self.url)

    async def drop_tables(self) -> None:
        """Drop all tables. Only used by tests and tooling."""
        from .. import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def close(self) -> None:
        await self.engine.dispose()


# Global database instance
_db: Optional[Database] = None


def init_db(url: str, echo: bool = False) -> Database:
    """Initialize the global database.

    Args:
        url: SQLAlchemy async database URL
        echo: Log emitted SQL

    Returns:
        Database instance
    """
    global _db
    _db = Database(url, echo=echo)
    return _db


def get_db() -> Database:
    """Get the global database instance.

    Raises:
        RuntimeError: If init_db has not been called
    """
    if _db is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _db
