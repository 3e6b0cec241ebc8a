"""Database abstraction layer using SQLAlchemy 2.0 async.

This module provides session management and engine configuration for the
token tables. It supports both SQLite (aiosqlite) and PostgreSQL (asyncpg)
drivers.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from webauthz_token.core.config import Settings, get_settings
from webauthz_token.core.logging import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class DatabaseManager:
    """Database connection and session manager.

    Manages the async engine and session factory and provides a
    transactional session context manager.
    """

    def __init__(self, settings: Settings | None = None, engine: AsyncEngine | None = None) -> None:
        """Initialize the database manager.

        Args:
            settings: Settings to read the database URL and pool options from.
            engine: Pre-built engine, mainly for tests using in-memory SQLite.
        """
        self.settings = settings or get_settings()
        self._engine = engine
        self._session_factory = None

    @property
    def engine(self) -> AsyncEngine:
        """Get or create the database engine."""
        if self._engine is None:
            url = self.settings.database_url
            if url.startswith("sqlite"):
                # SQLite ignores pool sizing; aiosqlite needs cross-thread access
                self._engine = create_async_engine(
                    url,
                    echo=self.settings.db_echo,
                    connect_args={"check_same_thread": False},
                )
            else:
                self._engine = create_async_engine(
                    url,
                    echo=self.settings.db_echo,
                    pool_size=self.settings.db_pool_size,
                    max_overflow=self.settings.db_max_overflow,
                    pool_timeout=self.settings.db_pool_timeout,
                    pool_recycle=self.settings.db_pool_recycle,
                )
            logger.info(
                "Database engine created",
                database_url=self._engine.url.render_as_string(hide_password=True),
            )
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        """Get or create the session factory."""
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                bind=self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
            logger.debug("Database session factory created")
        return self._session_factory

    async def create_tables(self) -> None:
        """Create all tables registered on ``Base.metadata``.

        Intended for development and tests; use migrations in production.
        """
        # Register models with Base.metadata
        from webauthz_token.infrastructure.persistence import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
            logger.info("Database tables created")

    async def drop_tables(self) -> None:
        """Drop all database tables.

        WARNING: This deletes every stored token record.
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            logger.warning("Database tables dropped")

    async def disconnect(self) -> None:
        """Close the database engine and all connections."""
        if self._engine is not None:
            await self._engine.dispose()
            logger.info("Database engine disposed")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide a transactional scope for database operations.

        The session is rolled back if the body raises; committing is the
        caller's responsibility.

        Example:
            async with db.session() as session:
                await session.execute(select(TokenModel))
        """
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def check_connection(self) -> bool:
        """Check if the database connection is working."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
                logger.debug("Database connection check successful")
                return True
        except (SQLAlchemyError, OSError) as e:
            logger.error("Database connection check failed", error=str(e))
            return False


_db_manager: DatabaseManager | None = None


def get_db_manager() -> DatabaseManager:
    """Get the global database manager instance."""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager


async def init_database(db: DatabaseManager | None = None) -> None:
    """Create the database directory (SQLite) and the token tables.

    Raises:
        RuntimeError: If the database cannot be reached.
    """
    db = db or get_db_manager()
    url = db.settings.database_url

    if url.startswith("sqlite") and ":memory:" not in url:
        # Extract path from sqlite+aiosqlite:///path/to/file.db
        db_dir = Path(url.split(":///")[-1]).parent
        db_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Database directory created", path=str(db_dir))

    if not await db.check_connection():
        raise RuntimeError("Failed to connect to database")

    await db.create_tables()
