"""
Async database engine and session management.

Features:
- Async SQLAlchemy with asyncpg (PostgreSQL) or aiosqlite (SQLite)
- Connection pooling with configurable size
- Table creation and health checks
"""

import logging
from typing import AsyncGenerator, Optional
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
)
from sqlalchemy.pool import StaticPool

from config import Settings
from database.models import Base

logger = logging.getLogger(__name__)


class Database:
    """
    Owns one engine and its session factory.

    Constructed once per application (in the lifespan) and handed to whatever
    needs sessions; there is no module-level engine.
    """

    def __init__(self, url: str, echo: bool = False, **engine_kwargs):
        self.url = url
        self.engine: AsyncEngine = self._create_engine(url, echo, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Build from settings, applying pool options where the backend supports them."""
        url = settings.async_database_url
        engine_kwargs = {}
        if not url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_recycle=settings.db_pool_recycle,
                pool_pre_ping=settings.db_pool_pre_ping,
                pool_timeout=settings.db_pool_timeout,
            )
        return cls(url, echo=settings.db_echo, **engine_kwargs)

    @staticmethod
    def _create_engine(url: str, echo: bool, **engine_kwargs) -> AsyncEngine:
        if url.startswith("sqlite"):
            engine_kwargs.setdefault("connect_args", {"check_same_thread": False})
            if ":memory:" in url or url.rstrip("/").endswith("sqlite+aiosqlite:"):
                # One shared connection, otherwise each session sees an empty database
                engine_kwargs.setdefault("poolclass", StaticPool)
        return create_async_engine(url, echo=echo, future=True, **engine_kwargs)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Session scope with rollback on error.

        Usage:
            async with database.session() as session:
                user = await get_user_by_email(session, email)
        """
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def create_tables(self) -> None:
        """Create all tables if they don't exist."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("✅ Database tables created/verified")

    async def drop_tables(self) -> None:
        """Drop all tables. Development and tests only."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        logger.warning("🗑️ All tables dropped")

    async def check_connection(self) -> bool:
        """
        Check if database connection is working.

        Returns:
            True if connection successful, False otherwise
        """
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"❌ Database connection failed: {e}")
            return False

    async def dispose(self) -> None:
        """Close pooled connections."""
        await self.engine.dispose()

    def describe(self) -> str:
        """Connection target without credentials, for logs."""
        return self.url.split('@')[-1] if '@' in self.url else self.url


async def init_database(settings: Settings, database: Optional[Database] = None) -> Database:
    """Create the database handle and its tables."""
    database = database or Database.from_settings(settings)
    await database.create_tables()
    logger.info(f"✅ Connected to database: {database.describe()}")
    return database
