"""
Database Connection Management

One async SQLAlchemy engine per application, created in the lifespan
and disposed on shutdown. PostgreSQL (asyncpg) gets a pre-pinged
connection pool; SQLite (aiosqlite, used by the test suite) runs
without pool tuning and usually with the schema created on startup.

SECURITY: The connection URL carries credentials and is never logged.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from mindsync.config import Settings, get_settings
from mindsync.config.logging_config import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """Declarative base shared by the ORM models."""


class DatabaseManager:
    """
    Engine and session factory owner.

    Usage:
        db = DatabaseManager(settings)
        await db.initialize()
        async with db.session() as session:
            ...
        await db.close()

    Each ``session()`` block is one transaction: committed when the
    block exits normally, rolled back when it raises.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._engine: Optional[AsyncEngine] = None
        self._sessions: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    async def initialize(self) -> None:
        if self._engine is not None:
            return

        config = self._settings.database
        options: dict[str, Any] = {"echo": self._settings.debug and not config.is_sqlite}
        if not config.is_sqlite:
            options.update(
                pool_size=config.pool_size,
                max_overflow=config.max_overflow,
                pool_pre_ping=True,
                pool_recycle=3600,
            )

        self._engine = create_async_engine(config.async_url, **options)
        self._sessions = async_sessionmaker(self._engine, expire_on_commit=False, autoflush=False)

        if config.auto_create_schema:
            # Importing the models registers their tables on Base.metadata
            import mindsync.infrastructure.database.models  # noqa: F401

            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Database schema ensured")

        logger.info("Database engine ready", backend="sqlite" if config.is_sqlite else "postgresql")

    async def close(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._sessions = None
        logger.info("Database engine disposed")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        if self._sessions is None:
            raise RuntimeError("DatabaseManager.initialize() has not been awaited")

        async with self._sessions() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def health_check(self) -> bool:
        """Run ``SELECT 1``; False when the engine is missing or the query fails."""
        if self._engine is None:
            return False
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as e:
            logger.error("Database health check failed", error_type=type(e).__name__)
            return False
        return True
