"""
Database handle, session scope, and declarative base for TradeCal.

Uses async SQLAlchemy 2.0 (aiosqlite for local/dev, asyncpg in production).
The handle is constructed and owned by the caller; there is no module-level
engine.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

import structlog
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from tradecal.config import settings

logger = structlog.get_logger(__name__)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for TradeCal models."""

    pass


class Database:
    """
    Owns one async engine and its session factory.

    Lifecycle is explicit: ``await db.open()`` before use and
    ``await db.close()`` at shutdown (or use it as an async context manager).
    """

    def __init__(
        self,
        url: Optional[str] = None,
        echo: Optional[bool] = None,
        create_tables: bool = False,
        **engine_kwargs: Any,
    ):
        self.url = url or settings.async_database_url
        self.echo = settings.db_echo if echo is None else echo
        self.create_tables = create_tables
        self.engine_kwargs = engine_kwargs
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database is not open; call open() first")
        return self._engine

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def _build_engine_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {"echo": self.echo}
        if not self.url.startswith("sqlite"):
            kwargs.update(
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_recycle=settings.db_pool_recycle,
            )
        kwargs.update(self.engine_kwargs)
        return kwargs

    async def open(self) -> "Database":
        """Create the engine (idempotent) and optionally the tables."""
        if self._engine is not None:
            return self

        self._engine = create_async_engine(self.url, **self._build_engine_kwargs())
        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        logger.info("database_engine_created", db=self.url.split("@")[-1])

        if self.create_tables:
            await self.create_all()
        return self

    async def create_all(self) -> None:
        """Create all tables from the ORM models."""
        import tradecal.db.models  # noqa: F401  registers the ORM models

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("database_tables_created")

    async def drop_all(self) -> None:
        import tradecal.db.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        logger.info("database_tables_dropped")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide an async session: commit on success, roll back and re-raise on error."""
        if self._session_factory is None:
            raise RuntimeError("Database is not open; call open() first")
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def close(self) -> None:
        """Dispose of the engine (call at shutdown)."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("database_closed")

    async def __aenter__(self) -> "Database":
        return await self.open()

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
