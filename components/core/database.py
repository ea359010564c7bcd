"""Core classes and mixins for DB connections"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional, cast
from typing import Callable, AsyncContextManager

from sqlalchemy import DateTime
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.types import TypeDecorator

from components.core import config

Base = declarative_base()
SessionMaker = Callable[[], AsyncContextManager[AsyncSession]]


class UTCDateTime(TypeDecorator):
    """Stores instants as naive UTC and loads them back as aware UTC datetimes."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.replace(tzinfo=None)

    def process_result_value(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class DatabaseManager:
    def __init__(self, engine: Optional[AsyncEngine] = None) -> None:
        """Initialize DatabaseManager with optional engine for testing."""
        self.engine = engine or self._create_engine()

    def _create_engine(self) -> AsyncEngine:
        settings = config.get_settings()
        url = settings.async_db_url
        if url.startswith("sqlite"):
            return create_async_engine(url, echo=settings.DEBUG)
        return create_async_engine(
            url,
            echo=settings.DEBUG,
            pool_pre_ping=True,  # Enable connection health checks
            pool_size=5,
            max_overflow=10,
        )

    def get_session(self) -> SessionMaker:
        """Returns SessionMaker for database sessions."""
        if not self.engine:
            raise ValueError("Database engine wasn't initialized")

        return cast(
            SessionMaker,
            sessionmaker(
                self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autocommit=False,
                autoflush=False,
            ),
        )

    @asynccontextmanager
    async def get_db(self) -> AsyncContextManager[AsyncSession]:
        """Get database session context manager."""
        async_session = self.get_session()
        async with async_session() as session:
            try:
                yield session
            finally:
                await session.close()

    async def create_all(self) -> None:
        """Create tables for every registered model."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
