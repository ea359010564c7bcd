"""Database initialization and dependency injection."""

from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from components.core.database import DatabaseManager
# Import all models to ensure they're registered
import components.user.models
import components.plan.models

_db_manager: Optional[DatabaseManager] = None


def get_db_manager() -> DatabaseManager:
    """Returns the process DatabaseManager, creating it on first use."""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for getting database sessions."""
    async with get_db_manager().get_db() as session:
        yield session
