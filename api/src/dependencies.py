"""
FastAPI dependency injection for database access.

Provides injectable dependencies for:
- A database session scoped to the current request
- The storage gateway built on that session
- Application settings

All dependencies use FastAPI's dependency injection system so tests can
override them with ``app.dependency_overrides``.
"""

import structlog
from typing import AsyncGenerator
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from api.src.config import Settings
from api.src.repositories.gateway import StorageGateway

logger = structlog.get_logger(__name__)


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    """
    Get the session factory created at startup.

    Raises:
        RuntimeError: If the application lifespan has not run
    """
    factory = getattr(request.app.state, "session_factory", None)
    if factory is None:
        logger.error("session_factory_not_initialized")
        raise RuntimeError(
            "Database not initialized. The application lifespan must run before serving requests."
        )
    return factory


async def get_db_session(
    factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory)
) -> AsyncGenerator[AsyncSession, None]:
    """
    Open a session for the current request.

    The session is closed when the request finishes, whatever the outcome.
    Anything left uncommitted is rolled back on close.

    Yields:
        Async session
    """
    async with factory() as session:
        logger.debug("db_session_opened")
        try:
            yield session
        finally:
            logger.debug("db_session_closed")


async def get_storage_gateway(
    session: AsyncSession = Depends(get_db_session)
) -> StorageGateway:
    """
    Get the storage gateway for the current request.

    Args:
        session: Request scoped session

    Returns:
        Storage gateway
    """
    return StorageGateway(session)


def get_settings_dependency(request: Request) -> Settings:
    """Get the settings the application was created with."""
    return request.app.state.settings
