"""
Database engine and session factory.

The engine (and its connection pool) lives for the whole process and is
created during application startup. Sessions are short lived: one per
request, handed out by ``api.src.dependencies.get_db_session``.
"""

import structlog
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from api.src.config import Settings
from api.src.models.entities import Base

logger = structlog.get_logger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(settings: Settings) -> AsyncEngine:
    """
    Create the async engine for the configured database.

    SQLite does not enforce foreign keys unless asked to on every
    connection, so a connect hook turns them on.

    Args:
        settings: Application settings

    Returns:
        Async engine
    """
    engine = create_async_engine(
        settings.database_url,
        echo=settings.database_echo,
        pool_pre_ping=settings.database_pool_pre_ping,
    )

    if settings.is_sqlite:
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    logger.info(
        "database_engine_created",
        database=settings.database_url.split("@")[-1],
        dialect=engine.dialect.name
    )
    return engine


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Create the per-request session factory.

    ``expire_on_commit`` is off so rows can be serialised after the commit.
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def create_schema(engine: AsyncEngine) -> None:
    """Create missing tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database_schema_ready", tables=sorted(Base.metadata.tables))
