"""Async SQLAlchemy database setup."""

import logging
from collections.abc import AsyncGenerator

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.config import settings

logger = logging.getLogger(__name__)

engine = create_async_engine(
    settings.database_url,
    pool_size=settings.database_pool_size,
    max_overflow=settings.database_max_overflow,
    echo=settings.database_echo,
    pool_pre_ping=True,
    pool_recycle=300,  # managed Postgres drops idle connections
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


def is_connection_error(exc: BaseException) -> bool:
    """Return True when an exception came from a dropped DB connection."""
    if isinstance(exc, (InterfaceError, OperationalError)):
        return True
    return isinstance(exc, DBAPIError) and bool(exc.connection_invalidated)


async def _rollback_quietly(session: AsyncSession, exc: BaseException) -> None:
    if is_connection_error(exc) and not session.in_transaction():
        logger.debug("Session connection already closed during cleanup")
        return
    logger.warning("Database session error, rolling back", extra={"error": repr(exc)})
    try:
        await session.rollback()
    except (InterfaceError, OperationalError):
        logger.warning("Rollback also failed (connection likely closed)")


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session for dependency injection.

    Commits when the request handler returns normally, rolls back otherwise.
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception as exc:
            await _rollback_quietly(session, exc)
            raise


async def init_db() -> None:
    """Initialize database (create tables if needed)."""
    logger.info("Initializing database tables")
    from app.models.base import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close database connections."""
    logger.info("Closing database connections")
    await engine.dispose()
