"""Database session management with async SQLAlchemy."""
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from billpay.config import Settings


def create_engine(settings: Settings) -> AsyncEngine:
    """
    Create the async engine for the configured database.

    Args:
        settings: Application settings

    Returns:
        AsyncEngine: Engine with a pooled connection
    """
    if settings.database_url.startswith("sqlite"):
        return create_async_engine(settings.database_url, echo=settings.database_echo)

    return create_async_engine(
        settings.database_url,
        echo=settings.database_echo,
        pool_pre_ping=True,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create the session factory bound to an engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@asynccontextmanager
async def session_scope(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    """
    Provide a session that forms a single transaction.

    Commits when the block exits normally and rolls back on any error, so a
    failed operation leaves no partial state behind.

    Yields:
        AsyncSession: Database session for the unit of work
    """
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# Declarative base for all models
Base = declarative_base()
