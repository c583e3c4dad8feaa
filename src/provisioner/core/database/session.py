"""Async engine and session factory for the tenant registry."""

from collections.abc import AsyncGenerator
from functools import lru_cache

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from provisioner.config import settings


def create_engine(url: str | None = None) -> AsyncEngine:
    """Create an async engine for the registry database.

    Args:
        url: Async database URL; defaults to the configured registry URL

    Returns:
        A new AsyncEngine
    """
    url = url or settings.async_database_url
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=settings.database_echo)
    return create_async_engine(
        url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        echo=settings.database_echo,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Build the session factory handed to pipelines and jobs."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@lru_cache
def get_engine() -> AsyncEngine:
    """Get the process-wide engine (created lazily)."""
    return create_engine()


@lru_cache
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get the process-wide session factory."""
    return create_session_factory(get_engine())


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a registry session."""
    async with get_session_factory()() as session:
        yield session
