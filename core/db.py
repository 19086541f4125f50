"""Async SQLAlchemy engine and session factory."""
from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from .config import get_settings


_settings = get_settings()

engine: AsyncEngine = create_async_engine(
    _settings.database_url,
    echo=False,
    pool_pre_ping=True,
)

SessionFactory: async_sessionmaker[AsyncSession] = async_sessionmaker(
    bind=engine,
    expire_on_commit=False,
)


async def get_session() -> AsyncIterator[AsyncSession]:  # pragma: no cover
    """FastAPI dependency to get an async DB session."""
    async with SessionFactory() as session:
        yield session


@asynccontextmanager
async def standalone_session() -> AsyncIterator[AsyncSession]:
    """Session on a private unpooled engine, for code that runs its own event loop.

    Celery tasks and CLI scripts call ``asyncio.run`` per invocation; pooled
    connections from the shared engine would outlive the loop they belong to.
    """
    local_engine = create_async_engine(_settings.database_url, poolclass=NullPool)
    try:
        async with async_sessionmaker(bind=local_engine, expire_on_commit=False)() as session:
            yield session
    finally:
        await local_engine.dispose()
