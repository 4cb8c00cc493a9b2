"""Async SQLAlchemy engine and session management."""

from collections.abc import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from keygate.core.settings import DatabaseSettings


def build_engine(db: DatabaseSettings) -> AsyncEngine:
    """Create the pooled async engine described by the settings."""
    connect_args = {"ssl": True} if db.use_ssl else {}
    return create_async_engine(
        db.async_url,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
        connect_args=connect_args,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create the session factory bound to an engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    """FastAPI dependency that yields an async database session.

    The session factory is created by the application lifespan and kept on
    ``app.state``.
    """
    factory: async_sessionmaker[AsyncSession] = request.app.state.session_factory
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
