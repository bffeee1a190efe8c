"""Async Session Factory — provides async DB sessions for direct usage outside FastAPI.

Invariants:
    - Meant for scripts (pairqueue-reap), migrations, and test fixtures
    - Sessions never expire attributes on commit

Design Decisions:
    - Separate from infrastructure/database.py: the CLI needs a session factory
      without the FastAPI singleton
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker,
)


def create_session_factory(
    database_url: str, isolation_level: str | None = None,
) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Create an async engine and session factory for the given database URL."""
    kwargs = {"isolation_level": isolation_level} if isolation_level else {}
    engine = create_async_engine(database_url, echo=False, **kwargs)
    return engine, async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False,
    )
