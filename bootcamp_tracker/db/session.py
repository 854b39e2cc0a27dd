"""Async Session Factory — provides async DB sessions outside FastAPI.

Invariants:
    - Meant for CLI scripts and the tracking worker, which run without the app lifespan

Design Decisions:
    - Separate from infrastructure/database.py: scripts need a plain session factory
      plus a way to dispose the engine on exit
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker,
)


def create_session_factory(
    database_url: str,
) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Create an engine and its async session factory for the given database URL."""
    engine = create_async_engine(database_url, echo=False, pool_pre_ping=True)
    factory = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False,
    )
    return engine, factory
