"""
Database engine and session factory.

Engines are created explicitly by the container (or by a task) and passed
down; nothing here is created at import time.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from walletsync.models import Base


def create_engine(database_url: str, echo: bool = False, null_pool: bool = False) -> AsyncEngine:
    """
    Create async engine.

    Args:
        database_url: SQLAlchemy async URL
        echo: Echo SQL statements
        null_pool: Disable pooling (used by dramatiq workers)

    Returns:
        Async engine
    """
    kwargs: dict = {"echo": echo}
    if null_pool:
        kwargs["poolclass"] = NullPool
    elif database_url.startswith("postgresql"):
        kwargs.update(pool_pre_ping=True, pool_size=10, max_overflow=20)
    return create_async_engine(database_url, **kwargs)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create session maker bound to an engine."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def create_all_tables(engine: AsyncEngine) -> None:
    """Create all tables (tests and local bootstrap; production uses alembic)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
