"""
Database connection and session management.
"""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)

from gatekeeper.core.config import settings


def _engine_options() -> dict:
    # SQLite (local runs, tests) does not take pool sizing arguments
    if settings.database.url.startswith("sqlite"):
        return {"echo": settings.database.echo}
    return {
        "echo": settings.database.echo,
        "pool_size": settings.database.pool_size,
        "max_overflow": settings.database.pool_overflow,
        "pool_timeout": settings.database.pool_timeout,
    }


# Create async engine
engine = create_async_engine(settings.database.url, **_engine_options())

# Session factory
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_db() -> None:
    """Initialize database (create tables)."""
    # Importing the package registers every table on Base.metadata
    from gatekeeper.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close database connections."""
    await engine.dispose()
