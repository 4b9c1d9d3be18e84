"""
Database dependencies.
"""

from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.models.database import async_session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session, committed when the route returns.

    Audit records do not ride on this transaction: the audit sink opens its
    own session, so a rollback here never removes a denial record.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
