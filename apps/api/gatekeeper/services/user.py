"""
User service.

Callers authorize first; nothing here checks permissions.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from gatekeeper.models.user import User
from gatekeeper.schemas.resources import UserUpdate


class UserService:
    """User reads and edits for the user routes."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, user_id: str) -> User | None:
        return await self.db.get(User, user_id)

    async def list_users(
        self,
        company_id: str | None,
        all_companies: bool = False,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[list[User], int]:
        """List the users of one company, or of every company with ``all_companies``."""
        stmt = select(User)
        if not all_companies:
            stmt = stmt.where(User.company_id == company_id)

        total = await self.db.scalar(select(func.count()).select_from(stmt.subquery())) or 0

        stmt = stmt.order_by(User.created_at, User.id).offset((page - 1) * per_page).limit(per_page)
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total

    async def update(self, user: User, data: UserUpdate) -> User:
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(user, field, value)
        await self.db.flush()
        await self.db.refresh(user)
        return user

    async def delete(self, user: User) -> None:
        await self.db.delete(user)
        await self.db.flush()
