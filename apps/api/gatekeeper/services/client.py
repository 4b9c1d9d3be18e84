"""
Client service.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from gatekeeper.models.client import Client
from gatekeeper.schemas.resources import ClientCreate, ClientUpdate


class ClientService:
    """Client CRUD for the client routes. Callers authorize first."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, client_id: str) -> Client | None:
        return await self.db.get(Client, client_id)

    async def list_clients(
        self,
        company_id: str | None,
        all_companies: bool = False,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[list[Client], int]:
        stmt = select(Client)
        if not all_companies:
            stmt = stmt.where(Client.company_id == company_id)

        total = await self.db.scalar(select(func.count()).select_from(stmt.subquery())) or 0

        stmt = stmt.order_by(Client.created_at, Client.id).offset((page - 1) * per_page).limit(per_page)
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total

    async def create(self, data: ClientCreate, company_id: str | None) -> Client:
        client = Client(name=data.name, email=data.email, company_id=company_id)
        self.db.add(client)
        await self.db.flush()
        await self.db.refresh(client)
        return client

    async def update(self, client: Client, data: ClientUpdate) -> Client:
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(client, field, value)
        await self.db.flush()
        await self.db.refresh(client)
        return client

    async def delete(self, client: Client) -> None:
        await self.db.delete(client)
        await self.db.flush()
