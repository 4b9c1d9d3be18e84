"""
Tenant resolvers for every modeled resource type.

Each resolver selects only the tenant column of the target row:

    SELECT company_id FROM clients WHERE id = :id

Resource types without a tenant column of their own resolve through one
join (tasks -> projects). ``OTHER`` has no resolver on purpose.
"""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.models import (
    Client,
    Company,
    Invoice,
    Lead,
    Opportunity,
    Payment,
    Product,
    Project,
    ResourceType,
    Task,
    User,
)

from ..interfaces import TenantResolver, TenantScope
from ..registry import AuthRegistry


class ColumnTenantResolver(TenantResolver):
    """
    Reads a tenant column straight off the resource's own table.

    Args:
        model: Mapped class of the resource
        tenant_column: Attribute holding the tenant id (default: company_id)
    """

    def __init__(self, model: type, tenant_column: str = "company_id"):
        self.model = model
        self.tenant_column = tenant_column

    def _tenant_attr(self) -> Any:
        return getattr(self.model, self.tenant_column)

    async def resolve(self, db: AsyncSession, resource_id: str) -> TenantScope:
        stmt = select(self._tenant_attr()).where(self.model.id == resource_id)
        row = (await db.execute(stmt)).first()
        if row is None:
            return TenantScope.missing()
        return TenantScope.owned_by(row[0])

    def __repr__(self) -> str:
        return f"<ColumnTenantResolver {self.model.__name__}.{self.tenant_column}>"


class JoinTenantResolver(TenantResolver):
    """
    Reads the tenant column of a parent row through a foreign key.

    Args:
        model: Mapped class of the resource
        foreign_key: Attribute on the resource pointing at the parent
        parent: Mapped class of the parent
        tenant_column: Tenant attribute on the parent (default: company_id)
    """

    def __init__(
        self,
        model: type,
        foreign_key: str,
        parent: type,
        tenant_column: str = "company_id",
    ):
        self.model = model
        self.foreign_key = foreign_key
        self.parent = parent
        self.tenant_column = tenant_column

    async def resolve(self, db: AsyncSession, resource_id: str) -> TenantScope:
        stmt = (
            select(getattr(self.parent, self.tenant_column))
            .select_from(self.model)
            .join(self.parent, getattr(self.model, self.foreign_key) == self.parent.id)
            .where(self.model.id == resource_id)
        )
        row = (await db.execute(stmt)).first()
        if row is None:
            return TenantScope.missing()
        return TenantScope.owned_by(row[0])

    def __repr__(self) -> str:
        return (
            f"<JoinTenantResolver {self.model.__name__}.{self.foreign_key}"
            f" -> {self.parent.__name__}.{self.tenant_column}>"
        )


def register_default_resolvers() -> None:
    """Register resolvers for every modeled resource type."""
    column_owned = {
        ResourceType.USER: User,
        ResourceType.CLIENT: Client,
        ResourceType.PROJECT: Project,
        ResourceType.PAYMENT: Payment,
        ResourceType.INVOICE: Invoice,
        ResourceType.PRODUCT: Product,
        ResourceType.LEAD: Lead,
        ResourceType.OPPORTUNITY: Opportunity,
    }
    for resource_type, model in column_owned.items():
        AuthRegistry.register_tenant_resolver(resource_type, ColumnTenantResolver(model))

    # A company is its own tenant
    AuthRegistry.register_tenant_resolver(
        ResourceType.COMPANY,
        ColumnTenantResolver(Company, tenant_column="id"),
    )
    AuthRegistry.register_tenant_resolver(
        ResourceType.TASK,
        JoinTenantResolver(Task, foreign_key="project_id", parent=Project),
    )


register_default_resolvers()
