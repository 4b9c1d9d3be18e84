"""
Permission table service.

Reads and edits the (action, resource type) -> role set grants. Reads
never lock; concurrent writers are serialised by the unique constraint on
(action, resource_type, role).
"""

from collections import defaultdict

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.core.auth.exceptions import InvalidGrantError, PermissionTableError
from gatekeeper.models.enums import Action, ResourceType, Role
from gatekeeper.models.permission import PermissionGrant

logger = structlog.get_logger()


class PermissionTable:
    """Permission table access."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def grants_for(self, action: Action, resource_type: ResourceType) -> frozenset[Role]:
        """Roles granted ``action`` on ``resource_type``."""
        stmt = select(PermissionGrant.role).where(
            PermissionGrant.action == action,
            PermissionGrant.resource_type == resource_type,
        )
        result = await self.db.execute(stmt)
        return frozenset(result.scalars().all())

    async def get_grant(
        self,
        action: Action,
        resource_type: ResourceType,
        role: Role,
    ) -> PermissionGrant | None:
        stmt = select(PermissionGrant).where(
            PermissionGrant.action == action,
            PermissionGrant.resource_type == resource_type,
            PermissionGrant.role == role,
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def add_grant(
        self,
        action: Action,
        resource_type: ResourceType,
        role: Role,
    ) -> tuple[PermissionGrant, bool]:
        """
        Grant ``role`` the ``action`` on ``resource_type``.

        Idempotent: an existing grant is returned unchanged.

        Returns:
            (grant, created)

        Raises:
            InvalidGrantError: For SUPER_ADMIN, which never needs a grant
        """
        if role is Role.SUPER_ADMIN:
            raise InvalidGrantError("SUPER_ADMIN is always allowed and cannot hold grants")

        if resource_type.is_legacy:
            logger.warning("Grant on legacy resource type", action=action.value, role=role.value)

        existing = await self.get_grant(action, resource_type, role)
        if existing:
            return existing, False

        grant = PermissionGrant(action=action, resource_type=resource_type, role=role)
        try:
            async with self.db.begin_nested():
                self.db.add(grant)
                await self.db.flush()
        except IntegrityError as exc:
            # Another writer inserted the same triple first
            existing = await self.get_grant(action, resource_type, role)
            if existing is None:
                raise PermissionTableError(f"Could not add grant {action.value}:{resource_type.value}:{role.value}") from exc
            return existing, False

        await self.db.refresh(grant)
        logger.info(
            "Permission grant added",
            action=action.value,
            resource_type=resource_type.value,
            role=role.value,
        )
        return grant, True

    async def remove_grant(self, action: Action, resource_type: ResourceType, role: Role) -> bool:
        """Revoke a grant. Returns False when it did not exist."""
        stmt = delete(PermissionGrant).where(
            PermissionGrant.action == action,
            PermissionGrant.resource_type == resource_type,
            PermissionGrant.role == role,
        )
        result = await self.db.execute(stmt)
        removed = result.rowcount > 0
        if removed:
            logger.info(
                "Permission grant removed",
                action=action.value,
                resource_type=resource_type.value,
                role=role.value,
            )
        return removed

    async def list_grants(
        self,
        action: Action | None = None,
        resource_type: ResourceType | None = None,
        role: Role | None = None,
    ) -> list[PermissionGrant]:
        stmt = select(PermissionGrant)
        if action:
            stmt = stmt.where(PermissionGrant.action == action)
        if resource_type:
            stmt = stmt.where(PermissionGrant.resource_type == resource_type)
        if role:
            stmt = stmt.where(PermissionGrant.role == role)
        stmt = stmt.order_by(
            PermissionGrant.resource_type,
            PermissionGrant.action,
            PermissionGrant.role,
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def grants_by_role(self) -> dict[Role, list[PermissionGrant]]:
        """All grants grouped by role. Roles without grants map to []."""
        grouped: dict[Role, list[PermissionGrant]] = defaultdict(list)
        for grant in await self.list_grants():
            grouped[grant.role].append(grant)
        return {role: grouped.get(role, []) for role in Role if role is not Role.SUPER_ADMIN}
