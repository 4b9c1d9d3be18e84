"""
Role-centric view of the permission table. SUPER_ADMIN only.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.api.dependencies.auth import Audit, SuperAdmin
from gatekeeper.api.dependencies.database import get_db
from gatekeeper.core.auth.exceptions import InvalidGrantError
from gatekeeper.models.enums import Action, Role
from gatekeeper.schemas.permission import GrantResponse, RoleGrant, RoleGrantsResponse
from gatekeeper.services.permission import PermissionTable

from .permissions import GRANT_AUDIT_TYPE

router = APIRouter()


async def get_permission_table(db: Annotated[AsyncSession, Depends(get_db)]) -> PermissionTable:
    return PermissionTable(db)


def _editable(role: Role) -> Role:
    if role is Role.SUPER_ADMIN:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="SUPER_ADMIN is always allowed and cannot hold grants",
        )
    return role


@router.get("", response_model=list[RoleGrantsResponse])
async def list_roles(
    table: Annotated[PermissionTable, Depends(get_permission_table)],
    _: SuperAdmin,
):
    """Every grantable role with its grants."""
    grouped = await table.grants_by_role()
    return [
        RoleGrantsResponse(
            role=role,
            grants=[RoleGrant(action=g.action, resource_type=g.resource_type) for g in grants],
        )
        for role, grants in grouped.items()
    ]


@router.get("/{role}/grants", response_model=list[RoleGrant])
async def list_role_grants(
    role: Role,
    table: Annotated[PermissionTable, Depends(get_permission_table)],
    _: SuperAdmin,
):
    grants = await table.list_grants(role=_editable(role))
    return [RoleGrant(action=g.action, resource_type=g.resource_type) for g in grants]


@router.post("/{role}/grants", response_model=GrantResponse)
async def add_role_grant(
    role: Role,
    data: RoleGrant,
    response: Response,
    table: Annotated[PermissionTable, Depends(get_permission_table)],
    audit: Audit,
    principal: SuperAdmin,
):
    """Grant the role an action on a resource type (201 new / 200 existing)."""
    try:
        grant, created = await table.add_grant(data.action, data.resource_type, _editable(role))
    except InvalidGrantError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    if created:
        await audit.log_action(
            principal,
            Action.CREATE,
            GRANT_AUDIT_TYPE,
            grant.id,
            detail={"action": data.action.value, "resource_type": data.resource_type.value, "role": role.value},
        )
    return GrantResponse.model_validate(grant)


@router.delete("/{role}/grants", status_code=status.HTTP_204_NO_CONTENT)
async def remove_role_grant(
    role: Role,
    data: RoleGrant,
    table: Annotated[PermissionTable, Depends(get_permission_table)],
    audit: Audit,
    principal: SuperAdmin,
):
    removed = await table.remove_grant(data.action, data.resource_type, _editable(role))
    if not removed:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Grant not found")

    await audit.log_action(
        principal,
        Action.DELETE,
        GRANT_AUDIT_TYPE,
        detail={"action": data.action.value, "resource_type": data.resource_type.value, "role": role.value},
    )
