"""
Permission table management.

Only SUPER_ADMIN may edit grants. These routes are guarded by a plain role
check instead of the decision engine, so the table can be bootstrapped.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.api.dependencies.auth import Audit, CurrentPrincipal, Engine, SuperAdmin
from gatekeeper.api.dependencies.database import get_db
from gatekeeper.core.auth.exceptions import InvalidGrantError
from gatekeeper.core.auth.interfaces import Principal, ResourceContext
from gatekeeper.core.auth.service import to_error_payload
from gatekeeper.models.enums import Action, ResourceType, Role
from gatekeeper.models.user import User
from gatekeeper.schemas.permission import (
    GrantCreate,
    GrantDelete,
    GrantResponse,
    PermissionCheckRequest,
    PermissionCheckResponse,
)
from gatekeeper.services.permission import PermissionTable

router = APIRouter()

# Resource type under which grant changes are audited
GRANT_AUDIT_TYPE = "PERMISSION_GRANT"


async def get_permission_table(db: Annotated[AsyncSession, Depends(get_db)]) -> PermissionTable:
    return PermissionTable(db)


@router.get("", response_model=list[GrantResponse])
async def list_grants(
    table: Annotated[PermissionTable, Depends(get_permission_table)],
    _: SuperAdmin,
    action: Action | None = Query(None),
    resource_type: ResourceType | None = Query(None),
    role: Role | None = Query(None),
):
    """List grants, optionally filtered."""
    grants = await table.list_grants(action=action, resource_type=resource_type, role=role)
    return [GrantResponse.model_validate(g) for g in grants]


@router.post("", response_model=GrantResponse)
async def add_grant(
    data: GrantCreate,
    response: Response,
    table: Annotated[PermissionTable, Depends(get_permission_table)],
    audit: Audit,
    principal: SuperAdmin,
):
    """
    Add a grant. Idempotent: 201 when created, 200 when it already existed.
    """
    try:
        grant, created = await table.add_grant(data.action, data.resource_type, data.role)
    except InvalidGrantError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    if created:
        await audit.log_action(
            principal,
            Action.CREATE,
            GRANT_AUDIT_TYPE,
            grant.id,
            detail={"action": data.action.value, "resource_type": data.resource_type.value, "role": data.role.value},
        )
    return GrantResponse.model_validate(grant)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def remove_grant(
    data: GrantDelete,
    table: Annotated[PermissionTable, Depends(get_permission_table)],
    audit: Audit,
    principal: SuperAdmin,
):
    """Remove a grant. 404 if it does not exist."""
    removed = await table.remove_grant(data.action, data.resource_type, data.role)
    if not removed:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Grant not found")

    await audit.log_action(
        principal,
        Action.DELETE,
        GRANT_AUDIT_TYPE,
        detail={"action": data.action.value, "resource_type": data.resource_type.value, "role": data.role.value},
    )


async def resolve_check_target(db: AsyncSession, principal: Principal, user_id: str | None) -> Principal:
    """
    Principal whose permissions a dry run evaluates.

    Another user may be named by SUPER_ADMIN, or by COMPANY_ADMIN for users
    of its own company. The target's role and company come from its user row.
    """
    if user_id is None or user_id == principal.id:
        return principal

    if not (principal.is_super_admin or principal.is_company_admin):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only administrators may check another user's permissions",
        )

    user = await db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    if not principal.is_super_admin and (principal.tenant_id is None or user.company_id != principal.tenant_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User belongs to another company",
        )
    return Principal(id=user.id, role=user.role, tenant_id=user.company_id)


@router.post("/check", response_model=PermissionCheckResponse)
async def check_permission_dry_run(
    data: PermissionCheckRequest,
    principal: CurrentPrincipal,
    engine: Engine,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """
    Dry-run a decision for the caller, or for the user named by ``user_id``.

    Nothing is audited, including denials.
    """
    target = await resolve_check_target(db, principal, data.user_id)
    decision = await engine.evaluate(
        db,
        target,
        data.action,
        data.resource_type,
        ResourceContext(
            resource_id=data.resource_id,
            tenant_id=data.tenant_id,
            allow_self=data.allow_self,
        ),
    )
    payload = to_error_payload(decision)
    return PermissionCheckResponse(
        principal_id=target.id,
        allowed=decision.allowed,
        outcome=decision.outcome.value,
        reason=decision.reason,
        via=decision.via,
        status_code=payload.status_code if payload else status.HTTP_200_OK,
    )
