"""
User routes.

Every route follows the same flow: the permission dependency decides
(denials are audited by the engine), the route operates, then the success
is recorded with ``log_action``.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.api.dependencies.auth import Audit
from gatekeeper.api.dependencies.database import get_db
from gatekeeper.api.dependencies.permissions import require_permission
from gatekeeper.core.auth.service import PermissionCheck
from gatekeeper.models.enums import Action, ResourceType
from gatekeeper.schemas.resources import UserResponse, UserUpdate
from gatekeeper.services.user import UserService
from gatekeeper.utils.pagination import OffsetParams, OffsetPage, get_offset_params

router = APIRouter()


async def get_user_service(db: Annotated[AsyncSession, Depends(get_db)]) -> UserService:
    return UserService(db)


@router.get("")
async def list_users(
    pagination: Annotated[OffsetParams, Depends(get_offset_params)],
    service: Annotated[UserService, Depends(get_user_service)],
    check: Annotated[PermissionCheck, Depends(require_permission("LIST", ResourceType.USER))],
) -> dict[str, Any]:
    """List users of the caller's company (all users for super admins)."""
    principal = check.principal

    users, total = await service.list_users(
        company_id=principal.tenant_id,
        all_companies=principal.is_super_admin,
        page=pagination.page,
        per_page=pagination.per_page,
    )
    page = OffsetPage.create(
        items=[UserResponse.model_validate(u) for u in users],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
    )
    return page.model_dump()


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    service: Annotated[UserService, Depends(get_user_service)],
    _: Annotated[PermissionCheck, Depends(require_permission(
        Action.READ, ResourceType.USER, allow_self=True, resource_id_param="user_id",
    ))],
):
    """Get a user. Anyone may read their own record."""
    user = await service.get_by_id(user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return UserResponse.model_validate(user)


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    data: UserUpdate,
    service: Annotated[UserService, Depends(get_user_service)],
    audit: Audit,
    check: Annotated[PermissionCheck, Depends(require_permission(
        Action.UPDATE, ResourceType.USER, allow_self=True, resource_id_param="user_id",
    ))],
):
    """Update a user. Anyone may update their own record."""
    user = await service.get_by_id(user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)

    user = await service.update(user, data)
    await audit.log_action(
        check.principal,
        Action.UPDATE,
        ResourceType.USER,
        user.id,
        detail={"fields": sorted(data.model_dump(exclude_unset=True))},
    )
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: str,
    service: Annotated[UserService, Depends(get_user_service)],
    audit: Audit,
    check: Annotated[PermissionCheck, Depends(require_permission(
        Action.DELETE, ResourceType.USER, resource_id_param="user_id",
    ))],
):
    """Delete a user. Self-access does not cover deletion."""
    user = await service.get_by_id(user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)

    detail = {"email": user.email, "company_id": user.company_id}
    await service.delete(user)
    await audit.log_action(check.principal, Action.DELETE, ResourceType.USER, user_id, detail=detail)
