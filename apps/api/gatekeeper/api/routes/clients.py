"""
Client routes.

Creation calls ``check_permission`` directly because the target company
comes from the request body, not from the path.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.api.dependencies.auth import Audit, Engine, OptionalPrincipal
from gatekeeper.api.dependencies.database import get_db
from gatekeeper.api.dependencies.permissions import require_permission
from gatekeeper.core.auth.service import PermissionCheck, PermissionOptions, check_permission
from gatekeeper.models.enums import Action, ResourceType
from gatekeeper.schemas.resources import ClientCreate, ClientResponse, ClientUpdate
from gatekeeper.services.client import ClientService
from gatekeeper.utils.pagination import OffsetParams, OffsetPage, get_offset_params

router = APIRouter()


async def get_client_service(db: Annotated[AsyncSession, Depends(get_db)]) -> ClientService:
    return ClientService(db)


def require_client(action: Action):
    return require_permission(action, ResourceType.CLIENT, resource_id_param="client_id")


@router.get("")
async def list_clients(
    pagination: Annotated[OffsetParams, Depends(get_offset_params)],
    service: Annotated[ClientService, Depends(get_client_service)],
    check: Annotated[PermissionCheck, Depends(require_permission(Action.READ, ResourceType.CLIENT))],
) -> dict[str, Any]:
    """List the clients of the caller's company (all clients for super admins)."""
    principal = check.principal

    clients, total = await service.list_clients(
        company_id=principal.tenant_id,
        all_companies=principal.is_super_admin,
        page=pagination.page,
        per_page=pagination.per_page,
    )
    page = OffsetPage.create(
        items=[ClientResponse.model_validate(c) for c in clients],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
    )
    return page.model_dump()


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_client(
    data: ClientCreate,
    principal: OptionalPrincipal,
    engine: Engine,
    audit: Audit,
    db: Annotated[AsyncSession, Depends(get_db)],
    service: Annotated[ClientService, Depends(get_client_service)],
):
    """Create a client for the caller's company, or for ``company_id`` if given."""
    result = await check_permission(
        db,
        engine,
        principal,
        PermissionOptions(Action.CREATE, ResourceType.CLIENT, tenant_id_param="company_id"),
        route_params={"company_id": data.company_id},
        detail={"method": "POST", "path": "/api/clients"},
    )
    if not result.allowed:
        raise HTTPException(status_code=result.response.status_code, detail=result.response.detail)

    company_id = data.company_id or principal.tenant_id
    client = await service.create(data, company_id)
    await audit.log_action(principal, Action.CREATE, ResourceType.CLIENT, client.id, detail={"name": client.name})
    return ClientResponse.model_validate(client)


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: str,
    service: Annotated[ClientService, Depends(get_client_service)],
    _: Annotated[PermissionCheck, Depends(require_client(Action.READ))],
):
    client = await service.get_by_id(client_id)
    if not client:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return ClientResponse.model_validate(client)


@router.patch("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: str,
    data: ClientUpdate,
    service: Annotated[ClientService, Depends(get_client_service)],
    audit: Audit,
    check: Annotated[PermissionCheck, Depends(require_client(Action.UPDATE))],
):
    client = await service.get_by_id(client_id)
    if not client:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)

    client = await service.update(client, data)
    await audit.log_action(
        check.principal,
        Action.UPDATE,
        ResourceType.CLIENT,
        client.id,
        detail={"fields": sorted(data.model_dump(exclude_unset=True))},
    )
    return ClientResponse.model_validate(client)


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_client(
    client_id: str,
    service: Annotated[ClientService, Depends(get_client_service)],
    audit: Audit,
    check: Annotated[PermissionCheck, Depends(require_client(Action.DELETE))],
):
    client = await service.get_by_id(client_id)
    if not client:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)

    await service.delete(client)
    await audit.log_action(check.principal, Action.DELETE, ResourceType.CLIENT, client_id, detail={"name": client.name})
