"""
Permission checking dependencies.
"""

from typing import Callable

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.core.auth.dependencies import get_engine, get_principal_optional
from gatekeeper.core.auth.engine import PermissionDecisionEngine
from gatekeeper.core.auth.interfaces import Principal
from gatekeeper.core.auth.service import PermissionCheck, PermissionOptions, check_permission
from gatekeeper.models.enums import Action, ResourceType
from .database import get_db


def require_permission(
    action: Action | str,
    resource_type: ResourceType,
    allow_self: bool = False,
    resource_id_param: str | None = None,
    tenant_id_param: str | None = None,
) -> Callable:
    """
    Dependency factory running the decision engine for a route.

    Path and query parameters are both searched for the named parameters.
    On refusal raises HTTPException with 401, 403 or 404; on success returns
    the PermissionCheck (principal included).

    Usage:
    ```python
    @router.delete("/{client_id}", status_code=204)
    async def delete_client(
        client_id: str,
        check: PermissionCheck = Depends(
            require_permission(Action.DELETE, ResourceType.CLIENT, resource_id_param="client_id")
        ),
    ):
        ...
    ```
    """
    options = PermissionOptions(
        action=action,
        resource_type=resource_type,
        allow_self=allow_self,
        resource_id_param=resource_id_param,
        tenant_id_param=tenant_id_param,
    )

    async def dependency(
        request: Request,
        principal: Principal | None = Depends(get_principal_optional),
        engine: PermissionDecisionEngine = Depends(get_engine),
        db: AsyncSession = Depends(get_db),
    ) -> PermissionCheck:
        params = {**request.query_params, **request.path_params}
        result = await check_permission(
            db,
            engine,
            principal,
            options,
            route_params=params,
            detail={"method": request.method, "path": request.url.path},
        )

        if not result.allowed:
            headers = {"WWW-Authenticate": "Bearer"} if result.response.status_code == 401 else None
            raise HTTPException(
                status_code=result.response.status_code,
                detail=result.response.detail,
                headers=headers,
            )

        return result

    return dependency
