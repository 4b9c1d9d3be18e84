"""
Transport boundary for permission checks.

This is the only place where decisions become status codes:

    Deny(unauthenticated) -> 401
    Deny(anything else)   -> 403
    NotFound              -> 404

Usage:
    result = await check_permission(
        db, engine, principal,
        PermissionOptions(Action.UPDATE, ResourceType.USER,
                          allow_self=True, resource_id_param="user_id"),
        route_params=request.path_params,
    )
    if not result.allowed:
        return JSONResponse(result.response.body(), status_code=result.response.status_code)
"""

from dataclasses import dataclass
from typing import Any, Mapping

from fastapi import status
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.models.enums import Action, ResourceType, Role

from .engine import PermissionDecisionEngine
from .interfaces import Decision, DenyReason, Principal, ResourceContext


@dataclass(frozen=True)
class PermissionOptions:
    """
    What a call site wants to do.

    Attributes:
        action: Requested action (legacy verbs accepted)
        resource_type: Targeted resource type
        allow_self: Acting on one's own user record is enough
        resource_id_param: Name of the route parameter holding the resource id
        tenant_id_param: Name of the route parameter holding the target tenant
            of a collection operation
    """
    action: Action | str
    resource_type: ResourceType
    allow_self: bool = False
    resource_id_param: str | None = None
    tenant_id_param: str | None = None


@dataclass(frozen=True)
class ErrorPayload:
    status_code: int
    error: str
    detail: str | None = None

    def body(self) -> dict[str, Any]:
        return {"error": self.error, "detail": self.detail}


@dataclass(frozen=True)
class PermissionCheck:
    allowed: bool
    decision: Decision
    response: ErrorPayload | None = None
    principal: Principal | None = None
    role: Role | None = None


def to_error_payload(decision: Decision) -> ErrorPayload | None:
    """Translate a non-Allow decision into a transport payload."""
    if decision.allowed:
        return None
    if decision.is_not_found:
        return ErrorPayload(status.HTTP_404_NOT_FOUND, "Not found", decision.reason)
    if decision.reason == DenyReason.UNAUTHENTICATED:
        return ErrorPayload(status.HTTP_401_UNAUTHORIZED, "Unauthorized", decision.reason)
    return ErrorPayload(status.HTTP_403_FORBIDDEN, "Forbidden", decision.reason)


async def check_permission(
    db: AsyncSession,
    engine: PermissionDecisionEngine,
    principal: Principal | None,
    options: PermissionOptions,
    route_params: Mapping[str, Any] | None = None,
    detail: dict[str, Any] | None = None,
) -> PermissionCheck:
    """
    Run a decision for a call site and translate the result.

    The resource id is read from ``route_params[options.resource_id_param]``.
    A named parameter that is absent from the route means a collection
    operation.
    """
    route_params = route_params or {}

    resource_id = None
    if options.resource_id_param:
        value = route_params.get(options.resource_id_param)
        resource_id = str(value) if value is not None else None

    tenant_id = None
    if options.tenant_id_param:
        value = route_params.get(options.tenant_id_param)
        tenant_id = str(value) if value is not None else None

    context = ResourceContext(
        resource_id=resource_id,
        tenant_id=tenant_id,
        allow_self=options.allow_self,
        detail=detail or {},
    )
    decision = await engine.decide(db, principal, options.action, options.resource_type, context)

    return PermissionCheck(
        allowed=decision.allowed,
        decision=decision,
        response=to_error_payload(decision),
        principal=principal,
        role=principal.role if principal else None,
    )
