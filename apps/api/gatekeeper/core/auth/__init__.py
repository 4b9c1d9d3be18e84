"""
Authorization module - multi-tenant permission decisions.

Usage:
=============

Deciding in code
----------------
    from gatekeeper.core.auth import PermissionDecisionEngine, Principal, ResourceContext

    decision = await engine.decide(db, principal, Action.DELETE, ResourceType.CLIENT,
                                   ResourceContext(resource_id=client_id))
    if decision.allowed:
        ...

At the HTTP boundary
--------------------
    from gatekeeper.api.dependencies.permissions import require_permission

    @router.patch("/users/{user_id}")
    async def update_user(
        check: PermissionCheck = Depends(require_permission(
            Action.UPDATE, ResourceType.USER, allow_self=True, resource_id_param="user_id",
        )),
    ):
        ...

FastAPI dependencies (principal, engine, audit logger) live in
``gatekeeper.core.auth.dependencies``.

Extensibility:
=============

Replace the tenant resolver of a resource type:
    @AuthRegistry.tenant_resolver(ResourceType.TASK)
    class TaskTenantResolver(TenantResolver):
        ...

Narrow what company admins may do on a type:
    AuthRegistry.register_policy(ResourceType.LEAD,
                                 ResourcePolicy("leads", frozenset({Action.READ})))
"""

from .interfaces import (
    Principal,
    ResourceContext,
    Decision,
    Outcome,
    DenyReason,
    AllowedVia,
    TenantScope,
    TenantResolver,
    ResourcePolicy,
)
from .exceptions import (
    AuthorizationError,
    InvalidTokenError,
    ScopeResolutionError,
    UnresolvableResourceError,
    PermissionTableError,
    InvalidGrantError,
)
from .registry import AuthRegistry
from .scope import TenantScopeChecker, ColumnTenantResolver, JoinTenantResolver
from .policy import DEFAULT_POLICY, FINANCIAL_POLICY
from .hierarchy import RoleHierarchy
from .engine import PermissionDecisionEngine
from .service import (
    PermissionOptions,
    PermissionCheck,
    ErrorPayload,
    check_permission,
    to_error_payload,
)

__all__ = [
    # Interfaces
    "Principal",
    "ResourceContext",
    "Decision",
    "Outcome",
    "DenyReason",
    "AllowedVia",
    "TenantScope",
    "TenantResolver",
    "ResourcePolicy",
    # Exceptions
    "AuthorizationError",
    "InvalidTokenError",
    "ScopeResolutionError",
    "UnresolvableResourceError",
    "PermissionTableError",
    "InvalidGrantError",
    # Registry
    "AuthRegistry",
    # Components
    "TenantScopeChecker",
    "ColumnTenantResolver",
    "JoinTenantResolver",
    "DEFAULT_POLICY",
    "FINANCIAL_POLICY",
    "RoleHierarchy",
    "PermissionDecisionEngine",
    # Boundary
    "PermissionOptions",
    "PermissionCheck",
    "ErrorPayload",
    "check_permission",
    "to_error_payload",
]
