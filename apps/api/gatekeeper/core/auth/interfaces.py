"""
Authorization interfaces - Core abstractions.

Value types passed between the engine's parts and the contract every
tenant resolver implements. Nothing in here touches storage.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.models.enums import Action, Role


# ============================================================
# PRINCIPAL
# ============================================================

@dataclass(frozen=True)
class Principal:
    """
    The authenticated actor, as supplied by the upstream session layer.

    Attributes:
        id: User id
        role: Role at the time the session was issued
        tenant_id: Company the user belongs to (None for platform users)
    """
    id: str
    role: Role
    tenant_id: str | None = None

    @property
    def is_super_admin(self) -> bool:
        return self.role is Role.SUPER_ADMIN

    @property
    def is_company_admin(self) -> bool:
        return self.role is Role.COMPANY_ADMIN


# ============================================================
# RESOURCE CONTEXT
# ============================================================

@dataclass(frozen=True)
class ResourceContext:
    """
    What the operation targets.

    Attributes:
        resource_id: Id of a concrete resource (None for collection operations)
        tenant_id: Target tenant of a collection operation (e.g. the company an
            invoice is being created for). Ignored when resource_id is given;
            defaults to the principal's own tenant.
        allow_self: The call site accepts "acting on your own user record" as
            sufficient for this action
        detail: Extra structured data copied into the audit record on denial
    """
    resource_id: str | None = None
    tenant_id: str | None = None
    allow_self: bool = False
    detail: dict[str, Any] = field(default_factory=dict)


# ============================================================
# DECISION
# ============================================================

class Outcome(str, Enum):
    ALLOW = "ALLOW"
    DENY = "DENY"
    NOT_FOUND = "NOT_FOUND"


class DenyReason:
    """Short reason strings carried by Deny decisions."""
    UNAUTHENTICATED = "unauthenticated"
    INSUFFICIENT = "insufficient permissions"
    SCOPE_UNAVAILABLE = "resource scope unavailable"
    TABLE_UNAVAILABLE = "permission table unavailable"
    UNMODELED_RESOURCE = "unmodeled resource type"


class AllowedVia:
    """Which step of the decision allowed the operation."""
    SUPER_ADMIN = "super_admin"
    HIERARCHY = "hierarchy"
    SELF = "self"
    TENANT_ADMIN = "tenant_admin"
    GRANT = "grant"


@dataclass(frozen=True)
class Decision:
    """
    Result of a permission decision.

    Exactly one of allowed / denied / not_found holds.
    """
    outcome: Outcome
    reason: str | None = None
    via: str | None = None

    @classmethod
    def allow(cls, via: str) -> "Decision":
        return cls(outcome=Outcome.ALLOW, via=via)

    @classmethod
    def deny(cls, reason: str = DenyReason.INSUFFICIENT) -> "Decision":
        return cls(outcome=Outcome.DENY, reason=reason)

    @classmethod
    def not_found(cls, reason: str = "resource not found") -> "Decision":
        return cls(outcome=Outcome.NOT_FOUND, reason=reason)

    @property
    def allowed(self) -> bool:
        return self.outcome is Outcome.ALLOW

    @property
    def denied(self) -> bool:
        return self.outcome is Outcome.DENY

    @property
    def is_not_found(self) -> bool:
        return self.outcome is Outcome.NOT_FOUND


# ============================================================
# TENANT SCOPE
# ============================================================

@dataclass(frozen=True)
class TenantScope:
    """
    Tenant ownership of one resource instance.

    ``found`` is False when the id does not resolve to a row. A found row
    may still have no tenant (``tenant_id`` None).
    """
    found: bool
    tenant_id: str | None = None

    @classmethod
    def owned_by(cls, tenant_id: str | None) -> "TenantScope":
        return cls(found=True, tenant_id=tenant_id)

    @classmethod
    def missing(cls) -> "TenantScope":
        return cls(found=False)


class TenantResolver(ABC):
    """
    Reads the tenant-owning field of one resource type.

    Implementations must issue a single query that selects only the tenant
    column (a join is fine), never the full row.
    """

    @abstractmethod
    async def resolve(self, db: AsyncSession, resource_id: str) -> TenantScope:
        """
        Resolve the tenant of a resource.

        Returns TenantScope.missing() when no row has this id. Storage
        errors propagate.
        """
        pass



# ============================================================
# RESOURCE POLICY
# ============================================================

@dataclass(frozen=True)
class ResourcePolicy:
    """
    Per-resource-type narrowing of the generic decision steps.

    Attributes:
        name: Identifier used in logs
        tenant_admin_actions: Actions a company admin may perform on any
            resource of its own tenant without a table grant
        grants_require_same_tenant: Table grants only apply when the target
            tenant is the principal's own tenant
    """
    name: str
    tenant_admin_actions: frozenset[Action] = frozenset(Action)
    grants_require_same_tenant: bool = True

    def tenant_admin_may(self, action: Action) -> bool:
        return action in self.tenant_admin_actions

    def grant_applies(self, principal: Principal, target_tenant_id: str | None) -> bool:
        if not self.grants_require_same_tenant:
            return True
        return principal.tenant_id is not None and target_tenant_id == principal.tenant_id
