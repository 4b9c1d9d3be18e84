"""
Permission decision engine.

Combines the role hierarchy, the ownership/tenant scope checker, the
per-resource-type policies and the permission table into one decision.
Steps run cheapest and most privileged first and stop at the first
answer:

    1. no principal                              -> Deny (unauthenticated)
    2. SUPER_ADMIN                               -> Allow
    3. role hierarchy fast-path                  -> Allow
    4. self-access opted in and target is self   -> Allow
    5. resolve target tenant; row missing        -> NotFound
    6. COMPANY_ADMIN in the target tenant        -> Allow (if policy permits)
    7. role in the table grant (tenant-bounded)  -> Allow
    8. otherwise                                 -> Deny (insufficient)

Any storage failure while checking turns into a Deny. Every Deny writes
one DENIED audit record before ``decide`` returns; NotFound writes none.
"""

from typing import TYPE_CHECKING, Any, Callable

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.models.enums import Action, ResourceType

from .exceptions import ScopeResolutionError, UnresolvableResourceError
from .hierarchy import RoleHierarchy
from .interfaces import (
    AllowedVia,
    Decision,
    DenyReason,
    Principal,
    ResourceContext,
)
from .registry import AuthRegistry
from .scope import TenantScopeChecker

# Registers the default policies
from . import policy  # noqa: F401

if TYPE_CHECKING:
    from gatekeeper.services.audit import AuditLogger
    from gatekeeper.services.permission import PermissionTable

logger = structlog.get_logger()


class PermissionDecisionEngine:
    """
    Decides whether a principal may perform an action on a resource.

    Args:
        table_factory: Builds the permission table reader for a session
            (normally ``PermissionTable``)
        audit: Audit logger used for denials
        hierarchy: Role hierarchy evaluator

    Usage:
        engine = PermissionDecisionEngine(PermissionTable, audit)
        decision = await engine.decide(db, principal, Action.DELETE, ResourceType.CLIENT,
                                       ResourceContext(resource_id=client_id))
    """

    def __init__(
        self,
        table_factory: Callable[[AsyncSession], "PermissionTable"],
        audit: "AuditLogger",
        hierarchy: RoleHierarchy | None = None,
    ):
        self.table_factory = table_factory
        self.audit = audit
        self.hierarchy = hierarchy or RoleHierarchy()

    async def decide(
        self,
        db: AsyncSession,
        principal: Principal | None,
        action: Action | str,
        resource_type: ResourceType,
        context: ResourceContext | None = None,
    ) -> Decision:
        """
        Decide and audit. A Deny is recorded before this returns.

        ``action`` may be a legacy verb (LIST, SEND); it is normalised and
        the verb as requested is kept in the audit detail.
        """
        context = context or ResourceContext()
        requested = action.value if isinstance(action, Action) else str(action).upper()
        action = self._normalise(action)

        decision = await self.evaluate(db, principal, action, resource_type, context)

        if decision.denied:
            detail: dict[str, Any] = {"reason": decision.reason, "requested_action": requested}
            detail.update(context.detail)
            await self.audit.record_denial(
                principal,
                action,
                resource_type,
                resource_id=context.resource_id,
                detail=detail,
            )
        return decision

    async def evaluate(
        self,
        db: AsyncSession,
        principal: Principal | None,
        action: Action | str,
        resource_type: ResourceType,
        context: ResourceContext | None = None,
    ) -> Decision:
        """Decide without writing anything."""
        context = context or ResourceContext()
        action = self._normalise(action)

        decision = await self._evaluate(db, principal, action, resource_type, context)

        log = logger.info if decision.denied else logger.debug
        log(
            "Permission decision",
            outcome=decision.outcome.value,
            reason=decision.reason,
            via=decision.via,
            principal_id=principal.id if principal else None,
            role=principal.role.value if principal else None,
            action=action.value,
            resource_type=resource_type.value,
            resource_id=context.resource_id,
        )
        return decision

    async def _evaluate(
        self,
        db: AsyncSession,
        principal: Principal | None,
        action: Action,
        resource_type: ResourceType,
        context: ResourceContext,
    ) -> Decision:
        if principal is None:
            return Decision.deny(DenyReason.UNAUTHENTICATED)

        if principal.is_super_admin:
            return Decision.allow(AllowedVia.SUPER_ADMIN)

        if resource_type.is_legacy:
            logger.warning(
                "Legacy resource type in permission check",
                principal_id=principal.id,
                action=action.value,
                resource_id=context.resource_id,
            )

        checker = TenantScopeChecker(db)
        policy = AuthRegistry.get_policy(resource_type)

        try:
            fast = await self.hierarchy.evaluate(principal, action, resource_type, context, checker)
            if fast is not None:
                return fast

            if checker.is_self(principal, resource_type, context.resource_id, context.allow_self):
                return Decision.allow(AllowedVia.SELF)

            if context.resource_id is None:
                target_tenant = context.tenant_id or principal.tenant_id
            else:
                scope = await checker.resolve(resource_type, context.resource_id)
                if not scope.found:
                    return Decision.not_found()
                target_tenant = scope.tenant_id
        except UnresolvableResourceError:
            return Decision.deny(DenyReason.UNMODELED_RESOURCE)
        except ScopeResolutionError as exc:
            logger.error(
                "Scope resolution failed, denying",
                resource_type=exc.resource_type,
                resource_id=exc.resource_id,
                error=str(exc.cause),
            )
            return Decision.deny(DenyReason.SCOPE_UNAVAILABLE)

        same_tenant = principal.tenant_id is not None and target_tenant == principal.tenant_id

        if principal.is_company_admin and same_tenant and policy.tenant_admin_may(action):
            return Decision.allow(AllowedVia.TENANT_ADMIN)

        try:
            roles = await self.table_factory(db).grants_for(action, resource_type)
        except SQLAlchemyError as exc:
            logger.error(
                "Permission table lookup failed, denying",
                action=action.value,
                resource_type=resource_type.value,
                error=str(exc),
            )
            return Decision.deny(DenyReason.TABLE_UNAVAILABLE)

        if principal.role in roles and policy.grant_applies(principal, target_tenant):
            return Decision.allow(AllowedVia.GRANT)

        return Decision.deny(DenyReason.INSUFFICIENT)

    @staticmethod
    def _normalise(action: Action | str) -> Action:
        if isinstance(action, Action):
            return action
        if Action.is_alias(action):
            logger.warning("Legacy action verb", verb=action)
        return Action.parse(action)
