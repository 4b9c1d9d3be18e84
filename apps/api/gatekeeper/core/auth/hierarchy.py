"""
Role hierarchy fast-path.

SUPER_ADMIN is never tenant-blocked. COMPANY_ADMIN is the authority over
the staff of its own company without per-action grants. Every other role
is a peer and gets nothing here.
"""

import structlog

from gatekeeper.models.enums import Action, ResourceType

from .interfaces import AllowedVia, Decision, Principal, ResourceContext
from .scope import TenantScopeChecker

logger = structlog.get_logger()


class RoleHierarchy:
    """
    Evaluates the fixed role precedence.

    ``evaluate`` returns a Decision when the hierarchy settles the request,
    or None to defer to the general mechanism. It never denies.
    """

    @staticmethod
    def is_super_admin(principal: Principal) -> bool:
        return principal.is_super_admin

    async def evaluate(
        self,
        principal: Principal,
        action: Action,
        resource_type: ResourceType,
        context: ResourceContext,
        checker: TenantScopeChecker,
    ) -> Decision | None:
        if principal.is_super_admin:
            return Decision.allow(AllowedVia.SUPER_ADMIN)

        if not principal.is_company_admin or resource_type is not ResourceType.USER:
            return None

        if principal.tenant_id is None:
            logger.warning(
                "Company admin without tenant, skipping hierarchy fast-path",
                principal_id=principal.id,
            )
            return None

        if action is Action.CREATE:
            return Decision.allow(AllowedVia.HIERARCHY)

        if context.resource_id is None:
            target_tenant = context.tenant_id or principal.tenant_id
        else:
            scope = await checker.resolve(ResourceType.USER, context.resource_id)
            if not scope.found:
                return None
            target_tenant = scope.tenant_id

        if target_tenant == principal.tenant_id:
            return Decision.allow(AllowedVia.HIERARCHY)
        return None
