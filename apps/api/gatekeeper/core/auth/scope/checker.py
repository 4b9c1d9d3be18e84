"""
Ownership & tenant scope checker.

Answers two questions for the decision engine:
- is the principal acting on its own user record (and did the call site
  opt into self-access)?
- which tenant owns the target resource?

Resolution results are memoised per checker, and a checker lives for one
decision, so the hierarchy fast-path and the tenant step share one read.
"""

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.models.enums import ResourceType

from ..exceptions import ScopeResolutionError
from ..interfaces import Principal, TenantScope
from ..registry import AuthRegistry

logger = structlog.get_logger()


class TenantScopeChecker:
    """
    Resolves ownership of resources for one decision.

    Usage:
        checker = TenantScopeChecker(db)
        scope = await checker.resolve(ResourceType.CLIENT, client_id)
        if not scope.found:
            ...  # 404
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self._resolved: dict[tuple[ResourceType, str], TenantScope] = {}
        self.reads = 0

    @staticmethod
    def is_self(
        principal: Principal,
        resource_type: ResourceType,
        resource_id: str | None,
        allow_self: bool,
    ) -> bool:
        """
        True when the call site allows self-access and the target is the
        principal's own user record. Pure; never reads storage.
        """
        return (
            allow_self
            and resource_type is ResourceType.USER
            and resource_id is not None
            and resource_id == principal.id
        )

    async def resolve(self, resource_type: ResourceType, resource_id: str) -> TenantScope:
        """
        Resolve the tenant owning a resource.

        Raises:
            UnresolvableResourceError: No resolver for this type (OTHER)
            ScopeResolutionError: The store could not be read
        """
        key = (resource_type, resource_id)
        if key in self._resolved:
            return self._resolved[key]

        resolver = AuthRegistry.get_tenant_resolver(resource_type)

        try:
            self.reads += 1
            scope = await resolver.resolve(self.db, resource_id)
        except SQLAlchemyError as exc:
            raise ScopeResolutionError(resource_type.value, resource_id, exc) from exc

        logger.debug(
            "Resolved resource scope",
            resource_type=resource_type.value,
            resource_id=resource_id,
            found=scope.found,
            tenant_id=scope.tenant_id,
        )
        self._resolved[key] = scope
        return scope
