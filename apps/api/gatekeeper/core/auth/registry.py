"""
Authorization registry.

Maps each resource type to the resolver that reads its tenant and to the
policy object that narrows what company admins and table grants may do
with it. Implementations register themselves at import time.

Usage:
    @AuthRegistry.tenant_resolver(ResourceType.CLIENT)
    class ClientTenantResolver(TenantResolver):
        ...

    # Later:
    resolver = AuthRegistry.get_tenant_resolver(ResourceType.CLIENT)
"""

from typing import Callable, Type

from gatekeeper.models.enums import ResourceType

from .exceptions import UnresolvableResourceError
from .interfaces import ResourcePolicy, TenantResolver


class AuthRegistry:
    """
    Central registry for per-resource-type authorization components.
    """

    _tenant_resolvers: dict[ResourceType, TenantResolver] = {}
    _resource_policies: dict[ResourceType, ResourcePolicy] = {}
    _default_policy: ResourcePolicy | None = None

    # ============================================================
    # REGISTRATION
    # ============================================================

    @classmethod
    def register_tenant_resolver(cls, resource_type: ResourceType, resolver: TenantResolver) -> None:
        """Register a resolver instance for a resource type, replacing any existing one."""
        if resource_type.is_legacy:
            raise ValueError(f"{resource_type.value} cannot have a tenant resolver")
        cls._tenant_resolvers[resource_type] = resolver

    @classmethod
    def tenant_resolver(
        cls,
        *resource_types: ResourceType,
        **init_kwargs,
    ) -> Callable[[Type[TenantResolver]], Type[TenantResolver]]:
        """
        Decorator to register a resolver class for one or more resource types.

        Usage:
            @AuthRegistry.tenant_resolver(ResourceType.TASK)
            class TaskTenantResolver(TenantResolver):
                ...
        """
        def decorator(resolver_class: Type[TenantResolver]) -> Type[TenantResolver]:
            for resource_type in resource_types:
                cls.register_tenant_resolver(resource_type, resolver_class(**init_kwargs))
            return resolver_class
        return decorator

    @classmethod
    def register_policy(cls, resource_type: ResourceType, policy: ResourcePolicy) -> ResourcePolicy:
        """Register the policy object for a resource type."""
        cls._resource_policies[resource_type] = policy
        return policy

    @classmethod
    def set_default_policy(cls, policy: ResourcePolicy) -> ResourcePolicy:
        """Policy used for resource types without a specific one."""
        cls._default_policy = policy
        return policy

    # ============================================================
    # GETTERS
    # ============================================================

    @classmethod
    def get_tenant_resolver(cls, resource_type: ResourceType) -> TenantResolver:
        """
        Get the tenant resolver for a resource type.

        Raises:
            UnresolvableResourceError: If none is registered
        """
        resolver = cls._tenant_resolvers.get(resource_type)
        if resolver is None:
            raise UnresolvableResourceError(resource_type.value)
        return resolver

    @classmethod
    def get_policy(cls, resource_type: ResourceType) -> ResourcePolicy:
        """Get the policy for a resource type, falling back to the default policy."""
        policy = cls._resource_policies.get(resource_type, cls._default_policy)
        if policy is None:
            raise LookupError("No default resource policy registered")
        return policy

    # ============================================================
    # INTROSPECTION
    # ============================================================

    @classmethod
    def has_tenant_resolver(cls, resource_type: ResourceType) -> bool:
        return resource_type in cls._tenant_resolvers
