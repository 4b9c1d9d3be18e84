"""
Built-in resource policies.

DEFAULT_POLICY gives company admins every action inside their own tenant.
FINANCIAL_POLICY keeps reads and writes but makes deleting a payment or an
invoice depend on an explicit table grant.

Usage:
    policy = AuthRegistry.get_policy(ResourceType.PAYMENT)
    policy.tenant_admin_may(Action.DELETE)  # False
"""

from gatekeeper.models.enums import Action, ResourceType

from ..interfaces import ResourcePolicy
from ..registry import AuthRegistry


DEFAULT_POLICY = ResourcePolicy(name="default")

FINANCIAL_POLICY = ResourcePolicy(
    name="financial",
    tenant_admin_actions=frozenset({Action.CREATE, Action.READ, Action.UPDATE}),
)

FINANCIAL_TYPES = (ResourceType.PAYMENT, ResourceType.INVOICE)


def register_default_policies() -> None:
    AuthRegistry.set_default_policy(DEFAULT_POLICY)
    for resource_type in FINANCIAL_TYPES:
        AuthRegistry.register_policy(resource_type, FINANCIAL_POLICY)


register_default_policies()
