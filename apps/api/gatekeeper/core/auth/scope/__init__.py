"""
Tenant scope resolution.

Importing this package registers a resolver for every modeled resource type.
"""

from .resolvers import ColumnTenantResolver, JoinTenantResolver, register_default_resolvers
from .checker import TenantScopeChecker

__all__ = [
    "ColumnTenantResolver",
    "JoinTenantResolver",
    "register_default_resolvers",
    "TenantScopeChecker",
]
