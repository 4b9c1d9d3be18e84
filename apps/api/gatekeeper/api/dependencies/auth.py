"""
Authentication dependencies.

Re-exports the principal dependencies from the core auth module.

Usage:
    from gatekeeper.api.dependencies.auth import CurrentPrincipal, SuperAdmin
"""

from gatekeeper.core.auth.dependencies import (
    CurrentPrincipal,
    OptionalPrincipal,
    SuperAdmin,
    Engine,
    Audit,
    get_principal,
    get_principal_optional,
    require_super_admin,
    get_engine,
    get_audit_logger,
)

__all__ = [
    "CurrentPrincipal",
    "OptionalPrincipal",
    "SuperAdmin",
    "Engine",
    "Audit",
    "get_principal",
    "get_principal_optional",
    "require_super_admin",
    "get_engine",
    "get_audit_logger",
]
