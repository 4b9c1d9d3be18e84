"""
Database models.
"""

from .base import (
    Base,
    IdMixin,
    TimestampMixin,
    TenantMixin,
    StandardMixin,
    TenantOwnedMixin,
)
from .enums import Role, ResourceType, Action, AuditOutcome
from .company import Company
from .user import User
from .client import Client
from .project import Project, Task
from .finance import Payment, Invoice
from .sales import Product, Lead, Opportunity
from .permission import PermissionGrant
from .audit_log import AuditLog, AuditLogImmutableError


__all__ = [
    # Base
    "Base",
    "IdMixin",
    "TimestampMixin",
    "TenantMixin",
    "StandardMixin",
    "TenantOwnedMixin",
    # Enums
    "Role",
    "ResourceType",
    "Action",
    "AuditOutcome",
    # Models
    "Company",
    "User",
    "Client",
    "Project",
    "Task",
    "Payment",
    "Invoice",
    "Product",
    "Lead",
    "Opportunity",
    "PermissionGrant",
    "AuditLog",
    "AuditLogImmutableError",
]
