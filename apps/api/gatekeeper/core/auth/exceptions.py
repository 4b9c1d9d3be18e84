"""
Authorization exceptions.

The decision engine never lets these escape: storage problems while
checking become a Deny. They surface only from the permission table's
management API and from principal resolution.
"""


class AuthorizationError(Exception):
    """Base class for authorization errors."""


class InvalidTokenError(AuthorizationError):
    """The upstream session token could not be verified or lacks claims."""


class ScopeResolutionError(AuthorizationError):
    """The tenant-owning field of a resource could not be read."""

    def __init__(self, resource_type: str, resource_id: str, cause: Exception | None = None):
        self.resource_type = resource_type
        self.resource_id = resource_id
        self.cause = cause
        super().__init__(f"Could not resolve tenant of {resource_type}:{resource_id}")


class UnresolvableResourceError(AuthorizationError):
    """No tenant resolver is registered for the resource type."""

    def __init__(self, resource_type: str):
        self.resource_type = resource_type
        super().__init__(f"No tenant resolver registered for {resource_type}")


class PermissionTableError(AuthorizationError):
    """The permission table could not be read or written."""


class InvalidGrantError(PermissionTableError):
    """A grant that the table must never hold (e.g. for SUPER_ADMIN)."""
