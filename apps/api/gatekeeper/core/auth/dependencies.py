"""
FastAPI dependencies for principal resolution and the decision engine.

The principal is read from the upstream session token's claims; this
service keeps no sessions and does not look the user up.

Usage:
    from gatekeeper.core.auth.dependencies import CurrentPrincipal, Engine

    @router.get("/things/{thing_id}")
    async def handler(principal: CurrentPrincipal, engine: Engine):
        ...
"""

from functools import lru_cache
from typing import Annotated

import structlog
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from gatekeeper.core.config import settings
from gatekeeper.core.plugins.registry import audit_sinks
from gatekeeper.models.enums import Role
from gatekeeper.services.audit import AuditLogger
from gatekeeper.services.permission import PermissionTable

from .engine import PermissionDecisionEngine
from .exceptions import InvalidTokenError
from .interfaces import Principal


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)

logger = structlog.get_logger()


# ============================================================
# COMPONENT FACTORIES
# ============================================================

@lru_cache
def get_audit_logger() -> AuditLogger:
    """
    Get the configured audit logger.

    Reads the sink from AUDIT_SINK (database or queue).
    """
    from gatekeeper.implementations.register import register_backends
    from gatekeeper.models.database import async_session_factory

    if not audit_sinks.list():
        register_backends()

    sink = audit_sinks.get(settings.audit.sink)
    return AuditLogger(sink=sink, session_factory=async_session_factory)


@lru_cache
def get_engine() -> PermissionDecisionEngine:
    """Get the decision engine."""
    return PermissionDecisionEngine(PermissionTable, get_audit_logger())


# ============================================================
# PRINCIPAL
# ============================================================

def decode_principal(token: str) -> Principal:
    """
    Build a principal from a session token.

    Raises:
        InvalidTokenError: Bad signature, expired, or missing claims
    """
    try:
        payload = jwt.decode(
            token,
            settings.auth.secret_key,
            algorithms=[settings.auth.algorithm],
        )
    except JWTError as exc:
        raise InvalidTokenError(str(exc)) from exc

    user_id = payload.get("sub")
    role = payload.get(settings.auth.role_claim)
    if not user_id or not role:
        raise InvalidTokenError("Token is missing subject or role")

    try:
        role = Role(role)
    except ValueError as exc:
        raise InvalidTokenError(f"Unknown role: {role}") from exc

    tenant_id = payload.get(settings.auth.tenant_claim)
    return Principal(id=str(user_id), role=role, tenant_id=str(tenant_id) if tenant_id else None)


async def get_principal_optional(
    token: str | None = Depends(oauth2_scheme),
) -> Principal | None:
    """
    Current principal, or None when the request carries no valid token.

    None is a valid input to the engine, which denies it as unauthenticated.
    """
    if not token:
        return None

    try:
        principal = decode_principal(token)
    except InvalidTokenError as exc:
        logger.warning("Rejected session token", error=str(exc))
        return None

    structlog.contextvars.bind_contextvars(
        principal_id=principal.id,
        role=principal.role.value,
        tenant_id=principal.tenant_id,
    )
    return principal


async def get_principal(
    principal: Principal | None = Depends(get_principal_optional),
) -> Principal:
    """
    Current principal.

    Raises:
        HTTPException 401: If not authenticated
    """
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return principal


async def require_super_admin(
    principal: Principal = Depends(get_principal),
) -> Principal:
    """
    Require a SUPER_ADMIN principal. Used by the management surface, which
    is not routed through the engine.

    Raises:
        HTTPException 403: If the principal is not SUPER_ADMIN
    """
    if not principal.is_super_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Super admin access required",
        )
    return principal


# ============================================================
# TYPE ALIASES FOR CLEAN SIGNATURES
# ============================================================

CurrentPrincipal = Annotated[Principal, Depends(get_principal)]

OptionalPrincipal = Annotated[Principal | None, Depends(get_principal_optional)]

SuperAdmin = Annotated[Principal, Depends(require_super_admin)]

Engine = Annotated[PermissionDecisionEngine, Depends(get_engine)]

Audit = Annotated[AuditLogger, Depends(get_audit_logger)]
