"""
API routes aggregation.
"""

from fastapi import APIRouter

from .permissions import router as permissions_router
from .roles import router as roles_router
from .audit_logs import router as audit_logs_router
from .users import router as users_router
from .clients import router as clients_router

router = APIRouter()

router.include_router(permissions_router, prefix="/permissions", tags=["permissions"])
router.include_router(roles_router, prefix="/roles", tags=["roles"])
router.include_router(audit_logs_router, prefix="/audit-logs", tags=["audit-logs"])
router.include_router(users_router, prefix="/users", tags=["users"])
router.include_router(clients_router, prefix="/clients", tags=["clients"])
