"""Audit log schemas."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel

from gatekeeper.models.enums import AuditOutcome


class AuditLogResponse(BaseModel):
    """Schema for audit log response."""

    id: str
    principal_id: Optional[str]
    tenant_id: Optional[str]
    action: str
    resource_type: str
    resource_id: Optional[str]
    outcome: AuditOutcome
    detail: Optional[dict[str, Any]]
    created_at: datetime

    model_config = {"from_attributes": True}


class AuditLogFilter(BaseModel):
    """Schema for filtering audit logs."""

    principal_id: Optional[str] = None
    tenant_id: Optional[str] = None
    action: Optional[str] = None
    resource_type: Optional[str] = None
    resource_id: Optional[str] = None
    outcome: Optional[AuditOutcome] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


# Columns written by the export endpoint, in order
EXPORT_FIELDS = (
    "id",
    "created_at",
    "principal_id",
    "tenant_id",
    "outcome",
    "action",
    "resource_type",
    "resource_id",
    "detail",
)
