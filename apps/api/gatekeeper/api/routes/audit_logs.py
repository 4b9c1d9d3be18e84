"""
Audit log API routes.

Read-only: audit records are never edited or removed through the API.

Visibility:
- SUPER_ADMIN sees every record (optionally narrowed with ``tenant_id``)
- COMPANY_ADMIN sees the records of its own company
- everyone else sees only records where they are the principal

Endpoints:
- GET /audit-logs         offset pagination for admin tables
- GET /audit-logs/count   count for badges and dashboards
- GET /audit-logs/export  CSV / JSONL stream
- GET /audit-logs/{id}    single record
"""

from datetime import datetime, timezone
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse
from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.api.dependencies.auth import CurrentPrincipal
from gatekeeper.api.dependencies.database import get_db
from gatekeeper.core.auth.interfaces import Principal
from gatekeeper.models.audit_log import AuditLog
from gatekeeper.models.enums import AuditOutcome
from gatekeeper.schemas.audit_log import EXPORT_FIELDS, AuditLogFilter, AuditLogResponse
from gatekeeper.utils.pagination import (
    Paginator,
    ExportFormat,
    stream_query,
    create_csv_streaming_response,
    create_jsonl_streaming_response,
    get_offset_params,
    OffsetParams,
)

router = APIRouter()


def serialize_audit_log(log: AuditLog) -> dict[str, Any]:
    """Serialize audit log for export."""
    return {
        "id": log.id,
        "created_at": log.created_at.isoformat() if log.created_at else None,
        "principal_id": log.principal_id,
        "tenant_id": log.tenant_id,
        "outcome": log.outcome,
        "action": log.action,
        "resource_type": log.resource_type,
        "resource_id": log.resource_id,
        "detail": log.detail,
    }


def visible_to(principal: Principal) -> Select:
    """Base query limited to what ``principal`` may see."""
    query = select(AuditLog)
    if principal.is_super_admin:
        return query
    if principal.is_company_admin and principal.tenant_id is not None:
        return query.where(AuditLog.tenant_id == principal.tenant_id)
    return query.where(AuditLog.principal_id == principal.id)


def build_query(filters: AuditLogFilter, principal: Principal) -> Select:
    """Visibility-limited query with filters applied."""
    query = visible_to(principal)

    # Only super admins choose the tenant; everyone else is already pinned
    if filters.tenant_id and principal.is_super_admin:
        query = query.where(AuditLog.tenant_id == filters.tenant_id)
    if filters.principal_id:
        query = query.where(AuditLog.principal_id == filters.principal_id)
    if filters.action:
        query = query.where(AuditLog.action == filters.action.upper())
    if filters.resource_type:
        query = query.where(AuditLog.resource_type == filters.resource_type.upper())
    if filters.resource_id:
        query = query.where(AuditLog.resource_id == filters.resource_id)
    if filters.outcome:
        query = query.where(AuditLog.outcome == filters.outcome.value)
    if filters.start_date:
        query = query.where(AuditLog.created_at >= filters.start_date)
    if filters.end_date:
        query = query.where(AuditLog.created_at <= filters.end_date)

    return query


def get_filters(
    principal_id: str | None = Query(None),
    tenant_id: str | None = Query(None, description="Super admins only"),
    action: str | None = Query(None),
    resource_type: str | None = Query(None),
    resource_id: str | None = Query(None),
    outcome: AuditOutcome | None = Query(None),
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
) -> AuditLogFilter:
    return AuditLogFilter(
        principal_id=principal_id,
        tenant_id=tenant_id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        outcome=outcome,
        start_date=start_date,
        end_date=end_date,
    )


# ============================================================
# OFFSET PAGINATION
# ============================================================

@router.get("")
async def list_audit_logs(
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: CurrentPrincipal,
    pagination: Annotated[OffsetParams, Depends(get_offset_params)],
    filters: Annotated[AuditLogFilter, Depends(get_filters)],
) -> dict[str, Any]:
    """
    List audit logs, newest first.

    Returns:
        {
            "items": [...],
            "total": 150,
            "page": 1,
            "per_page": 20,
            "pages": 8,
            "has_next": true,
            "has_prev": false
        }
    """
    query = build_query(filters, principal).order_by(AuditLog.created_at.desc(), AuditLog.id.desc())

    page = await Paginator(db).paginate_offset(
        query,
        page=pagination.page,
        per_page=pagination.per_page,
    )

    return {
        "items": [AuditLogResponse.model_validate(log) for log in page.items],
        "total": page.total,
        "page": page.page,
        "per_page": page.per_page,
        "pages": page.pages,
        "has_next": page.has_next,
        "has_prev": page.has_prev,
    }


# ============================================================
# COUNT ONLY
# ============================================================

@router.get("/count")
async def count_audit_logs(
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: CurrentPrincipal,
    filters: Annotated[AuditLogFilter, Depends(get_filters)],
) -> dict[str, int]:
    """Count audit logs matching filters."""
    count = await Paginator(db).count(build_query(filters, principal))
    return {"count": count}


# ============================================================
# EXPORT
# ============================================================

@router.get("/export")
async def export_audit_logs(
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: CurrentPrincipal,
    filters: Annotated[AuditLogFilter, Depends(get_filters)],
    format: ExportFormat = Query(ExportFormat.CSV),
) -> StreamingResponse:
    """
    Export audit logs as CSV or JSONL, oldest first.

    Same visibility rules as the list endpoint.
    """
    query = build_query(filters, principal).order_by(AuditLog.created_at, AuditLog.id)
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")

    if format == ExportFormat.CSV:
        return create_csv_streaming_response(
            stream_query(db, query),
            serialize_audit_log,
            fieldnames=EXPORT_FIELDS,
            filename=f"audit_logs_{timestamp}.csv",
        )
    return create_jsonl_streaming_response(
        stream_query(db, query),
        serialize_audit_log,
        filename=f"audit_logs_{timestamp}.jsonl",
    )


# ============================================================
# SINGLE LOG
# ============================================================

@router.get("/{log_id}", response_model=AuditLogResponse)
async def get_audit_log(
    log_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: CurrentPrincipal,
):
    """
    Get a specific audit log entry.

    A record outside the caller's visibility is reported as missing.
    """
    log = await db.scalar(visible_to(principal).where(AuditLog.id == log_id))
    if not log:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Audit log not found",
        )
    return AuditLogResponse.model_validate(log)
