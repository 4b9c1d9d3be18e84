"""Audit log model: the append-only record of checked attempts."""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, Index, String, event, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, Session, mapped_column

from .base import Base, IdMixin


class AuditLogImmutableError(RuntimeError):
    """Raised when code tries to change or remove an audit row."""


class AuditLog(Base, IdMixin):
    """
    Immutable audit log row.

    Written once per checked attempt (denials by the decision engine,
    successes by callers after the operation). Never updated or deleted.
    The id is generated by the writer so a redelivered queued write can be
    recognised and skipped.
    """

    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_tenant_created", "tenant_id", "created_at"),
        Index("ix_audit_logs_principal_created", "principal_id", "created_at"),
    )

    # Who
    principal_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    tenant_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    # What
    action: Mapped[str] = mapped_column(String(50))  # CREATE/READ/UPDATE/DELETE or a free verb
    resource_type: Mapped[str] = mapped_column(String(32))
    resource_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Result
    outcome: Mapped[str] = mapped_column(String(16))  # DENIED / SUCCESS
    detail: Mapped[Optional[Any]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<AuditLog {self.outcome} {self.action} {self.resource_type}:{self.resource_id}>"


@event.listens_for(AuditLog, "before_update")
def _block_update(mapper, connection, target: AuditLog) -> None:
    raise AuditLogImmutableError(f"Audit log {target.id} cannot be modified")


@event.listens_for(AuditLog, "before_delete")
def _block_delete(mapper, connection, target: AuditLog) -> None:
    raise AuditLogImmutableError(f"Audit log {target.id} cannot be deleted")


@event.listens_for(Session, "do_orm_execute")
def _block_bulk_writes(orm_execute_state) -> None:
    # update(AuditLog) / delete(AuditLog) statements skip the mapper events above
    if not (orm_execute_state.is_update or orm_execute_state.is_delete):
        return
    mapper = orm_execute_state.bind_mapper
    if mapper is not None and mapper.class_ is AuditLog:
        raise AuditLogImmutableError("Audit logs cannot be bulk updated or deleted")
