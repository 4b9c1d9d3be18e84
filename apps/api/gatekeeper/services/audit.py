"""
Audit logger.

Every checked attempt ends up as one immutable audit record: denials are
written by the decision engine, successes by callers after the operation
ran. Records go to a sink:

- DatabaseAuditSink: single-row insert in its own transaction
- QueueAuditSink: at-least-once message to the audit worker, which inserts
  it and ignores a redelivered id

Usage:
    audit = AuditLogger(sink=DatabaseAuditSink(async_session_factory),
                        session_factory=async_session_factory)
    await audit.log_action(principal, Action.UPDATE, ResourceType.CLIENT, client.id,
                           detail={"fields": ["name"]})
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gatekeeper.core.auth.interfaces import Principal
from gatekeeper.core.interfaces.queue import QueueBackend, TaskOptions
from gatekeeper.models.audit_log import AuditLog
from gatekeeper.models.base import new_id
from gatekeeper.models.enums import Action, AuditOutcome, ResourceType
from gatekeeper.models.user import User
from gatekeeper.utils.reporting import report_exception

logger = structlog.get_logger()


def _name(value: Action | ResourceType | str) -> str:
    if isinstance(value, (Action, ResourceType)):
        return value.value
    return str(value).upper()


# ============================================================
# RECORD
# ============================================================

@dataclass(frozen=True)
class AuditRecord:
    """
    Immutable audit record.

    ``created_at`` is set when the record is built, not when the row is
    inserted; it is the authoritative time of the attempt.
    """
    principal_id: str | None
    tenant_id: str | None
    action: str
    resource_type: str
    outcome: AuditOutcome
    resource_id: str | None = None
    detail: dict[str, Any] | None = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_row(self) -> AuditLog:
        return AuditLog(
            id=self.id,
            principal_id=self.principal_id,
            tenant_id=self.tenant_id,
            action=self.action,
            resource_type=self.resource_type,
            resource_id=self.resource_id,
            outcome=self.outcome.value,
            detail=self.detail,
            created_at=self.created_at,
        )

    def to_payload(self) -> dict[str, Any]:
        """JSON-safe representation for queue messages."""
        return {
            "id": self.id,
            "principal_id": self.principal_id,
            "tenant_id": self.tenant_id,
            "action": self.action,
            "resource_type": self.resource_type,
            "resource_id": self.resource_id,
            "outcome": self.outcome.value,
            "detail": self.detail,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "AuditRecord":
        return cls(
            id=payload["id"],
            principal_id=payload.get("principal_id"),
            tenant_id=payload.get("tenant_id"),
            action=payload["action"],
            resource_type=payload["resource_type"],
            resource_id=payload.get("resource_id"),
            outcome=AuditOutcome(payload["outcome"]),
            detail=payload.get("detail"),
            created_at=datetime.fromisoformat(payload["created_at"]),
        )


# ============================================================
# SINKS
# ============================================================

class AuditSink(Protocol):
    """Durable destination for audit records."""

    async def write(self, record: AuditRecord) -> None:
        """Persist one record. Raises on failure."""
        ...


class DatabaseAuditSink:
    """Inserts each record in a dedicated session so a request rollback cannot remove it."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def write(self, record: AuditRecord) -> None:
        async with self.session_factory() as session:
            session.add(record.to_row())
            await session.commit()


class QueueAuditSink:
    """Hands records to the audit worker through a queue backend."""

    def __init__(
        self,
        queue: QueueBackend,
        task_name: str = "gatekeeper_worker.tasks.audit.write_audit_record",
        queue_name: str = "audit",
    ):
        self.queue = queue
        self.task_name = task_name
        self.queue_name = queue_name

    async def write(self, record: AuditRecord) -> None:
        await self.queue.enqueue(
            self.task_name,
            kwargs={"record": record.to_payload()},
            options=TaskOptions(queue=self.queue_name),
        )


# ============================================================
# LOGGER
# ============================================================

class AuditLogger:
    """
    Builds audit records and writes them to a sink.

    Args:
        sink: Where records go
        session_factory: Used to look up a principal's tenant when
            ``log_action`` only gets an id
    """

    def __init__(
        self,
        sink: AuditSink,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
    ):
        self.sink = sink
        self.session_factory = session_factory

    async def record(
        self,
        *,
        principal_id: str | None,
        tenant_id: str | None,
        action: Action | str,
        resource_type: ResourceType | str,
        outcome: AuditOutcome,
        resource_id: str | None = None,
        detail: dict[str, Any] | None = None,
    ) -> AuditRecord:
        """
        Append a record. Sink errors propagate.
        """
        record = AuditRecord(
            principal_id=principal_id,
            tenant_id=tenant_id,
            action=_name(action),
            resource_type=_name(resource_type),
            resource_id=resource_id,
            outcome=outcome,
            detail=detail,
        )
        await self.sink.write(record)

        logger.debug(
            "Audit record written",
            audit_id=record.id,
            outcome=record.outcome.value,
            action=record.action,
            resource_type=record.resource_type,
            resource_id=record.resource_id,
        )
        return record

    async def record_denial(
        self,
        principal: Principal | None,
        action: Action | str,
        resource_type: ResourceType | str,
        resource_id: str | None = None,
        detail: dict[str, Any] | None = None,
    ) -> AuditRecord | None:
        """
        Attempt to record a denial.

        Returns None when the write failed; the failure is reported and
        the denial stands.
        """
        try:
            return await self.record(
                principal_id=principal.id if principal else None,
                tenant_id=principal.tenant_id if principal else None,
                action=action,
                resource_type=resource_type,
                resource_id=resource_id,
                outcome=AuditOutcome.DENIED,
                detail=detail,
            )
        except Exception as exc:
            report_exception(
                exc,
                "Failed to write denial audit record",
                principal_id=principal.id if principal else None,
                action=_name(action),
                resource_type=_name(resource_type),
            )
            return None

    async def log_action(
        self,
        principal: Principal | str,
        action: Action | str,
        resource_type: ResourceType | str,
        resource_id: str | None = None,
        detail: dict[str, Any] | None = None,
    ) -> AuditRecord | None:
        """
        Record a successful operation.

        Never raises: a failed write is reported and swallowed so it cannot
        undo the operation that already happened.
        """
        principal_id = principal.id if isinstance(principal, Principal) else principal
        try:
            if isinstance(principal, Principal):
                tenant_id = principal.tenant_id
            else:
                tenant_id = await self._tenant_of(principal_id)

            return await self.record(
                principal_id=principal_id,
                tenant_id=tenant_id,
                action=action,
                resource_type=resource_type,
                resource_id=resource_id,
                outcome=AuditOutcome.SUCCESS,
                detail=detail,
            )
        except Exception as exc:
            report_exception(
                exc,
                "Failed to write audit record",
                principal_id=principal_id,
                action=_name(action),
                resource_type=_name(resource_type),
            )
            return None

    async def _tenant_of(self, user_id: str) -> str | None:
        """Read the tenant of a user from its own record."""
        if self.session_factory is None:
            return None
        async with self.session_factory() as session:
            stmt = select(User.company_id).where(User.id == user_id)
            return await session.scalar(stmt)
