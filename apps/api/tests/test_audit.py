"""
Tests for the audit logger, its sinks and audit row immutability.
"""

import pytest
from sqlalchemy import delete, update
from sqlalchemy.exc import OperationalError

from gatekeeper.core.auth.interfaces import Principal
from gatekeeper.implementations.queue.memory import MemoryQueueBackend
from gatekeeper.models import AuditLog, AuditLogImmutableError
from gatekeeper.models.enums import Action, AuditOutcome, ResourceType, Role
from gatekeeper.services.audit import AuditLogger, AuditRecord, QueueAuditSink

from conftest import audit_rows, principal_for


class BrokenSink:
    async def write(self, record):
        raise OperationalError("INSERT", {}, Exception("audit store down"))


@pytest.fixture
def reported(monkeypatch) -> list:
    calls = []
    monkeypatch.setattr(
        "gatekeeper.services.audit.report_exception",
        lambda exc, message, **context: calls.append((exc, message, context)),
    )
    return calls


# ============ Recording ============


@pytest.mark.asyncio
async def test_record_appends_one_row(db, audit):
    record = await audit.record(
        principal_id="u1",
        tenant_id="T1",
        action=Action.UPDATE,
        resource_type=ResourceType.CLIENT,
        outcome=AuditOutcome.SUCCESS,
        resource_id="c1",
        detail={"fields": ["name"], "nested": {"a": 1}},
    )

    rows = await audit_rows(db)
    assert len(rows) == 1
    assert rows[0].id == record.id
    assert rows[0].action == "UPDATE"
    assert rows[0].resource_type == "CLIENT"
    assert rows[0].outcome == "SUCCESS"
    assert rows[0].detail == {"fields": ["name"], "nested": {"a": 1}}


@pytest.mark.asyncio
async def test_record_propagates_sink_errors():
    with pytest.raises(OperationalError):
        await AuditLogger(BrokenSink()).record(
            principal_id="u1",
            tenant_id=None,
            action="EXPORT",
            resource_type="REPORT",
            outcome=AuditOutcome.SUCCESS,
        )


@pytest.mark.asyncio
async def test_free_verbs_are_uppercased(db, audit):
    await audit.log_action(Principal(id="u1", role=Role.MEMBER, tenant_id="T1"), "export", "report")

    rows = await audit_rows(db)
    assert (rows[0].action, rows[0].resource_type) == ("EXPORT", "REPORT")


@pytest.mark.asyncio
async def test_log_action_with_principal(db, audit, factory, company_a):
    member = principal_for(await factory.user(company_a))

    record = await audit.log_action(member, Action.READ, ResourceType.PROJECT, "p1", detail={"via": "api"})

    assert record is not None
    assert record.outcome is AuditOutcome.SUCCESS
    rows = await audit_rows(db, principal_id=member.id)
    assert rows[0].tenant_id == company_a.id
    assert rows[0].detail == {"via": "api"}


@pytest.mark.asyncio
async def test_log_action_with_bare_id_reads_tenant(db, audit, factory, company_b):
    user = await factory.user(company_b)

    await audit.log_action(user.id, Action.DELETE, ResourceType.LEAD, "l1")

    rows = await audit_rows(db, principal_id=user.id)
    assert rows[0].tenant_id == company_b.id


@pytest.mark.asyncio
async def test_log_action_swallows_failures(reported):
    logger = AuditLogger(BrokenSink())

    result = await logger.log_action(
        Principal(id="u1", role=Role.MEMBER, tenant_id="T1"), Action.CREATE, ResourceType.TASK, "t1",
    )

    assert result is None
    assert len(reported) == 1
    assert reported[0][2]["resource_type"] == "TASK"


@pytest.mark.asyncio
async def test_record_denial_swallows_failures(reported):
    result = await AuditLogger(BrokenSink()).record_denial(None, Action.READ, ResourceType.CLIENT)

    assert result is None
    assert reported[0][1] == "Failed to write denial audit record"


# ============ Queue sink ============


@pytest.mark.asyncio
async def test_queue_sink_enqueues_payload():
    queue = MemoryQueueBackend(execute_immediately=False)
    logger = AuditLogger(QueueAuditSink(queue, task_name="audit.write", queue_name="audit"))

    record = await logger.record_denial(
        Principal(id="u1", role=Role.EMPLOYEE, tenant_id="T1"),
        Action.DELETE,
        ResourceType.INVOICE,
        resource_id="i1",
        detail={"reason": "insufficient permissions"},
    )

    tasks = queue.tasks("audit")
    assert len(tasks) == 1
    assert tasks[0].task_name == "audit.write"
    payload = tasks[0].kwargs["record"]
    assert payload["id"] == record.id
    assert payload["outcome"] == "DENIED"
    assert AuditRecord.from_payload(payload) == record


# ============ Immutability ============


@pytest.mark.asyncio
async def test_audit_rows_cannot_be_updated(db, audit):
    await audit.log_action("u1", Action.READ, ResourceType.CLIENT)
    row = (await audit_rows(db))[0]

    row.outcome = AuditOutcome.DENIED.value
    with pytest.raises(AuditLogImmutableError):
        await db.flush()
    await db.rollback()


@pytest.mark.asyncio
async def test_audit_rows_cannot_be_deleted(db, audit):
    await audit.log_action("u1", Action.READ, ResourceType.CLIENT)
    row = (await audit_rows(db))[0]

    await db.delete(row)
    with pytest.raises(AuditLogImmutableError):
        await db.flush()
    await db.rollback()


@pytest.mark.asyncio
async def test_bulk_statements_are_blocked(db, audit):
    await audit.log_action("u1", Action.READ, ResourceType.CLIENT)

    with pytest.raises(AuditLogImmutableError):
        await db.execute(update(AuditLog).values(outcome="DENIED"))
    with pytest.raises(AuditLogImmutableError):
        await db.execute(delete(AuditLog))

    assert len(await audit_rows(db)) == 1
