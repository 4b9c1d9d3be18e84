"""
Tests for queued audit delivery and the worker insert.
"""

import pytest

from gatekeeper.core.auth.engine import PermissionDecisionEngine
from gatekeeper.core.auth.interfaces import Principal, ResourceContext
from gatekeeper.implementations.queue.memory import MemoryQueueBackend
from gatekeeper.models.enums import Action, AuditOutcome, ResourceType, Role
from gatekeeper.services.audit import AuditLogger, AuditRecord, QueueAuditSink
from gatekeeper.services.permission import PermissionTable
from gatekeeper_worker.tasks.audit import insert_audit_record, row_from_payload

from conftest import audit_rows

TASK_NAME = "gatekeeper_worker.tasks.audit.write_audit_record"


def _payload(**overrides) -> dict:
    record = AuditRecord(
        principal_id="u1",
        tenant_id="T1",
        action="DELETE",
        resource_type="CLIENT",
        resource_id="c1",
        outcome=AuditOutcome.DENIED,
        detail={"reason": "insufficient permissions"},
    )
    return {**record.to_payload(), **overrides}


def test_row_from_payload():
    payload = _payload()

    row = row_from_payload(payload)

    assert row.id == payload["id"]
    assert row.outcome == "DENIED"
    assert row.created_at.isoformat() == payload["created_at"]


@pytest.mark.asyncio
async def test_insert_is_idempotent(db, session_factory):
    payload = _payload()

    first = await insert_audit_record(session_factory, payload)
    redelivered = await insert_audit_record(session_factory, payload)

    assert first is True
    assert redelivered is False
    assert len(await audit_rows(db)) == 1


@pytest.mark.asyncio
async def test_queued_denial_reaches_the_store_once(db, session_factory):
    queue = MemoryQueueBackend(execute_immediately=False)

    @queue.register(TASK_NAME)
    async def write_audit_record(record: dict) -> bool:
        return await insert_audit_record(session_factory, record)

    audit = AuditLogger(QueueAuditSink(queue, task_name=TASK_NAME))
    engine = PermissionDecisionEngine(PermissionTable, audit)
    member = Principal(id="m1", role=Role.MEMBER, tenant_id="T1")

    decision = await engine.decide(
        db, member, Action.DELETE, ResourceType.PROJECT, ResourceContext(),
    )
    assert decision.denied
    assert await audit_rows(db) == []

    # Deliver, then replay the same message
    await queue.drain()
    task = queue.tasks("audit")[0]
    assert await write_audit_record(**task.kwargs) is False

    rows = await audit_rows(db)
    assert len(rows) == 1
    assert rows[0].principal_id == "m1"
    assert rows[0].outcome == "DENIED"
