"""
Audit record delivery.

The API enqueues one message per audit record; this task inserts it. A
message can arrive more than once, so the insert is skipped when a row
with the record's id already exists.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any

from celery import shared_task
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from gatekeeper.models.audit_log import AuditLog
from gatekeeper_worker.config import settings

logger = logging.getLogger(__name__)


def row_from_payload(payload: dict[str, Any]) -> AuditLog:
    return AuditLog(
        id=payload["id"],
        principal_id=payload.get("principal_id"),
        tenant_id=payload.get("tenant_id"),
        action=payload["action"],
        resource_type=payload["resource_type"],
        resource_id=payload.get("resource_id"),
        outcome=payload["outcome"],
        detail=payload.get("detail"),
        created_at=datetime.fromisoformat(payload["created_at"]),
    )


async def insert_audit_record(
    session_factory: async_sessionmaker[AsyncSession],
    payload: dict[str, Any],
) -> bool:
    """
    Insert one record. Returns False when it was already stored.
    """
    async with session_factory() as session:
        exists = await session.scalar(select(AuditLog.id).where(AuditLog.id == payload["id"]))
        if exists:
            return False

        session.add(row_from_payload(payload))
        try:
            await session.commit()
        except IntegrityError:
            # A concurrent delivery of the same message won the insert
            await session.rollback()
            return False
        return True


async def _write(payload: dict[str, Any]) -> bool:
    engine = create_async_engine(settings.database_url, poolclass=NullPool)
    try:
        return await insert_audit_record(async_sessionmaker(engine, expire_on_commit=False), payload)
    finally:
        await engine.dispose()


@shared_task(
    bind=True,
    max_retries=settings.audit_max_retries,
    autoretry_for=(OperationalError, OSError),
    retry_backoff=True,
    retry_backoff_max=600,
)
def write_audit_record(self, record: dict[str, Any]) -> bool:
    """
    Persist an audit record sent by the API.

    Args:
        record: AuditRecord payload (id, principal_id, tenant_id, action,
            resource_type, resource_id, outcome, detail, created_at)
    """
    inserted = asyncio.run(_write(record))

    if inserted:
        logger.info(
            "Audit record stored",
            extra={"audit_id": record["id"], "outcome": record["outcome"], "attempt": self.request.retries},
        )
    else:
        logger.info("Duplicate audit record skipped", extra={"audit_id": record["id"]})
    return inserted
