"""
Pagination and export helpers for list endpoints.

Supports:
- Offset pagination (page/per_page) for admin tables
- Count-only queries for badges and dashboards
- Streaming export (CSV / JSON Lines) for bulk pulls

Usage:
    GET /audit-logs?page=2&per_page=50
    GET /audit-logs/count
    GET /audit-logs/export?format=jsonl
"""

import csv
import io
import json
from enum import Enum
from typing import TypeVar, Generic, Sequence, Any, AsyncIterator, Callable

from pydantic import BaseModel, Field
from sqlalchemy import Select, func
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import Query
from fastapi.responses import StreamingResponse

T = TypeVar("T")


# ============================================================
# OFFSET PAGINATION
# ============================================================

class OffsetParams(BaseModel):
    """Offset pagination parameters."""

    page: int = Field(default=1, ge=1, description="Page number (1-indexed)")
    per_page: int = Field(default=20, ge=1, le=100, description="Items per page")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page


class OffsetPage(BaseModel, Generic[T]):
    """Offset pagination response."""

    items: list[T]
    total: int
    page: int
    per_page: int
    pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def create(
        cls,
        items: Sequence[T],
        total: int,
        page: int,
        per_page: int,
    ) -> "OffsetPage[T]":
        pages = (total + per_page - 1) // per_page if per_page > 0 else 0
        return cls(
            items=list(items),
            total=total,
            page=page,
            per_page=per_page,
            pages=pages,
            has_next=page < pages,
            has_prev=page > 1,
        )


class Paginator:
    """
    Runs a select as a page or as a count.

    Usage:
        paginator = Paginator(db)
        page = await paginator.paginate_offset(select(AuditLog), page=1, per_page=20)
        total = await paginator.count(select(AuditLog))
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def paginate_offset(
        self,
        query: Select,
        page: int = 1,
        per_page: int = 20,
    ) -> OffsetPage:
        total = await self.count(query)

        result = await self.db.execute(query.offset((page - 1) * per_page).limit(per_page))
        items = list(result.scalars().all())

        return OffsetPage.create(items=items, total=total, page=page, per_page=per_page)

    async def count(self, query: Select) -> int:
        """Get count without fetching items."""
        count_query = Select(func.count()).select_from(query.order_by(None).subquery())
        return await self.db.scalar(count_query) or 0


def get_offset_params(
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(20, ge=1, le=100, description="Items per page"),
) -> OffsetParams:
    """FastAPI dependency for offset pagination."""
    return OffsetParams(page=page, per_page=per_page)


# ============================================================
# STREAMING / EXPORT
# ============================================================

class ExportFormat(str, Enum):
    """Supported export formats."""
    CSV = "csv"
    JSONL = "jsonl"  # one JSON object per line


async def stream_query(
    db: AsyncSession,
    query: Select,
    batch_size: int = 500,
) -> AsyncIterator[Any]:
    """
    Yield the rows of ``query`` in batches.

    The query must have a total ordering (e.g. created_at, id) or rows can
    repeat or go missing across batches.
    """
    offset = 0
    while True:
        result = await db.execute(query.offset(offset).limit(batch_size))
        items = list(result.scalars().all())

        for item in items:
            yield item

        if len(items) < batch_size:
            break
        offset += batch_size


def _csv_cell(value: Any) -> Any:
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str, sort_keys=True)
    return value


def create_csv_streaming_response(
    items_iterator: AsyncIterator[Any],
    serializer: Callable[[Any], dict],
    fieldnames: Sequence[str],
    filename: str = "export.csv",
) -> StreamingResponse:
    """
    Stream rows as CSV. Nested values (dicts, lists) are written as JSON.

    The header is written even when there are no rows.
    """
    async def generate():
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=list(fieldnames), extrasaction="ignore")
        writer.writeheader()
        yield buffer.getvalue()

        async for item in items_iterator:
            buffer.seek(0)
            buffer.truncate()
            writer.writerow({k: _csv_cell(v) for k, v in serializer(item).items()})
            yield buffer.getvalue()

    return StreamingResponse(
        generate(),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def create_jsonl_streaming_response(
    items_iterator: AsyncIterator[Any],
    serializer: Callable[[Any], dict],
    filename: str = "export.jsonl",
) -> StreamingResponse:
    """Stream rows as JSON Lines."""
    async def generate():
        async for item in items_iterator:
            yield json.dumps(serializer(item), default=str) + "\n"

    return StreamingResponse(
        generate(),
        media_type="application/jsonl",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
