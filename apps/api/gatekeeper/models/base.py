"""
Base model classes and mixins.

Mixins used across the schema:
- IdMixin: string primary key (UUID4 text, matches ids issued upstream)
- TimestampMixin: created_at, updated_at
- TenantMixin: company_id, the single authoritative tenant column
"""

from datetime import datetime
from typing import Any, Optional
from uuid import uuid4
from sqlalchemy import DateTime, String, ForeignKey, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def new_id() -> str:
    return str(uuid4())


class Base(DeclarativeBase):
    """Base class for all models."""

    # All datetimes are timezone-aware
    type_annotation_map = {
        datetime: DateTime(timezone=True),
    }

    def to_dict(self) -> dict[str, Any]:
        """Convert model to dictionary."""
        return {c.name: getattr(self, c.name) for c in self.__table__.columns}


# ============================================================
# PRIMARY KEY MIXIN
# ============================================================

class IdMixin:
    """
    Mixin for a string primary key.

    Ids are opaque strings. New rows get a UUID4, but rows created by other
    systems may carry any id format.
    """

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        default=new_id,
    )


# ============================================================
# TIMESTAMP MIXIN
# ============================================================

class TimestampMixin:
    """
    Mixin for created_at and updated_at timestamps.

    All timestamps are stored in UTC (timezone-aware).
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


# ============================================================
# MULTI-TENANCY MIXIN
# ============================================================

class TenantMixin:
    """
    Mixin for tenant-owned rows.

    ``company_id`` is the one column the authorization engine reads to
    decide which tenant owns a row. Nullable because legacy rows exist
    without an owner; the engine treats those as belonging to no tenant.
    """

    company_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )


class StandardMixin(IdMixin, TimestampMixin):
    """Id + timestamps."""
    pass


class TenantOwnedMixin(IdMixin, TimestampMixin, TenantMixin):
    """Id + timestamps + tenant column."""
    pass
