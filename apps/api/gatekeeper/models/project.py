"""
Project and task models.
"""

from sqlalchemy import String, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, StandardMixin, TenantOwnedMixin


class Project(Base, TenantOwnedMixin):
    """Project model."""

    __tablename__ = "projects"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    client_id: Mapped[str | None] = mapped_column(
        String(64),
        ForeignKey("clients.id", ondelete="SET NULL"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Project {self.name}>"


class Task(Base, StandardMixin):
    """
    Task model.

    Tasks carry no tenant column of their own; the owning project's
    company is authoritative.
    """

    __tablename__ = "tasks"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    project_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Task {self.title}>"
