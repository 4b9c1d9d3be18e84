"""
Company (tenant) model.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, StandardMixin


class Company(Base, StandardMixin):
    """
    A tenant.

    A company owns itself: its tenant id is its own id.
    """

    __tablename__ = "companies"

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<Company {self.name}>"
