"""
Financial models: payments and invoices.
"""

from decimal import Decimal

from sqlalchemy import String, Numeric
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TenantOwnedMixin


class Payment(Base, TenantOwnedMixin):
    """
    Payment model.

    Payments used to infer their company from whichever of client, project
    or provider was set. ``company_id`` is now written on creation and is
    the only column authorization reads.
    """

    __tablename__ = "payments"

    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="XAF")
    reference: Mapped[str | None] = mapped_column(String(100), nullable=True)

    def __repr__(self) -> str:
        return f"<Payment {self.amount} {self.currency}>"


class Invoice(Base, TenantOwnedMixin):
    """Invoice model."""

    __tablename__ = "invoices"

    invoice_number: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    total: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"))

    def __repr__(self) -> str:
        return f"<Invoice {self.invoice_number}>"
