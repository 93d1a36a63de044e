"""
Module: garage_kernel.models.billing
Responsibility: ORM persistence for invoices and the payments recorded
    against them.
Architecture position: Kernel > Models.  May import from db/ and domain/enums.

Invariants enforced:
    - At most one invoice per work order (uq_invoices_work_order).
    - total_amount >= 0 and is a snapshot of the work order total taken at
      issuance; later item changes do not move it.
    - Payment amount > 0.  The sum of payments is NOT checked against the
      invoice total, and recording a payment never sets ``paid``.
    - Deleting a work order deletes its invoice; deleting an invoice
      deletes its payments.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from garage_kernel.db.base import Base, TrackedBase, UTCDateTime
from garage_kernel.db.types import MONEY, enum_column
from garage_kernel.domain.enums import PaymentMethod

if TYPE_CHECKING:
    from garage_kernel.models.work_order import WorkOrder


class Invoice(TrackedBase):
    """Billing snapshot of one work order's total, issued once."""

    __tablename__ = "invoices"

    __table_args__ = (
        UniqueConstraint("work_order_id", name="uq_invoices_work_order"),
        CheckConstraint("total_amount >= 0", name="ck_invoices_total_amount"),
    )

    work_order_id: Mapped[int] = mapped_column(
        ForeignKey("work_orders.id", ondelete="CASCADE"),
        nullable=False,
    )

    issued_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
    )

    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    total_amount: Mapped[Decimal] = mapped_column(
        MONEY,
        nullable=False,
        default=Decimal("0"),
    )

    paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    paid_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )

    work_order: Mapped["WorkOrder"] = relationship(back_populates="invoice")

    payments: Mapped[list["Payment"]] = relationship(
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="Payment.id",
    )

    def __repr__(self) -> str:
        return f"<Invoice {self.id} wo={self.work_order_id} total={self.total_amount}>"


class Payment(Base):
    """Money received against an invoice."""

    __tablename__ = "payments"

    __table_args__ = (
        Index("idx_payments_invoice", "invoice_id"),
        CheckConstraint("amount > 0", name="ck_payments_amount"),
    )

    invoice_id: Mapped[int] = mapped_column(
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
    )

    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)

    method: Mapped[PaymentMethod] = mapped_column(
        enum_column(PaymentMethod),
        nullable=False,
        default=PaymentMethod.CASH,
    )

    paid_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
    )

    invoice: Mapped[Invoice] = relationship(back_populates="payments")

    def __repr__(self) -> str:
        return f"<Payment {self.id} inv={self.invoice_id} {self.amount} {self.method.value}>"
