"""
Module: garage_kernel.models.mechanic
Responsibility: ORM persistence for mechanics and their hourly labour rate.

Invariants enforced:
    - hourly_rate >= 0 (ck_mechanics_hourly_rate).
    - The rate is read at costing time: changing it re-prices every line item
      attributed to the mechanic on the next recompute.  Invoices already
      issued keep their snapshot.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import CheckConstraint, Date, String
from sqlalchemy.orm import Mapped, mapped_column

from garage_kernel.db.base import TrackedBase
from garage_kernel.db.types import RATE


class Mechanic(TrackedBase):
    """A mechanic whose hours are billed on Service line items."""

    __tablename__ = "mechanics"

    __table_args__ = (
        CheckConstraint("hourly_rate >= 0", name="ck_mechanics_hourly_rate"),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    hire_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    hourly_rate: Mapped[Decimal] = mapped_column(
        RATE,
        nullable=False,
        default=Decimal("0"),
    )

    def __repr__(self) -> str:
        return f"<Mechanic {self.id}: {self.name} @ {self.hourly_rate}/h>"
