"""
Module: garage_kernel.models.appointment
Responsibility: ORM persistence for scheduled workshop visits.

Invariants enforced:
    - An appointment references an existing client and vehicle and is
      deleted with either of them.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from garage_kernel.db.base import TrackedBase, UTCDateTime
from garage_kernel.db.types import enum_column
from garage_kernel.domain.enums import AppointmentStatus

if TYPE_CHECKING:
    from garage_kernel.models.client import Client, Vehicle


class Appointment(TrackedBase):
    """A booked visit of a client's vehicle."""

    __tablename__ = "appointments"

    __table_args__ = (
        Index("idx_appointments_client", "client_id"),
    )

    client_id: Mapped[int] = mapped_column(
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
    )

    vehicle_id: Mapped[int] = mapped_column(
        ForeignKey("vehicles.id", ondelete="CASCADE"),
        nullable=False,
    )

    appointment_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
    )

    reason: Mapped[str | None] = mapped_column(String(255), nullable=True)

    status: Mapped[AppointmentStatus] = mapped_column(
        enum_column(AppointmentStatus),
        nullable=False,
        default=AppointmentStatus.SCHEDULED,
    )

    client: Mapped["Client"] = relationship(back_populates="appointments")

    vehicle: Mapped["Vehicle"] = relationship(back_populates="appointments")

    def __repr__(self) -> str:
        return f"<Appointment {self.id} at {self.appointment_at} [{self.status.value}]>"
