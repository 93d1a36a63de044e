"""
Module: garage_kernel.models.client
Responsibility: ORM persistence for clients (individual or business accounts)
    and the vehicles they own.
Architecture position: Kernel > Models.  May import from db/ and domain/enums
    only.  MUST NOT import from services/ or selectors/.

Invariants enforced:
    - Exactly one of personal_tax_id / business_tax_id is set, matching
      account_kind (ck_clients_tax_ids; pre-validated by ClientService).
    - email is unique when present (uq_clients_email).
    - A vehicle belongs to exactly one client and is deleted with it; the
      deletion continues into the client's work orders and appointments.
"""

from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from garage_kernel.db.base import TrackedBase
from garage_kernel.db.types import enum_column
from garage_kernel.domain.enums import AccountKind

if TYPE_CHECKING:
    from garage_kernel.models.appointment import Appointment
    from garage_kernel.models.work_order import WorkOrder


class Client(TrackedBase):
    """
    A customer of the workshop.

    Guarantees:
        - account_kind decides which tax id is present.
        - Deleting a client deletes its vehicles, work orders (with their
          items, invoices, payments and status logs) and appointments.
    """

    __tablename__ = "clients"

    __table_args__ = (
        UniqueConstraint("email", name="uq_clients_email"),
        CheckConstraint(
            "(account_kind = 'INDIVIDUAL' AND personal_tax_id IS NOT NULL "
            "AND business_tax_id IS NULL) OR "
            "(account_kind = 'BUSINESS' AND business_tax_id IS NOT NULL "
            "AND personal_tax_id IS NULL)",
            name="ck_clients_tax_ids",
        ),
    )

    account_kind: Mapped[AccountKind] = mapped_column(
        enum_column(AccountKind),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    email: Mapped[str | None] = mapped_column(String(150), nullable=True)

    phone: Mapped[str | None] = mapped_column(String(40), nullable=True)

    # CPF for individuals
    personal_tax_id: Mapped[str | None] = mapped_column(String(14), nullable=True)

    # CNPJ for businesses
    business_tax_id: Mapped[str | None] = mapped_column(String(20), nullable=True)

    vehicles: Mapped[list["Vehicle"]] = relationship(
        back_populates="client",
        cascade="all, delete",
        order_by="Vehicle.id",
    )

    work_orders: Mapped[list["WorkOrder"]] = relationship(
        back_populates="client",
        cascade="all, delete",
        order_by="WorkOrder.id",
    )

    appointments: Mapped[list["Appointment"]] = relationship(
        back_populates="client",
        cascade="all, delete",
    )

    @property
    def tax_id(self) -> str | None:
        """Whichever tax id applies to this account kind."""
        if self.account_kind == AccountKind.BUSINESS:
            return self.business_tax_id
        return self.personal_tax_id

    def __repr__(self) -> str:
        return f"<Client {self.id}: {self.name} ({self.account_kind.value})>"


class Vehicle(TrackedBase):
    """A vehicle owned by exactly one client."""

    __tablename__ = "vehicles"

    __table_args__ = (
        Index("idx_vehicles_client", "client_id"),
    )

    client_id: Mapped[int] = mapped_column(
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
    )

    plate: Mapped[str] = mapped_column(String(20), nullable=False)

    vin: Mapped[str | None] = mapped_column(String(50), nullable=True)

    brand: Mapped[str | None] = mapped_column(String(100), nullable=True)

    model: Mapped[str | None] = mapped_column(String(100), nullable=True)

    year: Mapped[int | None] = mapped_column(Integer, nullable=True)

    color: Mapped[str | None] = mapped_column(String(50), nullable=True)

    client: Mapped[Client] = relationship(back_populates="vehicles")

    work_orders: Mapped[list["WorkOrder"]] = relationship(
        back_populates="vehicle",
        cascade="all, delete",
        order_by="WorkOrder.id",
    )

    appointments: Mapped[list["Appointment"]] = relationship(
        back_populates="vehicle",
        cascade="all, delete",
    )

    def __repr__(self) -> str:
        return f"<Vehicle {self.id}: {self.plate}>"
