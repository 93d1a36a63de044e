"""
Module: garage_kernel.models.work_order
Responsibility: ORM persistence for work orders, their line items, and the
    append-only log of status changes.
Architecture position: Kernel > Models.  May import from db/ and domain/enums.
    MUST NOT import from services/ or selectors/.

Invariants enforced:
    - A work order references an existing client and vehicle; deleting
      either deletes the work order.
    - ``total`` is a cache of the costing rule over the items.  Any item
      change sets ``total_stale``; WorkOrderService recomputes before the
      total is read or invoiced.
    - ``version`` is the optimistic lock: every UPDATE checks and bumps it,
      so two writers cannot both change the same work order unseen.
    - Line items: quantity > 0, hours >= 0, unit_price >= 0.  Deleted with
      their work order.
    - Status log rows are written only by the work order engine, one per
      accepted transition, and never updated.
"""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from garage_kernel.db.base import Base, TrackedBase, UTCDateTime
from garage_kernel.db.types import ESTIMATED_HOURS, HOURS, MONEY, RATE, enum_column
from garage_kernel.domain.enums import ItemKind, WorkOrderStatus

if TYPE_CHECKING:
    from garage_kernel.models.billing import Invoice
    from garage_kernel.models.catalog import Part
    from garage_kernel.models.client import Client, Vehicle
    from garage_kernel.models.mechanic import Mechanic


class WorkOrder(TrackedBase):
    """
    A job performed on one client's vehicle.

    State machine (default: every move allowed):
        OPEN <-> IN_PROGRESS <-> WAITING_PARTS <-> COMPLETED <-> CANCELLED

    Guarantees:
        - Deleting a work order deletes its items, invoice (and payments)
          and status log.
    """

    __tablename__ = "work_orders"

    __table_args__ = (
        Index("idx_wo_client", "client_id"),
        Index("idx_wo_status", "status"),
        CheckConstraint("estimated_hours >= 0", name="ck_wo_estimated_hours"),
        CheckConstraint("total >= 0", name="ck_wo_total"),
    )

    client_id: Mapped[int] = mapped_column(
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
    )

    vehicle_id: Mapped[int] = mapped_column(
        ForeignKey("vehicles.id", ondelete="CASCADE"),
        nullable=False,
    )

    scheduled_date: Mapped[datetime | None] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )

    status: Mapped[WorkOrderStatus] = mapped_column(
        enum_column(WorkOrderStatus),
        nullable=False,
        default=WorkOrderStatus.OPEN,
    )

    estimated_hours: Mapped[Decimal | None] = mapped_column(
        ESTIMATED_HOURS,
        nullable=True,
    )

    total: Mapped[Decimal] = mapped_column(
        MONEY,
        nullable=False,
        default=Decimal("0"),
    )

    total_stale: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version}

    client: Mapped["Client"] = relationship(back_populates="work_orders")

    vehicle: Mapped["Vehicle"] = relationship(back_populates="work_orders")

    items: Mapped[list["WorkOrderItem"]] = relationship(
        back_populates="work_order",
        cascade="all, delete-orphan",
        order_by="WorkOrderItem.id",
    )

    invoice: Mapped["Invoice | None"] = relationship(
        back_populates="work_order",
        cascade="all, delete",
        uselist=False,
    )

    status_logs: Mapped[list["StatusLogEntry"]] = relationship(
        back_populates="work_order",
        cascade="all, delete-orphan",
        order_by="StatusLogEntry.id",
    )

    def __repr__(self) -> str:
        return f"<WorkOrder {self.id} [{self.status.value}] total={self.total}>"


class WorkOrderItem(Base):
    """
    One Service or Part line on a work order.

    Service lines carry a mechanic and usually hours; Part lines carry a
    part.  Either kind may carry both, and both contribute to the subtotal.
    """

    __tablename__ = "wo_items"

    __table_args__ = (
        Index("idx_wo_items_work_order", "work_order_id"),
        CheckConstraint("quantity > 0", name="ck_wo_items_quantity"),
        CheckConstraint("unit_price >= 0", name="ck_wo_items_unit_price"),
        CheckConstraint("hours >= 0", name="ck_wo_items_hours"),
    )

    work_order_id: Mapped[int] = mapped_column(
        ForeignKey("work_orders.id", ondelete="CASCADE"),
        nullable=False,
    )

    kind: Mapped[ItemKind] = mapped_column(enum_column(ItemKind), nullable=False)

    description: Mapped[str] = mapped_column(String(255), nullable=False)

    part_id: Mapped[int | None] = mapped_column(
        ForeignKey("parts.id"),
        nullable=True,
    )

    mechanic_id: Mapped[int | None] = mapped_column(
        ForeignKey("mechanics.id"),
        nullable=True,
    )

    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    unit_price: Mapped[Decimal] = mapped_column(RATE, nullable=False, default=Decimal("0"))

    hours: Mapped[Decimal] = mapped_column(HOURS, nullable=False, default=Decimal("0"))

    work_order: Mapped[WorkOrder] = relationship(back_populates="items")

    part: Mapped["Part | None"] = relationship()

    mechanic: Mapped["Mechanic | None"] = relationship()

    def __repr__(self) -> str:
        return f"<WorkOrderItem {self.id} {self.kind.value} wo={self.work_order_id}>"


class StatusLogEntry(Base):
    """One accepted status change of a work order (audit trail)."""

    __tablename__ = "wo_status_log"

    __table_args__ = (
        Index("idx_wo_status_log_work_order", "work_order_id"),
    )

    work_order_id: Mapped[int] = mapped_column(
        ForeignKey("work_orders.id", ondelete="CASCADE"),
        nullable=False,
    )

    old_status: Mapped[WorkOrderStatus | None] = mapped_column(
        enum_column(WorkOrderStatus),
        nullable=True,
    )

    new_status: Mapped[WorkOrderStatus] = mapped_column(
        enum_column(WorkOrderStatus),
        nullable=False,
    )

    changed_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        server_default=func.now(),
        nullable=False,
    )

    note: Mapped[str | None] = mapped_column(String(255), nullable=True)

    work_order: Mapped[WorkOrder] = relationship(back_populates="status_logs")

    def __repr__(self) -> str:
        old = self.old_status.value if self.old_status else None
        return f"<StatusLogEntry wo={self.work_order_id} {old} -> {self.new_status.value}>"
