"""
Module: garage_kernel.models.catalog
Responsibility: ORM persistence for suppliers, the parts they supply, and the
    on-hand inventory record of each part.

Invariants enforced:
    - sku is unique (uq_parts_sku).
    - cost_price >= 0 and sale_price >= 0.
    - A part references an existing supplier.
    - At most one inventory record per part (uq_inventory_part); quantity >= 0.
    - Deleting a part deletes its inventory record.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from garage_kernel.db.base import Base, TrackedBase, UTCDateTime
from garage_kernel.db.types import RATE


class Supplier(TrackedBase):
    """A parts supplier."""

    __tablename__ = "suppliers"

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    contact: Mapped[str | None] = mapped_column(String(150), nullable=True)

    parts: Mapped[list["Part"]] = relationship(
        back_populates="supplier",
        order_by="Part.id",
    )

    def __repr__(self) -> str:
        return f"<Supplier {self.id}: {self.name}>"


class Part(TrackedBase):
    """A stocked component that can be fitted on a Part line item."""

    __tablename__ = "parts"

    __table_args__ = (
        UniqueConstraint("sku", name="uq_parts_sku"),
        CheckConstraint("cost_price >= 0", name="ck_parts_cost_price"),
        CheckConstraint("sale_price >= 0", name="ck_parts_sale_price"),
        Index("idx_parts_supplier", "supplier_id"),
    )

    supplier_id: Mapped[int] = mapped_column(
        ForeignKey("suppliers.id"),
        nullable=False,
    )

    sku: Mapped[str] = mapped_column(String(80), nullable=False)

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    cost_price: Mapped[Decimal] = mapped_column(RATE, nullable=False, default=Decimal("0"))

    sale_price: Mapped[Decimal] = mapped_column(RATE, nullable=False, default=Decimal("0"))

    supplier: Mapped[Supplier] = relationship(back_populates="parts")

    inventory: Mapped["InventoryRecord | None"] = relationship(
        back_populates="part",
        cascade="all, delete",
        uselist=False,
    )

    def __repr__(self) -> str:
        return f"<Part {self.id}: {self.sku} {self.name}>"


class InventoryRecord(Base):
    """
    On-hand quantity of one part.

    Quantity is the single source of truth for stock; there is no movement
    history.  last_updated is stamped by the InventoryLedger on every write.
    """

    __tablename__ = "inventory"

    __table_args__ = (
        UniqueConstraint("part_id", name="uq_inventory_part"),
        CheckConstraint("quantity >= 0", name="ck_inventory_quantity"),
    )

    part_id: Mapped[int] = mapped_column(
        ForeignKey("parts.id", ondelete="CASCADE"),
        nullable=False,
    )

    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    location: Mapped[str | None] = mapped_column(String(100), nullable=True)

    last_updated: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        server_default=func.now(),
        nullable=False,
    )

    part: Mapped[Part] = relationship(back_populates="inventory")

    def __repr__(self) -> str:
        return f"<InventoryRecord part={self.part_id} qty={self.quantity}>"
