"""
garage_kernel.services.catalog_service -- Mechanics, suppliers and parts.

Responsibility:
    Reference data the work order engine prices against: mechanics with
    their hourly rate, suppliers, and the parts catalog.

Architecture position:
    Kernel > Services.  May import from domain/, models/, db/.

Invariants enforced:
    - hourly_rate >= 0, cost_price >= 0, sale_price >= 0.
    - A part references an existing supplier; its SKU is unique.
    - Updates apply the same checks as creation.
    - A part still referenced by a work order item cannot be deleted.

Failure modes:
    - NegativeValueError, RequiredFieldError on invalid input.
    - EntityNotFoundError for unknown supplier / mechanic / part ids.
    - DuplicateSkuError when the SKU is taken.
    - EntityInUseError from delete_part.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select

from garage_kernel.domain.checks import non_negative, optional_text, require_text
from garage_kernel.exceptions import DuplicateSkuError, EntityInUseError, EntityNotFoundError
from garage_kernel.logging_config import get_logger
from garage_kernel.models.catalog import Part, Supplier
from garage_kernel.models.mechanic import Mechanic
from garage_kernel.models.work_order import WorkOrderItem
from garage_kernel.services.base import BaseService

logger = get_logger("services.catalog")

# Marks an update_* argument the caller did not pass.
_UNSET: Any = object()


@dataclass(frozen=True)
class MechanicInfo:
    id: int
    name: str
    hire_date: date | None
    hourly_rate: Decimal


@dataclass(frozen=True)
class SupplierInfo:
    id: int
    name: str
    contact: str | None


@dataclass(frozen=True)
class PartInfo:
    id: int
    supplier_id: int
    sku: str
    name: str
    description: str | None
    cost_price: Decimal
    sale_price: Decimal


class CatalogService(BaseService[Part]):
    """Service for mechanics, suppliers and parts.  Returns DTOs."""

    def _mechanic_dto(self, mechanic: Mechanic) -> MechanicInfo:
        return MechanicInfo(
            id=mechanic.id,
            name=mechanic.name,
            hire_date=mechanic.hire_date,
            hourly_rate=mechanic.hourly_rate,
        )

    def _supplier_dto(self, supplier: Supplier) -> SupplierInfo:
        return SupplierInfo(id=supplier.id, name=supplier.name, contact=supplier.contact)

    def _part_dto(self, part: Part) -> PartInfo:
        return PartInfo(
            id=part.id,
            supplier_id=part.supplier_id,
            sku=part.sku,
            name=part.name,
            description=part.description,
            cost_price=part.cost_price,
            sale_price=part.sale_price,
        )

    # ------------------------------------------------------------------
    # Mechanics
    # ------------------------------------------------------------------

    def create_mechanic(
        self,
        name: str,
        hire_date: date | None = None,
        hourly_rate: Decimal | int | str = Decimal("0"),
    ) -> MechanicInfo:
        """
        Register a mechanic.

        Raises:
            RequiredFieldError: Blank name.
            NegativeValueError: hourly_rate < 0.
        """
        mechanic = Mechanic(
            name=require_text("Mechanic", "name", name),
            hire_date=hire_date,
            hourly_rate=non_negative("Mechanic", "hourly_rate", hourly_rate),
        )
        self.session.add(mechanic)
        self.session.flush()

        logger.info(
            "mechanic_created",
            extra={"mechanic_id": mechanic.id, "hourly_rate": mechanic.hourly_rate},
        )
        return self._mechanic_dto(mechanic)

    def update_hourly_rate(
        self, mechanic_id: int, hourly_rate: Decimal | int | str
    ) -> MechanicInfo:
        """
        Change a mechanic's rate.

        Work orders are re-priced at the new rate the next time their total
        is recomputed; issued invoices keep their snapshot.
        """
        mechanic = self._require(Mechanic, mechanic_id)
        old_rate = mechanic.hourly_rate
        mechanic.hourly_rate = non_negative("Mechanic", "hourly_rate", hourly_rate)
        self.session.flush()

        logger.info(
            "mechanic_rate_changed",
            extra={
                "mechanic_id": mechanic_id,
                "old_rate": old_rate,
                "new_rate": mechanic.hourly_rate,
            },
        )
        return self._mechanic_dto(mechanic)

    def get_mechanic(self, mechanic_id: int) -> MechanicInfo:
        return self._mechanic_dto(self._require(Mechanic, mechanic_id))

    def list_mechanics(self) -> list[MechanicInfo]:
        mechanics = self.session.execute(select(Mechanic).order_by(Mechanic.id)).scalars().all()
        return [self._mechanic_dto(m) for m in mechanics]

    # ------------------------------------------------------------------
    # Suppliers
    # ------------------------------------------------------------------

    def create_supplier(self, name: str, contact: str | None = None) -> SupplierInfo:
        supplier = Supplier(
            name=require_text("Supplier", "name", name),
            contact=optional_text(contact),
        )
        self.session.add(supplier)
        self.session.flush()

        logger.info("supplier_created", extra={"supplier_id": supplier.id})
        return self._supplier_dto(supplier)

    def update_supplier(
        self,
        supplier_id: int,
        *,
        name: str = _UNSET,
        contact: str | None = _UNSET,
    ) -> SupplierInfo:
        """Arguments not passed are left unchanged; None clears the contact."""
        supplier = self._require(Supplier, supplier_id)

        changed: list[str] = []
        if name is not _UNSET:
            supplier.name = require_text("Supplier", "name", name)
            changed.append("name")
        if contact is not _UNSET:
            supplier.contact = optional_text(contact)
            changed.append("contact")
        self.session.flush()

        logger.info("supplier_updated", extra={"supplier_id": supplier.id, "fields": changed})
        return self._supplier_dto(supplier)

    def get_supplier(self, supplier_id: int) -> SupplierInfo:
        return self._supplier_dto(self._require(Supplier, supplier_id))

    # ------------------------------------------------------------------
    # Parts
    # ------------------------------------------------------------------

    def create_part(
        self,
        supplier_id: int,
        sku: str,
        name: str,
        description: str | None = None,
        cost_price: Decimal | int | str = Decimal("0"),
        sale_price: Decimal | int | str = Decimal("0"),
    ) -> PartInfo:
        """
        Add a part to the catalog.

        The part starts without an inventory record; open one through
        InventoryLedger.open_record().

        Raises:
            EntityNotFoundError: Unknown supplier.
            RequiredFieldError: Blank sku or name.
            NegativeValueError: Negative cost or sale price.
            DuplicateSkuError: SKU already in the catalog.
        """
        self._require(Supplier, supplier_id)
        sku = require_text("Part", "sku", sku)
        name = require_text("Part", "name", name)
        cost = non_negative("Part", "cost_price", cost_price)
        sale = non_negative("Part", "sale_price", sale_price)

        existing = self.session.execute(select(Part.id).where(Part.sku == sku)).first()
        if existing is not None:
            raise DuplicateSkuError(sku)

        part = Part(
            supplier_id=supplier_id,
            sku=sku,
            name=name,
            description=optional_text(description),
            cost_price=cost,
            sale_price=sale,
        )
        self.session.add(part)
        self.session.flush()

        logger.info(
            "part_created",
            extra={"part_id": part.id, "sku": sku, "supplier_id": supplier_id},
        )
        return self._part_dto(part)

    def update_part(
        self,
        part_id: int,
        *,
        supplier_id: int = _UNSET,
        sku: str = _UNSET,
        name: str = _UNSET,
        description: str | None = _UNSET,
        cost_price: Decimal | int | str = _UNSET,
        sale_price: Decimal | int | str = _UNSET,
    ) -> PartInfo:
        """
        Update a catalog part.  Arguments not passed are left unchanged.

        Every value passed goes through the same checks as create_part.
        Nothing is written when any of them fails.  Items already on work
        orders keep the unit price they were added with.

        Raises:
            EntityNotFoundError: Unknown part or supplier.
            RequiredFieldError: Blank sku or name.
            NegativeValueError: Negative cost or sale price.
            DuplicateSkuError: SKU carried by another part.
        """
        part = self._require(Part, part_id)

        updates: dict[str, object] = {}
        if supplier_id is not _UNSET:
            self._require(Supplier, supplier_id)
            updates["supplier_id"] = supplier_id
        if sku is not _UNSET:
            sku = require_text("Part", "sku", sku)
            taken = self.session.execute(
                select(Part.id).where(Part.sku == sku, Part.id != part_id)
            ).first()
            if taken is not None:
                raise DuplicateSkuError(sku)
            updates["sku"] = sku
        if name is not _UNSET:
            updates["name"] = require_text("Part", "name", name)
        if description is not _UNSET:
            updates["description"] = optional_text(description)
        if cost_price is not _UNSET:
            updates["cost_price"] = non_negative("Part", "cost_price", cost_price)
        if sale_price is not _UNSET:
            updates["sale_price"] = non_negative("Part", "sale_price", sale_price)

        for field, value in updates.items():
            setattr(part, field, value)
        self.session.flush()

        logger.info(
            "part_updated",
            extra={"part_id": part.id, "sku": part.sku, "fields": list(updates)},
        )
        return self._part_dto(part)

    def get_part(self, part_id: int) -> PartInfo:
        return self._part_dto(self._require(Part, part_id))

    def get_part_by_sku(self, sku: str) -> PartInfo:
        """
        Raises:
            EntityNotFoundError: If no part carries the SKU.
        """
        part = self.session.execute(
            select(Part).where(Part.sku == sku.strip())
        ).scalar_one_or_none()
        if part is None:
            raise EntityNotFoundError("Part", sku)
        return self._part_dto(part)

    def delete_part(self, part_id: int) -> None:
        """
        Remove a part and its inventory record.

        Raises:
            EntityInUseError: While any work order item references the part.
        """
        part = self._require(Part, part_id)
        in_use = self.session.execute(
            select(func.count(WorkOrderItem.id)).where(WorkOrderItem.part_id == part_id)
        ).scalar_one()
        if in_use:
            raise EntityInUseError("Part", part_id, f"{in_use} work order item(s)")

        self.session.delete(part)
        self.session.flush()

        logger.info("part_deleted", extra={"part_id": part_id, "sku": part.sku})
