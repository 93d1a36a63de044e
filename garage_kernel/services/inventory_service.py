"""
garage_kernel.services.inventory_service -- On-hand stock per part.

Responsibility:
    Owns the inventory table: opening a part's record, reading its
    quantity, and applying signed adjustments.  The quantity column is the
    single source of truth for stock; no movement history is kept.

Architecture position:
    Kernel > Services.  May import from domain/, models/, db/.

Invariants enforced:
    - Quantity never drops below zero.  A rejected adjustment leaves the
      stored quantity unchanged.
    - At most one inventory record per part.
    - Adjustments lock the record (SELECT ... FOR UPDATE) so concurrent
      adjustments serialize instead of overwriting each other.

Failure modes:
    - EntityNotFoundError for an unknown part.
    - InventoryRecordExistsError on a second open_record().
    - NegativeStockError when an adjustment would go below zero.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select

from garage_kernel.domain.checks import non_negative_int, optional_text
from garage_kernel.exceptions import InventoryRecordExistsError, NegativeStockError
from garage_kernel.logging_config import get_logger
from garage_kernel.models.catalog import InventoryRecord, Part
from garage_kernel.services.base import BaseService

logger = get_logger("services.inventory")


@dataclass(frozen=True)
class InventoryInfo:
    id: int
    part_id: int
    quantity: int
    location: str | None
    last_updated: datetime


class InventoryLedger(BaseService[InventoryRecord]):
    """Stock levels per part."""

    def _to_dto(self, record: InventoryRecord) -> InventoryInfo:
        return InventoryInfo(
            id=record.id,
            part_id=record.part_id,
            quantity=record.quantity,
            location=record.location,
            last_updated=record.last_updated,
        )

    def _record_for(self, part_id: int, lock: bool = False) -> InventoryRecord | None:
        stmt = select(InventoryRecord).where(InventoryRecord.part_id == part_id)
        if lock:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self.session.execute(stmt).scalar_one_or_none()

    def open_record(
        self,
        part_id: int,
        quantity: int = 0,
        location: str | None = None,
    ) -> InventoryInfo:
        """
        Create the inventory record of a part.

        Raises:
            EntityNotFoundError: Unknown part.
            InventoryRecordExistsError: The part already has a record.
            NegativeValueError: quantity < 0.
        """
        self._require(Part, part_id)
        quantity = non_negative_int("InventoryRecord", "quantity", quantity)
        if self._record_for(part_id) is not None:
            raise InventoryRecordExistsError(part_id)

        record = InventoryRecord(
            part_id=part_id,
            quantity=quantity,
            location=optional_text(location),
            last_updated=self.clock.now(),
        )
        self.session.add(record)
        self.session.flush()

        logger.info(
            "inventory_record_opened",
            extra={"part_id": part_id, "quantity": quantity},
        )
        return self._to_dto(record)

    def get_record(self, part_id: int) -> InventoryInfo | None:
        self._require(Part, part_id)
        record = self._record_for(part_id)
        return self._to_dto(record) if record else None

    def get_quantity(self, part_id: int) -> int:
        """
        Units on hand; 0 for a part that has no inventory record yet.

        Raises:
            EntityNotFoundError: Unknown part.
        """
        self._require(Part, part_id)
        record = self._record_for(part_id)
        return record.quantity if record else 0

    def adjust_quantity(self, part_id: int, delta: int) -> int:
        """
        Apply a signed stock movement and return the new quantity.

        A part without a record is treated as holding zero units.  A positive
        adjustment opens its record; a zero adjustment leaves it absent and
        writes nothing.

        Raises:
            EntityNotFoundError: Unknown part.
            NegativeStockError: current + delta < 0.  Nothing is written.
        """
        if isinstance(delta, bool) or not isinstance(delta, int):
            raise TypeError(f"delta must be an int, got {type(delta).__name__}")
        self._require(Part, part_id)

        record = self._record_for(part_id, lock=True)
        current = record.quantity if record else 0
        new_quantity = current + delta
        if new_quantity < 0:
            logger.warning(
                "inventory_adjustment_rejected",
                extra={"part_id": part_id, "current": current, "delta": delta},
            )
            raise NegativeStockError(part_id, current, delta)
        if record is None and delta == 0:
            return 0

        if record is None:
            record = InventoryRecord(part_id=part_id, quantity=new_quantity)
            self.session.add(record)
        else:
            record.quantity = new_quantity
        record.last_updated = self.clock.now()
        self.session.flush()

        logger.info(
            "inventory_adjusted",
            extra={
                "part_id": part_id,
                "delta": delta,
                "old_quantity": current,
                "new_quantity": new_quantity,
            },
        )
        return new_quantity

    def list_below_threshold(self, threshold: int | None = None) -> set[int]:
        """Ids of parts whose recorded quantity is strictly below ``threshold``."""
        if threshold is None:
            threshold = self.policy.low_stock_threshold
        rows = self.session.execute(
            select(InventoryRecord.part_id).where(InventoryRecord.quantity < threshold)
        ).scalars()
        return set(rows)
