"""
garage_kernel.services.work_order_service -- The work order engine.

Responsibility:
    Opens work orders, adds and removes their line items, derives their
    total through the costing rule, moves them through the status machine
    and records every move in the status log.

Architecture position:
    Kernel > Services.  Delegates pricing to ``domain.costing`` and the
    transition guard to ``domain.status_machine``; both are pure.

Invariants enforced:
    - A work order's vehicle belongs to its client (policy switch
      ``enforce_vehicle_ownership``).
    - Service items carry a mechanic, Part items carry a part; referenced
      mechanics and parts exist; quantity > 0, unit_price >= 0, hours >= 0.
    - Part items never ask for more units than are on hand (policy switch
      ``enforce_stock_on_part_items``).  Stock is read, never decremented.
    - ``total`` is a cache.  Item changes mark it stale in the same flush;
      recompute_total() rebuilds it from the current items and rates.
    - Each accepted transition writes exactly one status log row in the
      same transaction as the status change.  The work order row is locked
      and its version bumped, so concurrent transitions serialize or fail
      with OptimisticLockError; none is lost.

Failure modes:
    - EntityNotFoundError, VehicleOwnershipError on bad references.
    - MissingMechanicError, MissingPartError, InsufficientStockError,
      NegativeValueError, NonPositiveValueError, RequiredFieldError on a
      bad line item.
    - StatusTransitionError when the configured machine forbids a move.
    - OptimisticLockError when another transaction changed the work order
      between our read and our flush.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from garage_kernel.db.engine import run_with_retry
from garage_kernel.db.types import ZERO, round_money
from garage_kernel.domain.checks import non_negative, optional_text, positive_int, require_text
from garage_kernel.domain.clock import Clock
from garage_kernel.domain.costing import CostLine, order_total
from garage_kernel.domain.enums import ItemKind, WorkOrderStatus
from garage_kernel.domain.policy import DEFAULT_POLICY, WorkshopPolicy
from garage_kernel.exceptions import (
    EntityNotFoundError,
    InsufficientStockError,
    MissingMechanicError,
    MissingPartError,
    StatusTransitionError,
    VehicleOwnershipError,
)
from garage_kernel.logging_config import LogContext, get_logger
from garage_kernel.models.catalog import InventoryRecord, Part
from garage_kernel.models.client import Client, Vehicle
from garage_kernel.models.mechanic import Mechanic
from garage_kernel.models.work_order import StatusLogEntry, WorkOrder, WorkOrderItem
from garage_kernel.services.base import BaseService

logger = get_logger("services.work_order")


@dataclass(frozen=True)
class LineItemSpec:
    """
    A line item to add to a work order.

    Service items must name a mechanic and Part items a part.  Either kind
    may carry both; both the part price and the labour are charged.
    """

    kind: ItemKind
    description: str
    quantity: int = 1
    unit_price: Decimal = ZERO
    hours: Decimal = ZERO
    part_id: int | None = None
    mechanic_id: int | None = None


@dataclass(frozen=True)
class WorkOrderInfo:
    id: int
    client_id: int
    vehicle_id: int
    created_at: datetime
    scheduled_date: datetime | None
    status: WorkOrderStatus
    estimated_hours: Decimal | None
    total: Decimal
    total_stale: bool
    notes: str | None
    version: int


@dataclass(frozen=True)
class WorkOrderItemInfo:
    id: int
    work_order_id: int
    kind: ItemKind
    description: str
    part_id: int | None
    mechanic_id: int | None
    quantity: int
    unit_price: Decimal
    hours: Decimal
    subtotal: Decimal


@dataclass(frozen=True)
class StatusLogInfo:
    id: int
    work_order_id: int
    old_status: WorkOrderStatus | None
    new_status: WorkOrderStatus
    changed_at: datetime


def _cost_line(item: WorkOrderItem) -> CostLine:
    return CostLine(
        unit_price=item.unit_price,
        quantity=item.quantity,
        hours=item.hours,
        hourly_rate=item.mechanic.hourly_rate if item.mechanic is not None else None,
    )


class WorkOrderService(BaseService[WorkOrder]):
    """
    The work order engine.

    All public methods return DTOs.  Nothing here commits: run the calls
    inside ``session_scope()`` (or ``run_with_retry()`` for transitions
    under contention).
    """

    def _to_dto(self, work_order: WorkOrder) -> WorkOrderInfo:
        return WorkOrderInfo(
            id=work_order.id,
            client_id=work_order.client_id,
            vehicle_id=work_order.vehicle_id,
            created_at=work_order.created_at,
            scheduled_date=work_order.scheduled_date,
            status=work_order.status,
            estimated_hours=work_order.estimated_hours,
            total=work_order.total,
            total_stale=work_order.total_stale,
            notes=work_order.notes,
            version=work_order.version,
        )

    def _item_dto(self, item: WorkOrderItem) -> WorkOrderItemInfo:
        return WorkOrderItemInfo(
            id=item.id,
            work_order_id=item.work_order_id,
            kind=item.kind,
            description=item.description,
            part_id=item.part_id,
            mechanic_id=item.mechanic_id,
            quantity=item.quantity,
            unit_price=item.unit_price,
            hours=item.hours,
            subtotal=round_money(_cost_line(item).subtotal),
        )

    def _log_dto(self, entry: StatusLogEntry) -> StatusLogInfo:
        return StatusLogInfo(
            id=entry.id,
            work_order_id=entry.work_order_id,
            old_status=entry.old_status,
            new_status=entry.new_status,
            changed_at=entry.changed_at,
        )

    def _lock(self, work_order_id: int) -> WorkOrder:
        """Load the work order with a row lock and fresh column values."""
        work_order = self.session.execute(
            select(WorkOrder)
            .where(WorkOrder.id == work_order_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if work_order is None:
            raise EntityNotFoundError("WorkOrder", work_order_id)
        return work_order

    # ------------------------------------------------------------------
    # Work orders
    # ------------------------------------------------------------------

    def create_work_order(
        self,
        client_id: int,
        vehicle_id: int,
        scheduled_date: datetime | None = None,
        estimated_hours: Decimal | int | str | None = ZERO,
        notes: str | None = None,
    ) -> WorkOrderInfo:
        """
        Open a work order for a client's vehicle.

        The new order is OPEN with a total of zero.  No status log row is
        written; the log records transitions only.

        Raises:
            EntityNotFoundError: Unknown client or vehicle.
            VehicleOwnershipError: The vehicle belongs to another client.
            NegativeValueError: estimated_hours < 0.
        """
        client = self._require(Client, client_id)
        vehicle = self._require(Vehicle, vehicle_id)
        if self.policy.enforce_vehicle_ownership and vehicle.client_id != client.id:
            raise VehicleOwnershipError(vehicle.id, client.id, vehicle.client_id)

        hours = (
            non_negative("WorkOrder", "estimated_hours", estimated_hours)
            if estimated_hours is not None
            else None
        )

        work_order = WorkOrder(
            client=client,
            vehicle=vehicle,
            created_at=self.clock.now(),
            scheduled_date=scheduled_date,
            status=WorkOrderStatus.OPEN,
            estimated_hours=hours,
            total=ZERO,
            total_stale=False,
            notes=optional_text(notes),
        )
        self.session.add(work_order)
        self.session.flush()

        logger.info(
            "work_order_created",
            extra={
                "work_order_id": work_order.id,
                "client_id": client.id,
                "vehicle_id": vehicle.id,
            },
        )
        return self._to_dto(work_order)

    def get_work_order(self, work_order_id: int) -> WorkOrderInfo:
        return self._to_dto(self._require(WorkOrder, work_order_id))

    def list_items(self, work_order_id: int) -> list[WorkOrderItemInfo]:
        """Line items in insertion order, each with its derived subtotal."""
        work_order = self._require(WorkOrder, work_order_id)
        return [self._item_dto(item) for item in work_order.items]

    def delete_work_order(self, work_order_id: int) -> None:
        """Delete a work order with its items, invoice, payments and status log."""
        work_order = self._require(WorkOrder, work_order_id)
        self.session.delete(work_order)
        self._flush("WorkOrder", work_order_id)

        logger.info("work_order_deleted", extra={"work_order_id": work_order_id})

    # ------------------------------------------------------------------
    # Line items
    # ------------------------------------------------------------------

    def add_item(self, work_order_id: int, item: LineItemSpec) -> WorkOrderItemInfo:
        """
        Append a line item and mark the cached total stale.

        Raises:
            EntityNotFoundError: Unknown work order, part or mechanic.
            MissingMechanicError: Service item without mechanic_id.
            MissingPartError: Part item without part_id.
            InsufficientStockError: Part item quantity above stock on hand.
            RequiredFieldError, NonPositiveValueError, NegativeValueError:
                Blank description, quantity <= 0, negative price or hours.
        """
        work_order = self._require(WorkOrder, work_order_id)
        kind = ItemKind(item.kind)

        description = require_text("WorkOrderItem", "description", item.description)
        quantity = positive_int("WorkOrderItem", "quantity", item.quantity)
        unit_price = non_negative("WorkOrderItem", "unit_price", item.unit_price)
        hours = non_negative("WorkOrderItem", "hours", item.hours)

        if kind == ItemKind.SERVICE and item.mechanic_id is None:
            raise MissingMechanicError(work_order_id)
        if kind == ItemKind.PART and item.part_id is None:
            raise MissingPartError(work_order_id)

        mechanic = (
            self._require(Mechanic, item.mechanic_id)
            if item.mechanic_id is not None
            else None
        )
        part = self._require(Part, item.part_id) if item.part_id is not None else None

        if kind == ItemKind.PART and self.policy.enforce_stock_on_part_items:
            available = self.session.execute(
                select(InventoryRecord.quantity).where(InventoryRecord.part_id == part.id)
            ).scalar_one_or_none() or 0
            if quantity > available:
                raise InsufficientStockError(part.id, quantity, available)

        line = WorkOrderItem(
            kind=kind,
            description=description,
            part=part,
            mechanic=mechanic,
            quantity=quantity,
            unit_price=unit_price,
            hours=hours,
        )
        work_order.items.append(line)
        work_order.total_stale = True
        self._flush("WorkOrder", work_order_id)

        logger.info(
            "work_order_item_added",
            extra={
                "work_order_id": work_order_id,
                "item_id": line.id,
                "kind": kind.value,
                "part_id": line.part_id,
                "mechanic_id": line.mechanic_id,
                "quantity": quantity,
            },
        )
        return self._item_dto(line)

    def remove_item(self, work_order_id: int, item_id: int) -> None:
        """
        Delete one line item and mark the cached total stale.

        Raises:
            EntityNotFoundError: The item does not exist on this work order.
        """
        work_order = self._require(WorkOrder, work_order_id)
        line = next((i for i in work_order.items if i.id == item_id), None)
        if line is None:
            raise EntityNotFoundError("WorkOrderItem", item_id)

        work_order.items.remove(line)
        work_order.total_stale = True
        self._flush("WorkOrder", work_order_id)

        logger.info(
            "work_order_item_removed",
            extra={"work_order_id": work_order_id, "item_id": item_id},
        )

    # ------------------------------------------------------------------
    # Totals
    # ------------------------------------------------------------------

    def _derive_total(self, work_order: WorkOrder) -> Decimal:
        return order_total(_cost_line(item) for item in work_order.items)

    def recompute_total(self, work_order_id: int) -> Decimal:
        """
        Rebuild the total from the current items and mechanic rates.

        total = sum(unit_price * quantity + hours * hourly_rate), with the
        rate taken as zero for items without a mechanic.  Stores the result
        and clears the stale flag.  Calling it again without changes
        returns the same value and writes nothing.
        """
        work_order = self._require(WorkOrder, work_order_id)
        total = self._derive_total(work_order)

        if work_order.total != total or work_order.total_stale:
            previous = work_order.total
            work_order.total = total
            work_order.total_stale = False
            self._flush("WorkOrder", work_order_id)
            logger.info(
                "work_order_total_recomputed",
                extra={
                    "work_order_id": work_order_id,
                    "previous_total": previous,
                    "total": total,
                    "item_count": len(work_order.items),
                },
            )
        return total

    def get_total(self, work_order_id: int) -> Decimal:
        """The cached total, recomputed first when item changes made it stale."""
        work_order = self._require(WorkOrder, work_order_id)
        if work_order.total_stale:
            return self.recompute_total(work_order_id)
        return work_order.total

    # ------------------------------------------------------------------
    # Status machine
    # ------------------------------------------------------------------

    def transition_status(
        self,
        work_order_id: int,
        new_status: WorkOrderStatus,
    ) -> StatusLogInfo:
        """
        Move a work order to ``new_status`` and append the status log row.

        Re-entering the current status is a transition like any other and
        is logged.

        Raises:
            EntityNotFoundError: Unknown work order.
            StatusTransitionError: The configured machine forbids the move.
            OptimisticLockError: A concurrent writer changed the row.
        """
        new_status = WorkOrderStatus(new_status)

        with LogContext.bind(work_order_id=str(work_order_id)):
            work_order = self._lock(work_order_id)
            old_status = work_order.status
            machine = self.policy.status_machine

            if not machine.can_transition(old_status, new_status):
                logger.warning(
                    "work_order_transition_rejected",
                    extra={
                        "from_status": old_status.value,
                        "to_status": new_status.value,
                    },
                )
                raise StatusTransitionError(
                    work_order_id, old_status.value, new_status.value
                )

            entry = StatusLogEntry(
                old_status=old_status,
                new_status=new_status,
                changed_at=self.clock.now(),
            )
            work_order.status_logs.append(entry)
            work_order.status = new_status
            # Always dirty the row so the versioned UPDATE runs even when
            # the status is re-entered.
            work_order.updated_at = self.clock.now()
            self._flush("WorkOrder", work_order_id)

            logger.info(
                "work_order_status_changed",
                extra={
                    "from_status": old_status.value,
                    "to_status": new_status.value,
                    "reopened": machine.is_reopening(old_status, new_status),
                    "log_id": entry.id,
                },
            )
            return self._log_dto(entry)

    def status_history(self, work_order_id: int) -> list[StatusLogInfo]:
        """Status log rows, oldest first."""
        self._require(WorkOrder, work_order_id)
        entries = self.session.execute(
            select(StatusLogEntry)
            .where(StatusLogEntry.work_order_id == work_order_id)
            .order_by(StatusLogEntry.id)
        ).scalars().all()
        return [self._log_dto(e) for e in entries]


def transition_with_retry(
    work_order_id: int,
    new_status: WorkOrderStatus,
    clock: Clock | None = None,
    policy: WorkshopPolicy | None = None,
    session_factory: Callable[[], Session] | None = None,
) -> StatusLogInfo:
    """
    Run transition_status() in its own transaction, retrying version
    conflicts up to ``policy.max_transition_retries`` attempts.

    Each attempt re-reads the work order, so the logged old status is the
    one actually replaced.
    """
    policy = policy or DEFAULT_POLICY
    return run_with_retry(
        lambda session: WorkOrderService(session, clock, policy).transition_status(
            work_order_id, new_status
        ),
        max_attempts=policy.max_transition_retries,
        session_factory=session_factory,
    )
