"""
Module: garage_kernel.selectors.report_selector
Responsibility: The ten workshop reports: order counts, low-stock exposure,
    costs, mechanic hours and revenue, parts usage, client invoicing and the
    top-client ranking.  Each is a pure function of the current data.
Architecture position: Kernel > Selectors.  May import from models/,
    domain/costing and selectors/base.py.  MUST NOT import from services/.

Invariants enforced:
    - Every money figure goes through ``domain.costing``, the same rule the
      work order engine uses, and is rounded to cents once per reported
      figure, so a report and a recomputed total agree to the cent.  Counts and hours are aggregated in SQL.
    - Orderings are total: every report breaks ties by ascending id.
    - Reports never trust the cached work order total; they derive from
      the line items.

Failure modes:
    - Returns empty lists when nothing qualifies.
    - work_order_breakdown() raises EntityNotFoundError for an unknown id.
"""

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import and_, desc, distinct, func, select
from sqlalchemy.orm import Session

from garage_kernel.db.types import ZERO, round_money
from garage_kernel.domain.costing import CostLine
from garage_kernel.domain.enums import ItemKind, WorkOrderStatus
from garage_kernel.domain.policy import DEFAULT_POLICY, WorkshopPolicy
from garage_kernel.exceptions import EntityNotFoundError
from garage_kernel.models.billing import Invoice, Payment
from garage_kernel.models.catalog import InventoryRecord, Part, Supplier
from garage_kernel.models.client import Client, Vehicle
from garage_kernel.models.mechanic import Mechanic
from garage_kernel.models.work_order import WorkOrder, WorkOrderItem
from garage_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class ClientOrderCount:
    client_id: int
    name: str
    order_count: int


@dataclass(frozen=True)
class LowStockWorkOrder:
    work_order_id: int
    status: WorkOrderStatus
    client_name: str
    plate: str


@dataclass(frozen=True)
class WorkOrderCost:
    work_order_id: int
    client_name: str
    estimated_cost: Decimal


@dataclass(frozen=True)
class MechanicHours:
    mechanic_id: int
    name: str
    total_hours: Decimal


@dataclass(frozen=True)
class PartUsage:
    part_id: int
    name: str
    supplier_name: str | None
    total_used: int


@dataclass(frozen=True)
class ClientInvoicing:
    """
    Invoiced and paid amounts of one client.

    ``total_invoiced`` counts an invoice once per payment recorded against
    it, and once when it has none.
    """

    client_id: int
    name: str
    total_invoiced: Decimal
    total_paid: Decimal


@dataclass(frozen=True)
class WorkOrderLine:
    work_order_id: int
    client_name: str
    plate: str
    item_id: int
    kind: ItemKind
    description: str
    quantity: int
    unit_price: Decimal
    hours: Decimal
    line_total: Decimal


@dataclass(frozen=True)
class LowStockDemand:
    part_id: int
    name: str
    stock_quantity: int
    orders_waiting: int


@dataclass(frozen=True)
class MechanicRevenue:
    mechanic_id: int
    name: str
    revenue: Decimal


@dataclass(frozen=True)
class TopClient:
    client_id: int
    name: str
    order_count: int
    average_order_value: Decimal | None


def _line(row) -> CostLine:
    return CostLine(
        unit_price=row.unit_price,
        quantity=row.quantity,
        hours=row.hours,
        hourly_rate=row.hourly_rate,
    )


class ReportSelector(BaseSelector[WorkOrder]):
    """
    Read-only workshop reports.

    Thresholds and limits default to the injected WorkshopPolicy.
    """

    def __init__(self, session: Session, policy: WorkshopPolicy | None = None):
        super().__init__(session)
        self.policy = policy or DEFAULT_POLICY

    def _priced_items(self, *criteria):
        """Line items joined with their mechanic's rate (None without one)."""
        query = (
            select(
                WorkOrderItem.id,
                WorkOrderItem.work_order_id,
                WorkOrderItem.mechanic_id,
                WorkOrderItem.unit_price,
                WorkOrderItem.quantity,
                WorkOrderItem.hours,
                Mechanic.hourly_rate,
            )
            .outerjoin(Mechanic, WorkOrderItem.mechanic_id == Mechanic.id)
            .order_by(WorkOrderItem.id)
        )
        for criterion in criteria:
            query = query.where(criterion)
        return self.session.execute(query).all()

    def _derived_totals(self) -> dict[int, Decimal]:
        """Work order id -> sum of its line subtotals (orders with items only)."""
        totals: dict[int, Decimal] = defaultdict(lambda: ZERO)
        for row in self._priced_items():
            totals[row.work_order_id] += _line(row).subtotal
        return {wo_id: round_money(total) for wo_id, total in totals.items()}

    # ------------------------------------------------------------------
    # 1. Orders per client
    # ------------------------------------------------------------------

    def orders_per_client(self) -> list[ClientOrderCount]:
        """
        Number of work orders of every client, clients without orders
        included with zero.  Most orders first; ties by client id.
        """
        order_count = func.count(WorkOrder.id).label("order_count")
        rows = self.session.execute(
            select(Client.id, Client.name, order_count)
            .outerjoin(WorkOrder, WorkOrder.client_id == Client.id)
            .group_by(Client.id, Client.name)
            .order_by(desc(order_count), Client.id)
        ).all()
        return [ClientOrderCount(r.id, r.name, r.order_count) for r in rows]

    # ------------------------------------------------------------------
    # 2. Work orders touching low-stock parts
    # ------------------------------------------------------------------

    def work_orders_with_low_stock_parts(
        self, threshold: int | None = None
    ) -> list[LowStockWorkOrder]:
        """
        Work orders with at least one Part item whose part has fewer than
        ``threshold`` units in stock.  Each work order listed once, by id.
        """
        if threshold is None:
            threshold = self.policy.low_stock_threshold
        rows = self.session.execute(
            select(WorkOrder.id, WorkOrder.status, Client.name, Vehicle.plate)
            .distinct()
            .join(
                WorkOrderItem,
                and_(
                    WorkOrderItem.work_order_id == WorkOrder.id,
                    WorkOrderItem.kind == ItemKind.PART,
                    WorkOrderItem.part_id.is_not(None),
                ),
            )
            .join(InventoryRecord, InventoryRecord.part_id == WorkOrderItem.part_id)
            .join(Client, WorkOrder.client_id == Client.id)
            .join(Vehicle, WorkOrder.vehicle_id == Vehicle.id)
            .where(InventoryRecord.quantity < threshold)
            .order_by(WorkOrder.id)
        ).all()
        return [LowStockWorkOrder(r.id, r.status, r.name, r.plate) for r in rows]

    # ------------------------------------------------------------------
    # 3. Estimated cost per work order
    # ------------------------------------------------------------------

    def estimated_cost_per_work_order(self) -> list[WorkOrderCost]:
        """
        Cost of every work order that has items, by the costing rule.
        Most expensive first; ties by work order id.
        """
        totals = self._derived_totals()
        if not totals:
            return []
        names = dict(
            self.session.execute(
                select(WorkOrder.id, Client.name)
                .join(Client, WorkOrder.client_id == Client.id)
                .where(WorkOrder.id.in_(totals.keys()))
            ).all()
        )
        result = [
            WorkOrderCost(wo_id, names[wo_id], total) for wo_id, total in totals.items()
        ]
        result.sort(key=lambda r: (-r.estimated_cost, r.work_order_id))
        return result

    # ------------------------------------------------------------------
    # 4. Mechanic service hours
    # ------------------------------------------------------------------

    def mechanic_service_hours(self) -> list[MechanicHours]:
        """
        Hours booked on Service items per mechanic, mechanics with a
        positive total only.  Most hours first; ties by mechanic id.
        """
        total_hours = func.sum(WorkOrderItem.hours).label("total_hours")
        rows = self.session.execute(
            select(Mechanic.id, Mechanic.name, total_hours)
            .join(WorkOrderItem, WorkOrderItem.mechanic_id == Mechanic.id)
            .where(WorkOrderItem.kind == ItemKind.SERVICE)
            .group_by(Mechanic.id, Mechanic.name)
            .having(func.sum(WorkOrderItem.hours) > 0)
            .order_by(desc(total_hours), Mechanic.id)
        ).all()
        return [MechanicHours(r.id, r.name, Decimal(r.total_hours)) for r in rows]

    # ------------------------------------------------------------------
    # 5. Parts usage ranking
    # ------------------------------------------------------------------

    def parts_usage_ranking(self) -> list[PartUsage]:
        """Units used per part across Part items, with the supplier name."""
        total_used = func.sum(WorkOrderItem.quantity).label("total_used")
        rows = self.session.execute(
            select(Part.id, Part.name, Supplier.name.label("supplier_name"), total_used)
            .join(WorkOrderItem, WorkOrderItem.part_id == Part.id)
            .outerjoin(Supplier, Part.supplier_id == Supplier.id)
            .where(WorkOrderItem.kind == ItemKind.PART)
            .group_by(Part.id, Part.name, Supplier.name)
            .order_by(desc(total_used), Part.id)
        ).all()
        return [PartUsage(r.id, r.name, r.supplier_name, int(r.total_used)) for r in rows]

    # ------------------------------------------------------------------
    # 6. Clients above an invoiced threshold
    # ------------------------------------------------------------------

    def clients_above_invoiced(
        self, threshold: Decimal | None = None
    ) -> list[ClientInvoicing]:
        """
        Clients whose invoiced total exceeds ``threshold``, with what they
        paid.  Highest invoiced first; ties by client id.

        Rows are client x invoice x payment (an invoice without payments
        gives one row), and both sums run over those rows.
        """
        if threshold is None:
            threshold = self.policy.invoiced_threshold
        rows = self.session.execute(
            select(
                Client.id,
                Client.name,
                Invoice.total_amount,
                Payment.amount,
            )
            .join(WorkOrder, WorkOrder.client_id == Client.id)
            .join(Invoice, Invoice.work_order_id == WorkOrder.id)
            .outerjoin(Payment, Payment.invoice_id == Invoice.id)
            .order_by(Client.id, Invoice.id, Payment.id)
        ).all()

        names: dict[int, str] = {}
        invoiced: dict[int, Decimal] = defaultdict(lambda: ZERO)
        paid: dict[int, Decimal] = defaultdict(lambda: ZERO)
        for row in rows:
            names[row.id] = row.name
            invoiced[row.id] += row.total_amount
            paid[row.id] += row.amount if row.amount is not None else ZERO

        result = [
            ClientInvoicing(client_id, names[client_id], invoiced[client_id], paid[client_id])
            for client_id in names
            if invoiced[client_id] > threshold
        ]
        result.sort(key=lambda r: (-r.total_invoiced, r.client_id))
        return result

    # ------------------------------------------------------------------
    # 7. Line breakdown of one work order
    # ------------------------------------------------------------------

    def work_order_breakdown(self, work_order_id: int) -> list[WorkOrderLine]:
        """
        The lines of one work order with their derived totals, largest
        first; ties by item id.

        Raises:
            EntityNotFoundError: Unknown work order.
        """
        header = self.session.execute(
            select(WorkOrder.id, Client.name, Vehicle.plate)
            .join(Client, WorkOrder.client_id == Client.id)
            .join(Vehicle, WorkOrder.vehicle_id == Vehicle.id)
            .where(WorkOrder.id == work_order_id)
        ).one_or_none()
        if header is None:
            raise EntityNotFoundError("WorkOrder", work_order_id)

        rows = self.session.execute(
            select(
                WorkOrderItem.id,
                WorkOrderItem.kind,
                WorkOrderItem.description,
                WorkOrderItem.quantity,
                WorkOrderItem.unit_price,
                WorkOrderItem.hours,
                Mechanic.hourly_rate,
            )
            .outerjoin(Mechanic, WorkOrderItem.mechanic_id == Mechanic.id)
            .where(WorkOrderItem.work_order_id == work_order_id)
        ).all()

        lines = [
            WorkOrderLine(
                work_order_id=header.id,
                client_name=header.name,
                plate=header.plate,
                item_id=r.id,
                kind=r.kind,
                description=r.description,
                quantity=r.quantity,
                unit_price=r.unit_price,
                hours=r.hours,
                line_total=round_money(_line(r).subtotal),
            )
            for r in rows
        ]
        lines.sort(key=lambda line: (-line.line_total, line.item_id))
        return lines

    # ------------------------------------------------------------------
    # 8. Low-stock parts and the work orders waiting on them
    # ------------------------------------------------------------------

    def low_stock_parts_with_demand(
        self, threshold: int | None = None
    ) -> list[LowStockDemand]:
        """
        Parts with fewer than ``threshold`` units, each with the number of
        distinct work orders that use it on a Part item (zero included).
        Most demanded first; ties by part id.
        """
        if threshold is None:
            threshold = self.policy.low_stock_threshold
        orders_waiting = func.count(distinct(WorkOrderItem.work_order_id)).label(
            "orders_waiting"
        )
        rows = self.session.execute(
            select(Part.id, Part.name, InventoryRecord.quantity, orders_waiting)
            .join(InventoryRecord, InventoryRecord.part_id == Part.id)
            .outerjoin(
                WorkOrderItem,
                and_(
                    WorkOrderItem.part_id == Part.id,
                    WorkOrderItem.kind == ItemKind.PART,
                ),
            )
            .where(InventoryRecord.quantity < threshold)
            .group_by(Part.id, Part.name, InventoryRecord.quantity)
            .order_by(desc(orders_waiting), Part.id)
        ).all()
        return [
            LowStockDemand(r.id, r.name, r.quantity, r.orders_waiting) for r in rows
        ]

    # ------------------------------------------------------------------
    # 9. Revenue per mechanic
    # ------------------------------------------------------------------

    def revenue_per_mechanic(self) -> list[MechanicRevenue]:
        """
        Labour plus any part amount on the items attributed to each
        mechanic.  Highest revenue first; ties by mechanic id.
        """
        revenue: dict[int, Decimal] = defaultdict(lambda: ZERO)
        for row in self._priced_items(WorkOrderItem.mechanic_id.is_not(None)):
            revenue[row.mechanic_id] += _line(row).subtotal
        if not revenue:
            return []

        names = dict(
            self.session.execute(
                select(Mechanic.id, Mechanic.name).where(Mechanic.id.in_(revenue.keys()))
            ).all()
        )
        result = [
            MechanicRevenue(mechanic_id, names[mechanic_id], round_money(amount))
            for mechanic_id, amount in revenue.items()
        ]
        result.sort(key=lambda r: (-r.revenue, r.mechanic_id))
        return result

    # ------------------------------------------------------------------
    # 10. Top clients
    # ------------------------------------------------------------------

    def top_clients(self, limit: int | None = None) -> list[TopClient]:
        """
        Clients ranked by number of work orders, then by average order
        value, both descending.  A client without orders has no average
        and ranks after every client with the same count that has one.
        Remaining ties by client id.
        """
        if limit is None:
            limit = self.policy.top_clients_limit

        totals = self._derived_totals()
        rows = self.session.execute(
            select(Client.id, Client.name, WorkOrder.id.label("work_order_id"))
            .outerjoin(WorkOrder, WorkOrder.client_id == Client.id)
            .order_by(Client.id, WorkOrder.id)
        ).all()

        names: dict[int, str] = {}
        orders: dict[int, list[Decimal]] = defaultdict(list)
        for row in rows:
            names[row.id] = row.name
            if row.work_order_id is not None:
                orders[row.id].append(totals.get(row.work_order_id, ZERO))

        ranked = [
            TopClient(
                client_id=client_id,
                name=name,
                order_count=len(orders[client_id]),
                average_order_value=_average(orders[client_id]),
            )
            for client_id, name in names.items()
        ]
        ranked.sort(
            key=lambda r: (
                -r.order_count,
                r.average_order_value is None,
                -(r.average_order_value or ZERO),
                r.client_id,
            )
        )
        return ranked[:limit]


def _average(values: Iterable[Decimal]) -> Decimal | None:
    values = list(values)
    if not values:
        return None
    return round_money(sum(values, ZERO) / len(values))
