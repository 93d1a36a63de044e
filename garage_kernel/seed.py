"""
Bootstrap dataset for demonstrations and tests.

Loads a small, fixed workshop through the services (so every rule the
services enforce also holds for the seed):

    2 suppliers, 3 parts with stock (30, 10, 3), 3 mechanics (45, 55, 40/h),
    3 clients (2 individual, 1 business), 3 vehicles, 3 work orders with
    6 items, an invoice per work order, one card payment of 105.00 on the
    first invoice, and one status change (work order 3: OPEN -> IN_PROGRESS).

Resulting work order totals: 172.50, 350.00 and 420.00.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy.orm import Session

from garage_kernel.domain.clock import Clock
from garage_kernel.domain.enums import AccountKind, ItemKind, PaymentMethod, WorkOrderStatus
from garage_kernel.domain.policy import WorkshopPolicy
from garage_kernel.logging_config import get_logger
from garage_kernel.services.billing_service import BillingService
from garage_kernel.services.catalog_service import CatalogService
from garage_kernel.services.client_service import ClientService
from garage_kernel.services.inventory_service import InventoryLedger
from garage_kernel.services.work_order_service import LineItemSpec, WorkOrderService

logger = get_logger("seed")


@dataclass(frozen=True)
class SeedIds:
    """Ids assigned to the seeded rows, in creation order."""

    suppliers: tuple[int, ...]
    parts: tuple[int, ...]
    mechanics: tuple[int, ...]
    clients: tuple[int, ...]
    vehicles: tuple[int, ...]
    work_orders: tuple[int, ...]
    invoices: tuple[int, ...]
    payments: tuple[int, ...]


def _at(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


def load_seed_data(
    session: Session,
    clock: Clock,
    policy: WorkshopPolicy | None = None,
) -> SeedIds:
    """
    Insert the bootstrap dataset into ``session`` (flushed, not committed).

    Expects empty tables; ids in the returned SeedIds are the ones the
    reports and tests refer to.
    """
    catalog = CatalogService(session, clock, policy)
    ledger = InventoryLedger(session, clock, policy)
    clients = ClientService(session, clock, policy)
    work_orders = WorkOrderService(session, clock, policy)
    billing = BillingService(session, clock, policy)

    suppliers = [
        catalog.create_supplier("AutoPeças Brasil", "contato@autopecas.com"),
        catalog.create_supplier("Distribuidora XYZ", "vendas@xyz.com"),
    ]

    parts = [
        catalog.create_part(
            suppliers[0].id, "AP-001", "Filtro de Óleo", "Filtro para motor 1.8",
            Decimal("10.50"), Decimal("25.00"),
        ),
        catalog.create_part(
            suppliers[0].id, "AP-002", "Pastilha de Freio", "Pastilha dianteira",
            Decimal("15.00"), Decimal("60.00"),
        ),
        catalog.create_part(
            suppliers[1].id, "XYZ-010", "Bateria 60Ah", "Bateria automotiva 60Ah",
            Decimal("200.00"), Decimal("350.00"),
        ),
    ]
    for part, quantity, location in zip(parts, (30, 10, 3), ("ST01", "ST01", "ST02")):
        ledger.open_record(part.id, quantity, location)

    mechanics = [
        catalog.create_mechanic("Carlos Silva", date(2015, 3, 10), Decimal("45.00")),
        catalog.create_mechanic("Ana Pereira", date(2018, 7, 22), Decimal("55.00")),
        catalog.create_mechanic("João Oliveira", date(2020, 1, 15), Decimal("40.00")),
    ]

    marcos = clients.create_client(
        AccountKind.INDIVIDUAL, "Marcos Almeida",
        email="marcos@mail.com", phone="+55 11 97777-0001",
        personal_tax_id="123.456.789-00",
    )
    luciana = clients.create_client(
        AccountKind.INDIVIDUAL, "Luciana Costa",
        email="luciana@mail.com", phone="+55 21 97777-0002",
        personal_tax_id="987.654.321-00",
    )
    abc = clients.create_client(
        AccountKind.BUSINESS, "Oficina ABC Ltda",
        email="comercial@abc.com", phone="+55 31 97777-0003",
        business_tax_id="12.345.678/0001-99",
    )

    vehicles = [
        clients.create_vehicle(
            marcos.id, "ABC1D23", "9BWZZZ377VT004251", "Volkswagen", "Gol", 2012, "Prata"
        ),
        clients.create_vehicle(
            marcos.id, "XYZ2F56", "3C4FY58B29T123456", "Fiat", "Uno", 2010, "Vermelho"
        ),
        clients.create_vehicle(
            luciana.id, "CAR3G78", "1HGCM82633A004352", "Honda", "Civic", 2016, "Preto"
        ),
    ]

    orders = [
        work_orders.create_work_order(
            marcos.id, vehicles[0].id, _at(2025, 11, 20, 9), Decimal("2.5"),
            "Troca de óleo e filtro",
        ),
        work_orders.create_work_order(
            marcos.id, vehicles[1].id, _at(2025, 11, 21, 13), Decimal("3.0"),
            "Revisão de freios",
        ),
        work_orders.create_work_order(
            luciana.id, vehicles[2].id, _at(2025, 11, 18, 8, 30), Decimal("5.0"),
            "Troca de bateria e inspeção completa",
        ),
    ]

    items = [
        (orders[0], LineItemSpec(ItemKind.SERVICE, "Mão-de-obra troca de óleo",
                                 1, Decimal("80.00"), Decimal("1.5"),
                                 mechanic_id=mechanics[0].id)),
        (orders[0], LineItemSpec(ItemKind.PART, "Filtro de óleo",
                                 1, Decimal("25.00"), part_id=parts[0].id)),
        (orders[1], LineItemSpec(ItemKind.SERVICE, "Substituição de pastilhas",
                                 1, Decimal("120.00"), Decimal("2.0"),
                                 mechanic_id=mechanics[1].id)),
        (orders[1], LineItemSpec(ItemKind.PART, "Pastilha de freio",
                                 2, Decimal("60.00"), part_id=parts[1].id)),
        (orders[2], LineItemSpec(ItemKind.PART, "Bateria 60Ah",
                                 1, Decimal("350.00"), part_id=parts[2].id)),
        (orders[2], LineItemSpec(ItemKind.SERVICE, "Instalação bateria",
                                 1, Decimal("50.00"), Decimal("0.5"),
                                 mechanic_id=mechanics[2].id)),
    ]
    for order, spec in items:
        work_orders.add_item(order.id, spec)
    for order in orders:
        work_orders.recompute_total(order.id)

    work_orders.transition_status(orders[2].id, WorkOrderStatus.IN_PROGRESS)

    invoices = [billing.issue_invoice(order.id) for order in orders]
    payment = billing.record_payment(
        invoices[0].id, Decimal("105.00"), PaymentMethod.CARD, _at(2025, 11, 20, 11)
    )

    seeded = SeedIds(
        suppliers=tuple(s.id for s in suppliers),
        parts=tuple(p.id for p in parts),
        mechanics=tuple(m.id for m in mechanics),
        clients=(marcos.id, luciana.id, abc.id),
        vehicles=tuple(v.id for v in vehicles),
        work_orders=tuple(o.id for o in orders),
        invoices=tuple(i.id for i in invoices),
        payments=(payment.id,),
    )
    logger.info(
        "seed_data_loaded",
        extra={"work_orders": len(orders), "invoices": len(invoices)},
    )
    return seeded
