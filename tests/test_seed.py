"""Tests for the bootstrap dataset."""

from datetime import date
from decimal import Decimal

from garage_kernel.domain.enums import PaymentMethod, WorkOrderStatus
from garage_kernel.services.billing_service import BillingService
from garage_kernel.services.client_service import ClientService
from garage_kernel.services.inventory_service import InventoryLedger
from garage_kernel.services.work_order_service import WorkOrderService


class TestSeedData:

    def test_counts(self, seeded):
        assert len(seeded.suppliers) == 2
        assert len(seeded.parts) == 3
        assert len(seeded.mechanics) == 3
        assert len(seeded.clients) == 3
        assert len(seeded.vehicles) == 3
        assert len(seeded.work_orders) == 3
        assert len(seeded.invoices) == 3
        assert len(seeded.payments) == 1

    def test_work_order_totals(self, session, seeded):
        service = WorkOrderService(session)
        totals = [service.get_work_order(wo).total for wo in seeded.work_orders]
        assert totals == [Decimal("172.50"), Decimal("350.00"), Decimal("420.00")]

    def test_statuses_and_log(self, session, seeded):
        service = WorkOrderService(session)
        statuses = [service.get_work_order(wo).status for wo in seeded.work_orders]
        assert statuses == [WorkOrderStatus.OPEN, WorkOrderStatus.OPEN, WorkOrderStatus.IN_PROGRESS]
        assert service.status_history(seeded.work_orders[0]) == []
        history = service.status_history(seeded.work_orders[2])
        assert [(h.old_status, h.new_status) for h in history] == [
            (WorkOrderStatus.OPEN, WorkOrderStatus.IN_PROGRESS),
        ]

    def test_stock_untouched_by_items(self, session, seeded):
        ledger = InventoryLedger(session)
        assert [ledger.get_quantity(p) for p in seeded.parts] == [30, 10, 3]

    def test_invoices_and_payment(self, session, seeded):
        billing = BillingService(session)
        invoices = [billing.get_invoice(i) for i in seeded.invoices]
        assert [i.total_amount for i in invoices] == [
            Decimal("172.50"), Decimal("350.00"), Decimal("420.00"),
        ]
        assert all(i.paid is False for i in invoices)
        assert invoices[0].due_date == date(2025, 11, 27)

        payments = billing.list_payments(seeded.invoices[0])
        assert [(p.amount, p.method) for p in payments] == [(Decimal("105.00"), PaymentMethod.CARD)]
        assert billing.outstanding_balance(seeded.invoices[0]) == Decimal("67.50")

    def test_business_client(self, session, seeded):
        abc = ClientService(session).get_client(seeded.clients[2])
        assert abc.tax_id == "12.345.678/0001-99"
        assert abc.personal_tax_id is None
