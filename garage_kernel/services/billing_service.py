"""
garage_kernel.services.billing_service -- Invoices and payments.

Responsibility:
    Issues the single invoice of a work order by snapshotting its freshly
    recomputed total, and records payments against invoices.

Architecture position:
    Kernel > Services.  Uses WorkOrderService for the total so the invoice
    and the work order can never be priced by different rules.

Invariants enforced:
    - One invoice per work order.
    - total_amount is the work order total at issuance; later item or rate
      changes do not alter it.
    - Payment amount > 0 after rounding to cents.  Payments are not checked against the balance
      and never flip ``paid``; mark_paid() is the explicit caller action.

Failure modes:
    - EntityNotFoundError for unknown work order / invoice ids.
    - InvoiceAlreadyIssuedError on a second issue_invoice(), including one
      that loses a race at the unique constraint.
    - InvalidPaymentAmountError for amount <= 0.
    - InvoiceNotSettledError from mark_paid() while payments fall short.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from garage_kernel.db.types import ZERO, round_money, to_decimal
from garage_kernel.domain.enums import PaymentMethod
from garage_kernel.exceptions import (
    InvalidPaymentAmountError,
    InvoiceAlreadyIssuedError,
    InvoiceNotSettledError,
)
from garage_kernel.logging_config import LogContext, get_logger
from garage_kernel.models.billing import Invoice, Payment
from garage_kernel.models.work_order import WorkOrder
from garage_kernel.services.base import BaseService
from garage_kernel.services.work_order_service import WorkOrderService

logger = get_logger("services.billing")


@dataclass(frozen=True)
class InvoiceInfo:
    id: int
    work_order_id: int
    issued_at: datetime
    due_date: date | None
    total_amount: Decimal
    paid: bool
    paid_at: datetime | None


@dataclass(frozen=True)
class PaymentInfo:
    id: int
    invoice_id: int
    amount: Decimal
    method: PaymentMethod
    paid_at: datetime


class BillingService(BaseService[Invoice]):
    """Invoices and payments.  Returns DTOs."""

    def _to_dto(self, invoice: Invoice) -> InvoiceInfo:
        return InvoiceInfo(
            id=invoice.id,
            work_order_id=invoice.work_order_id,
            issued_at=invoice.issued_at,
            due_date=invoice.due_date,
            total_amount=invoice.total_amount,
            paid=invoice.paid,
            paid_at=invoice.paid_at,
        )

    def _payment_dto(self, payment: Payment) -> PaymentInfo:
        return PaymentInfo(
            id=payment.id,
            invoice_id=payment.invoice_id,
            amount=payment.amount,
            method=payment.method,
            paid_at=payment.paid_at,
        )

    def issue_invoice(
        self,
        work_order_id: int,
        due_date: date | None = None,
    ) -> InvoiceInfo:
        """
        Issue the invoice of a work order.

        The work order total is recomputed from its items first and the
        result is copied into ``total_amount``.  The due date defaults to
        the issue date plus ``policy.invoice_due_days``.

        Raises:
            EntityNotFoundError: Unknown work order.
            InvoiceAlreadyIssuedError: The work order already has an invoice.
        """
        work_order = self._require(WorkOrder, work_order_id)
        existing = self._existing_invoice_id(work_order_id)
        if existing is not None:
            raise InvoiceAlreadyIssuedError(work_order_id, existing)

        total = WorkOrderService(self.session, self.clock, self.policy).recompute_total(
            work_order_id
        )

        issued_at = self.clock.now()
        if due_date is None:
            due_date = issued_at.date() + timedelta(days=self.policy.invoice_due_days)

        invoice = Invoice(
            work_order_id=work_order_id,
            issued_at=issued_at,
            due_date=due_date,
            total_amount=total,
            paid=False,
        )
        try:
            with self.session.begin_nested():
                self.session.add(invoice)
                self.session.flush()
        except IntegrityError:
            # A concurrent issue_invoice() committed first.
            winner = self._existing_invoice_id(work_order_id)
            if winner is None:
                raise
            logger.warning(
                "invoice_issue_conflict",
                extra={"work_order_id": work_order_id, "invoice_id": winner},
            )
            raise InvoiceAlreadyIssuedError(work_order_id, winner) from None
        self.session.expire(work_order, ["invoice"])

        with LogContext.bind(work_order_id=str(work_order_id), invoice_id=str(invoice.id)):
            logger.info(
                "invoice_issued",
                extra={"total_amount": total, "due_date": due_date},
            )
        return self._to_dto(invoice)

    def _existing_invoice_id(self, work_order_id: int) -> int | None:
        return self.session.execute(
            select(Invoice.id).where(Invoice.work_order_id == work_order_id)
        ).scalar_one_or_none()

    def get_invoice(self, invoice_id: int) -> InvoiceInfo:
        return self._to_dto(self._require(Invoice, invoice_id))

    def find_for_work_order(self, work_order_id: int) -> InvoiceInfo | None:
        invoice = self.session.execute(
            select(Invoice).where(Invoice.work_order_id == work_order_id)
        ).scalar_one_or_none()
        return self._to_dto(invoice) if invoice else None

    def record_payment(
        self,
        invoice_id: int,
        amount: Decimal | int | str,
        method: PaymentMethod = PaymentMethod.CASH,
        paid_at: datetime | None = None,
    ) -> PaymentInfo:
        """
        Record money received against an invoice.

        Overpayment is accepted.  The invoice's ``paid`` flag is left alone;
        compare amount_paid() with the total, or call mark_paid().

        Raises:
            EntityNotFoundError: Unknown invoice.
            InvalidPaymentAmountError: amount <= 0.
        """
        invoice = self._require(Invoice, invoice_id)
        value = round_money(to_decimal(amount))
        if value <= ZERO:
            raise InvalidPaymentAmountError(invoice_id, str(value))

        payment = Payment(
            amount=value,
            method=PaymentMethod(method),
            paid_at=paid_at or self.clock.now(),
        )
        invoice.payments.append(payment)
        self.session.flush()

        with LogContext.bind(invoice_id=str(invoice_id)):
            logger.info(
                "payment_recorded",
                extra={
                    "payment_id": payment.id,
                    "amount": value,
                    "method": payment.method.value,
                },
            )
        return self._payment_dto(payment)

    def list_payments(self, invoice_id: int) -> list[PaymentInfo]:
        invoice = self._require(Invoice, invoice_id)
        return [self._payment_dto(p) for p in invoice.payments]

    def amount_paid(self, invoice_id: int) -> Decimal:
        """Sum of payments recorded against the invoice."""
        self._require(Invoice, invoice_id)
        amounts = self.session.execute(
            select(Payment.amount).where(Payment.invoice_id == invoice_id)
        ).scalars()
        return sum(amounts, ZERO)

    def outstanding_balance(self, invoice_id: int) -> Decimal:
        """Total minus payments; negative when overpaid."""
        invoice = self._require(Invoice, invoice_id)
        return invoice.total_amount - self.amount_paid(invoice_id)

    def is_paid_in_full(self, invoice_id: int) -> bool:
        invoice = self._require(Invoice, invoice_id)
        return self.amount_paid(invoice_id) >= invoice.total_amount

    def mark_paid(self, invoice_id: int) -> InvoiceInfo:
        """
        Set ``paid`` once payments cover the total.

        Raises:
            InvoiceNotSettledError: Payments are below the invoice total.
        """
        invoice = self._require(Invoice, invoice_id)
        paid = self.amount_paid(invoice_id)
        if paid < invoice.total_amount:
            raise InvoiceNotSettledError(invoice_id, str(invoice.total_amount), str(paid))

        if not invoice.paid:
            invoice.paid = True
            invoice.paid_at = self.clock.now()
            self.session.flush()
            with LogContext.bind(invoice_id=str(invoice_id)):
                logger.info("invoice_marked_paid", extra={"amount_paid": paid})
        return self._to_dto(invoice)
