"""
Work order costing -- pure derivation of line subtotals and order totals.

Responsibility:
    The one place the workshop's pricing rule is written down:

        line subtotal = unit_price * quantity + hours * mechanic_hourly_rate
        order total   = sum of line subtotals, rounded to cents

    where the hourly rate is zero for lines without a mechanic.  The work
    order engine, the billing module and the reports all call into here, so
    a work order's total and its invoice snapshot can never disagree with
    the cost reports.

Architecture position:
    Kernel > Domain -- pure functions, no I/O, no ORM imports.

Invariants enforced:
    - Decimal only.  Inputs go through ``to_decimal`` which rejects floats.
    - Line subtotals are exact products.  The order total is the exact sum
      rounded once to cents (ROUND_HALF_UP), the precision it is stored at,
      so a returned total always equals the persisted one.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from garage_kernel.db.types import ZERO, round_money, to_decimal


@dataclass(frozen=True)
class CostLine:
    """The inputs of one line item that affect its price."""

    unit_price: Decimal
    quantity: int
    hours: Decimal = ZERO
    hourly_rate: Decimal | None = None

    @property
    def parts_amount(self) -> Decimal:
        return self.unit_price * self.quantity

    @property
    def labour_amount(self) -> Decimal:
        return self.hours * (self.hourly_rate if self.hourly_rate is not None else ZERO)

    @property
    def subtotal(self) -> Decimal:
        return self.parts_amount + self.labour_amount


def line_subtotal(
    unit_price: Decimal | int | str,
    quantity: int,
    hours: Decimal | int | str = ZERO,
    hourly_rate: Decimal | int | str | None = None,
) -> Decimal:
    """Subtotal of a single line: unit_price * quantity + hours * rate."""
    line = CostLine(
        unit_price=to_decimal(unit_price),
        quantity=quantity,
        hours=to_decimal(hours),
        hourly_rate=to_decimal(hourly_rate) if hourly_rate is not None else None,
    )
    return line.subtotal


def order_total(lines: Iterable[CostLine]) -> Decimal:
    """Sum of line subtotals rounded to cents; an order without lines totals 0.00."""
    total = ZERO
    for line in lines:
        total += line.subtotal
    return round_money(total)
