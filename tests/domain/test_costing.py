"""
Tests for the work order costing rule.

    line subtotal = unit_price * quantity + hours * hourly_rate
    order total   = sum of line subtotals, rounded to cents
"""

from decimal import Decimal

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from garage_kernel.db.types import round_money
from garage_kernel.domain.costing import CostLine, line_subtotal, order_total

money = st.decimals(
    min_value=Decimal("0"), max_value=Decimal("99999.99"), places=2,
    allow_nan=False, allow_infinity=False,
)
hours = st.decimals(
    min_value=Decimal("0"), max_value=Decimal("999.99"), places=2,
    allow_nan=False, allow_infinity=False,
)
quantities = st.integers(min_value=1, max_value=1000)


class TestLineSubtotal:

    def test_service_line_with_labour(self):
        # 80.00 + 1.5h at 45.00/h
        assert line_subtotal("80.00", 1, "1.5", "45.00") == Decimal("147.50")

    def test_part_line_without_mechanic(self):
        assert line_subtotal(Decimal("60.00"), 2) == Decimal("120.00")

    def test_hours_without_rate_cost_nothing(self):
        assert line_subtotal("10.00", 1, "3.0", None) == Decimal("10.00")

    def test_zero_rate_mechanic(self):
        assert line_subtotal("10.00", 1, "3.0", "0") == Decimal("10.00")

    def test_no_intermediate_rounding(self):
        # 0.25h at 10.01/h = 2.5025, kept exact
        assert line_subtotal("0", 1, "0.25", "10.01") == Decimal("2.5025")

    def test_float_rejected(self):
        with pytest.raises(TypeError):
            line_subtotal(19.99, 1)

    def test_cost_line_components(self):
        line = CostLine(Decimal("50.00"), 1, Decimal("0.5"), Decimal("40.00"))
        assert line.parts_amount == Decimal("50.00")
        assert line.labour_amount == Decimal("20.00")
        assert line.subtotal == Decimal("70.00")

    def test_cost_line_is_frozen(self):
        line = CostLine(Decimal("1"), 1)
        with pytest.raises(AttributeError):
            line.quantity = 2


class TestOrderTotal:

    def test_empty_order_is_zero(self):
        assert order_total([]) == Decimal("0.00")

    def test_fractional_cent_labour_rounded_once(self):
        # 1.25h at 45.55/h = 56.9375
        lines = [CostLine(Decimal("0.00"), 1, Decimal("1.25"), Decimal("45.55"))]
        total = order_total(lines)
        assert total == Decimal("56.94")
        assert total.as_tuple().exponent == -2

    def test_half_cent_rounds_up(self):
        # 0.25h at 10.02/h = 2.505
        assert order_total([CostLine(Decimal("0"), 1, Decimal("0.25"), Decimal("10.02"))]) == Decimal("2.51")

    def test_rounding_applies_to_the_sum_not_each_line(self):
        # two lines of 2.5025 sum to 5.005 -> 5.01 (per-line rounding would give 5.00)
        line = CostLine(Decimal("0"), 1, Decimal("0.25"), Decimal("10.01"))
        assert order_total([line, line]) == Decimal("5.01")

    def test_reference_work_orders(self):
        first = [
            CostLine(Decimal("80.00"), 1, Decimal("1.5"), Decimal("45.00")),
            CostLine(Decimal("25.00"), 1),
        ]
        second = [
            CostLine(Decimal("120.00"), 1, Decimal("2.0"), Decimal("55.00")),
            CostLine(Decimal("60.00"), 2),
        ]
        third = [
            CostLine(Decimal("350.00"), 1),
            CostLine(Decimal("50.00"), 1, Decimal("0.5"), Decimal("40.00")),
        ]
        assert order_total(first) == Decimal("172.50")
        assert order_total(second) == Decimal("350.00")
        assert order_total(third) == Decimal("420.00")

    @settings(max_examples=100)
    @given(
        lines=st.lists(
            st.tuples(money, quantities, hours, st.one_of(st.none(), money)),
            max_size=20,
        )
    )
    def test_total_is_sum_of_subtotals(self, lines):
        cost_lines = [CostLine(p, q, h, r) for p, q, h, r in lines]
        expected = round_money(sum(
            (p * q + h * (r if r is not None else Decimal("0")) for p, q, h, r in lines),
            Decimal("0"),
        ))
        assert order_total(cost_lines) == expected

    @settings(max_examples=50)
    @given(
        lines=st.lists(st.tuples(money, quantities, hours, money), min_size=1, max_size=10)
    )
    def test_total_never_negative_and_order_independent(self, lines):
        cost_lines = [CostLine(p, q, h, r) for p, q, h, r in lines]
        total = order_total(cost_lines)
        assert total >= 0
        assert order_total(reversed(cost_lines)) == total
