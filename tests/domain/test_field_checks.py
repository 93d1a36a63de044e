"""Tests for field checks, client identity rules, decimal helpers and the clock."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from garage_kernel.db.types import round_money, to_decimal
from garage_kernel.domain.checks import (
    non_negative,
    non_negative_int,
    optional_text,
    positive,
    positive_int,
    require_text,
)
from garage_kernel.domain.client_rules import check_tax_ids, normalize_email
from garage_kernel.domain.clock import DeterministicClock
from garage_kernel.domain.enums import AccountKind
from garage_kernel.exceptions import (
    NegativeValueError,
    NonPositiveValueError,
    RequiredFieldError,
    TaxIdRuleError,
    ValidationError,
)


class TestDecimalHelpers:

    def test_to_decimal_accepts_str_int_decimal(self):
        assert to_decimal(" 12.50 ") == Decimal("12.50")
        assert to_decimal(3) == Decimal("3")
        assert to_decimal(Decimal("1.1")) == Decimal("1.1")

    @pytest.mark.parametrize("value", [1.5, True, None, [1]])
    def test_to_decimal_rejects(self, value):
        with pytest.raises(TypeError):
            to_decimal(value)

    def test_to_decimal_bad_string(self):
        with pytest.raises(ValueError):
            to_decimal("twelve")

    def test_round_money_half_up(self):
        assert round_money(Decimal("2.505")) == Decimal("2.51")
        assert round_money(Decimal("261.25")) == Decimal("261.25")
        assert round_money(Decimal("10")) == Decimal("10.00")


class TestFieldChecks:

    def test_require_text_strips(self):
        assert require_text("Client", "name", "  Ana  ") == "Ana"

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_require_text_blank(self, value):
        with pytest.raises(RequiredFieldError) as exc_info:
            require_text("Vehicle", "plate", value)
        assert exc_info.value.entity == "Vehicle"
        assert exc_info.value.field == "plate"
        assert exc_info.value.code == "REQUIRED_FIELD"

    def test_optional_text(self):
        assert optional_text(None) is None
        assert optional_text("  ") is None
        assert optional_text(" x ") == "x"

    def test_non_negative(self):
        assert non_negative("Part", "sale_price", "0") == Decimal("0")
        with pytest.raises(NegativeValueError):
            non_negative("Part", "sale_price", "-0.01")

    def test_positive(self):
        assert positive("Payment", "amount", "0.01") == Decimal("0.01")
        with pytest.raises(NonPositiveValueError):
            positive("Payment", "amount", 0)

    def test_positive_int(self):
        assert positive_int("WorkOrderItem", "quantity", 2) == 2
        with pytest.raises(NonPositiveValueError):
            positive_int("WorkOrderItem", "quantity", 0)
        with pytest.raises(TypeError):
            positive_int("WorkOrderItem", "quantity", 1.0)

    def test_non_negative_int(self):
        assert non_negative_int("InventoryRecord", "quantity", 0) == 0
        with pytest.raises(NegativeValueError):
            non_negative_int("InventoryRecord", "quantity", -1)

    def test_all_are_validation_errors(self):
        assert issubclass(NegativeValueError, ValidationError)
        assert issubclass(NonPositiveValueError, ValidationError)
        assert issubclass(RequiredFieldError, ValidationError)


class TestTaxIdRules:

    def test_individual_with_personal_id(self):
        check_tax_ids(AccountKind.INDIVIDUAL, "123.456.789-00", None)

    def test_business_with_business_id(self):
        check_tax_ids(AccountKind.BUSINESS, None, "12.345.678/0001-99")

    @pytest.mark.parametrize(
        "kind, personal, business",
        [
            (AccountKind.INDIVIDUAL, None, None),
            (AccountKind.INDIVIDUAL, "  ", None),
            (AccountKind.INDIVIDUAL, "123", "456"),
            (AccountKind.BUSINESS, None, None),
            (AccountKind.BUSINESS, "123", "456"),
            (AccountKind.BUSINESS, "123", None),
        ],
    )
    def test_mismatch_rejected(self, kind, personal, business):
        with pytest.raises(TaxIdRuleError) as exc_info:
            check_tax_ids(kind, personal, business)
        assert exc_info.value.account_kind == kind.value

    def test_normalize_email(self):
        assert normalize_email("  Ana@Mail.COM ") == "ana@mail.com"
        assert normalize_email("") is None
        assert normalize_email(None) is None


class TestDeterministicClock:

    def test_fixed_until_advanced(self):
        start = datetime(2025, 1, 1, tzinfo=timezone.utc)
        clock = DeterministicClock(start)
        assert clock.now() == clock.now() == start
        assert clock.tick() == start + timedelta(seconds=1)
        clock.advance(59)
        assert clock.now() == start + timedelta(minutes=1)

    def test_set_time_resets_offset(self):
        clock = DeterministicClock()
        clock.advance(100)
        target = datetime(2030, 6, 1, tzinfo=timezone.utc)
        clock.set_time(target)
        assert clock.now() == target
        assert clock.today() == target.date()
