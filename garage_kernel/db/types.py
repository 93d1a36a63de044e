"""
Module: garage_kernel.db.types
Responsibility: Column type constants and utility functions for currency and
    labour columns.  Centralizes precision, rounding, and enum storage so that
    every model and service uses identical type definitions.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, and selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    - round_money() is the ONLY sanctioned rounding function for money.
    - to_decimal() refuses floats: no binary floating point reaches a
      money or hours computation.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum

from sqlalchemy import Enum as SAEnum
from sqlalchemy import Numeric

# Column types for money and labour columns.
# Work order, invoice and payment amounts: DECIMAL(12,2)
MONEY = Numeric(12, 2)

# Mechanic hourly rate and part prices: DECIMAL(10,2)
RATE = Numeric(10, 2)

# Labour hours on a line item: DECIMAL(6,2)
HOURS = Numeric(6, 2)

# Estimated hours on a work order: DECIMAL(5,2)
ESTIMATED_HOURS = Numeric(5, 2)


MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP
ZERO = Decimal("0")


def to_decimal(value: Decimal | int | str) -> Decimal:
    """
    Coerce an input amount to Decimal.

    Accepts Decimal, int, or a numeric string.  Floats are rejected outright
    because their binary representation already carries rounding drift.

    Raises:
        TypeError: If value is a float or another unsupported type.
        ValueError: If a string is not a valid number.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise TypeError(f"Refusing {type(value).__name__} for a decimal amount: {value!r}")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, str):
        try:
            return Decimal(value.strip())
        except InvalidOperation as exc:
            raise ValueError(f"Not a decimal amount: {value!r}") from exc
    raise TypeError(f"Unsupported amount type: {type(value).__name__}")


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to specified decimal places.

    This is the ONLY sanctioned rounding function for currency values in the
    entire system.

    Args:
        value: The Decimal value to round.
        decimal_places: Number of decimal places to round to.
        rounding: Rounding mode (default: ROUND_HALF_UP).

    Returns:
        Rounded Decimal value.
    """
    quantize_str = "0." + "0" * decimal_places if decimal_places else "0"
    return value.quantize(Decimal(quantize_str), rounding=rounding)


def enum_column(enum_cls: type[Enum], length: int = 20) -> SAEnum:
    """
    Column type storing a str-Enum by value in a VARCHAR.

    native_enum=False keeps the schema portable (no CREATE TYPE on
    PostgreSQL); create_constraint adds an unnamed CHECK listing the allowed
    values, so one enum can back several columns of the same table.
    """
    return SAEnum(
        enum_cls,
        native_enum=False,
        create_constraint=True,
        length=length,
        validate_strings=True,
        values_callable=lambda members: [m.value for m in members],
    )
