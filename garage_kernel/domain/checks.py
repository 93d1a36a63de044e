"""
Field checks shared by the write-side services.

Each check either returns the normalized value or raises the matching
ValidationError subclass naming the entity and field.  They replace the
table-level CHECK constraints as the first line of defence, so a rejected
write never reaches the database.
"""

from decimal import Decimal

from garage_kernel.db.types import ZERO, to_decimal
from garage_kernel.exceptions import (
    NegativeValueError,
    NonPositiveValueError,
    RequiredFieldError,
)


def require_text(entity: str, field: str, value: str | None) -> str:
    """Return ``value`` stripped; blank or None raises RequiredFieldError."""
    if value is None or not value.strip():
        raise RequiredFieldError(entity, field)
    return value.strip()


def optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def non_negative(entity: str, field: str, value: Decimal | int | str) -> Decimal:
    amount = to_decimal(value)
    if amount < ZERO:
        raise NegativeValueError(entity, field, str(amount))
    return amount


def positive(entity: str, field: str, value: Decimal | int | str) -> Decimal:
    amount = to_decimal(value)
    if amount <= ZERO:
        raise NonPositiveValueError(entity, field, str(amount))
    return amount


def positive_int(entity: str, field: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{entity}.{field} must be an int, got {type(value).__name__}")
    if value <= 0:
        raise NonPositiveValueError(entity, field, str(value))
    return value


def non_negative_int(entity: str, field: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{entity}.{field} must be an int, got {type(value).__name__}")
    if value < 0:
        raise NegativeValueError(entity, field, str(value))
    return value
