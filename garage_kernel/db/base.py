"""
Module: garage_kernel.db.base
Responsibility: Declarative roots of the workshop schema.  Every table gets
    an integer surrogate id; TrackedBase adds created_at / updated_at.
Architecture position: Kernel > DB.  Imported by every model module;
    imports nothing from the rest of the kernel.

Invariants enforced:
    - Ids grow in insertion order.  Reports use them to break ties.
    - Money columns are fixed-point Numeric, never float.
    - Timestamps are stored and returned as timezone-aware UTC on every
      backend (SQLite keeps no offset, so UTCDateTime re-attaches it).
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import ClassVar

from sqlalchemy import BigInteger, Date, DateTime, Integer, Numeric, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

# SQLite only auto-increments a column declared exactly INTEGER PRIMARY KEY.
Identifier = BigInteger().with_variant(Integer(), "sqlite")


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware timestamp normalised to UTC.

    Guarantees:
        - process_bind_param: aware values are converted to UTC; naive
          values are taken to already be UTC.
        - process_result_value: values read back without an offset (SQLite,
          server-side CURRENT_TIMESTAMP) get tzinfo=UTC, so a row read from
          the database compares equal to the value that was written.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return _as_utc(value)

    def process_result_value(self, value, dialect):
        return _as_utc(value)


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Base(DeclarativeBase):
    """Root of all workshop tables; contributes the ``id`` primary key."""

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(12, 2),
        datetime: UTCDateTime(),
        date: Date(),
        int: Identifier,
    }

    id: Mapped[int] = mapped_column(
        Identifier,
        primary_key=True,
        autoincrement=True,
    )


class TrackedBase(Base):
    """
    Tables that record when a row was created and last changed.

    The work order service stamps them from its Clock; other rows take
    the server defaults.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
