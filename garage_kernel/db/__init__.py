"""Database layer - engine, base classes, and column types."""

from garage_kernel.db.base import Base, TrackedBase
from garage_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    run_with_retry,
    session_scope,
)
from garage_kernel.db.types import HOURS, MONEY, RATE, round_money, to_decimal

__all__ = [
    "get_engine",
    "get_session",
    "create_tables",
    "session_scope",
    "run_with_retry",
    "Base",
    "TrackedBase",
    "MONEY",
    "RATE",
    "HOURS",
    "round_money",
    "to_decimal",
]
