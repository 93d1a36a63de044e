"""Pure domain layer: enums, costing rule, status machine, policy, clock."""

from garage_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from garage_kernel.domain.costing import CostLine, line_subtotal, order_total
from garage_kernel.domain.enums import (
    AccountKind,
    AppointmentStatus,
    ItemKind,
    PaymentMethod,
    WorkOrderStatus,
)
from garage_kernel.domain.policy import DEFAULT_POLICY, WorkshopPolicy
from garage_kernel.domain.status_machine import PERMISSIVE, StatusMachine

__all__ = [
    "AccountKind",
    "AppointmentStatus",
    "Clock",
    "CostLine",
    "DEFAULT_POLICY",
    "DeterministicClock",
    "ItemKind",
    "PERMISSIVE",
    "PaymentMethod",
    "StatusMachine",
    "SystemClock",
    "WorkOrderStatus",
    "WorkshopPolicy",
    "line_subtotal",
    "order_total",
]
