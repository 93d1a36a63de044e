"""ORM models.  Importing this package registers every table on Base.metadata."""

from garage_kernel.models.appointment import Appointment
from garage_kernel.models.billing import Invoice, Payment
from garage_kernel.models.catalog import InventoryRecord, Part, Supplier
from garage_kernel.models.client import Client, Vehicle
from garage_kernel.models.mechanic import Mechanic
from garage_kernel.models.work_order import StatusLogEntry, WorkOrder, WorkOrderItem

__all__ = [
    "Appointment",
    "Client",
    "InventoryRecord",
    "Invoice",
    "Mechanic",
    "Part",
    "Payment",
    "StatusLogEntry",
    "Supplier",
    "Vehicle",
    "WorkOrder",
    "WorkOrderItem",
]
