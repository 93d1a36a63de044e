"""Write-side services.  Each flushes inside the caller's transaction."""

from garage_kernel.services.appointment_service import AppointmentInfo, AppointmentService
from garage_kernel.services.billing_service import BillingService, InvoiceInfo, PaymentInfo
from garage_kernel.services.catalog_service import (
    CatalogService,
    MechanicInfo,
    PartInfo,
    SupplierInfo,
)
from garage_kernel.services.client_service import ClientInfo, ClientService, VehicleInfo
from garage_kernel.services.inventory_service import InventoryInfo, InventoryLedger
from garage_kernel.services.work_order_service import (
    LineItemSpec,
    StatusLogInfo,
    WorkOrderInfo,
    WorkOrderItemInfo,
    WorkOrderService,
    transition_with_retry,
)

__all__ = [
    "AppointmentInfo",
    "AppointmentService",
    "BillingService",
    "CatalogService",
    "ClientInfo",
    "ClientService",
    "InventoryInfo",
    "InventoryLedger",
    "InvoiceInfo",
    "LineItemSpec",
    "MechanicInfo",
    "PartInfo",
    "PaymentInfo",
    "StatusLogInfo",
    "SupplierInfo",
    "VehicleInfo",
    "WorkOrderInfo",
    "WorkOrderItemInfo",
    "WorkOrderService",
    "transition_with_retry",
]
