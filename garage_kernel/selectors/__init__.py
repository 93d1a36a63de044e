"""Read-only selectors."""

from garage_kernel.selectors.report_selector import (
    ClientInvoicing,
    ClientOrderCount,
    LowStockDemand,
    LowStockWorkOrder,
    MechanicHours,
    MechanicRevenue,
    PartUsage,
    ReportSelector,
    TopClient,
    WorkOrderCost,
    WorkOrderLine,
)

__all__ = [
    "ClientInvoicing",
    "ClientOrderCount",
    "LowStockDemand",
    "LowStockWorkOrder",
    "MechanicHours",
    "MechanicRevenue",
    "PartUsage",
    "ReportSelector",
    "TopClient",
    "WorkOrderCost",
    "WorkOrderLine",
]
