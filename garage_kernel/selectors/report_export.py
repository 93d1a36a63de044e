"""
Export of the workshop reports to an .xlsx workbook.

One worksheet per report, a header row named after the dataclass fields,
then one row per report row.  Decimals are written as numbers, enums by
value.
"""

from dataclasses import fields
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any

from garage_kernel.logging_config import get_logger
from garage_kernel.selectors.report_selector import ReportSelector

logger = get_logger("selectors.report_export")


def collect_reports(
    selector: ReportSelector,
    breakdown_work_order_id: int | None = None,
) -> dict[str, list]:
    """Run every report and return them keyed by sheet title, in report order."""
    reports: dict[str, list] = {
        "orders_per_client": selector.orders_per_client(),
        "low_stock_work_orders": selector.work_orders_with_low_stock_parts(),
        "cost_per_work_order": selector.estimated_cost_per_work_order(),
        "mechanic_hours": selector.mechanic_service_hours(),
        "parts_usage": selector.parts_usage_ranking(),
        "clients_above_invoiced": selector.clients_above_invoiced(),
    }
    if breakdown_work_order_id is not None:
        reports["work_order_breakdown"] = selector.work_order_breakdown(breakdown_work_order_id)
    reports["low_stock_demand"] = selector.low_stock_parts_with_demand()
    reports["revenue_per_mechanic"] = selector.revenue_per_mechanic()
    reports["top_clients"] = selector.top_clients()
    return reports


def _cell(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, Enum):
        return value.value
    return value


def export_reports_xlsx(
    selector: ReportSelector,
    path: str | Path,
    breakdown_work_order_id: int | None = None,
) -> Path:
    """
    Write every report to ``path`` and return it.

    Args:
        selector: ReportSelector bound to the session to read from.
        path: Destination .xlsx file (overwritten).
        breakdown_work_order_id: Work order whose line breakdown gets its
            own sheet; omitted when None.
    """
    import openpyxl

    path = Path(path)
    reports = collect_reports(selector, breakdown_work_order_id)

    wb = openpyxl.Workbook()
    wb.remove(wb.active)
    for title, rows in reports.items():
        sheet = wb.create_sheet(title=title[:31])
        if rows:
            headers = [f.name for f in fields(rows[0])]
            sheet.append(headers)
            for row in rows:
                sheet.append([_cell(getattr(row, h)) for h in headers])
    wb.save(path)

    logger.info(
        "reports_exported",
        extra={"path": str(path), "sheets": len(reports)},
    )
    return path
