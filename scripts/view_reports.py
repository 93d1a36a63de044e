#!/usr/bin/env python3
"""
View the workshop reports from persisted database data.

Connects to the database (assumes tables and data already exist --
run seed_data.py first) and prints all ten reports.

Usage:
    python3 scripts/view_reports.py
    python3 scripts/view_reports.py --work-order 2
"""

import argparse
import logging
import sys
from decimal import Decimal
from enum import Enum
from pathlib import Path

# ---------------------------------------------------------------------------
# Project root on sys.path
# ---------------------------------------------------------------------------
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

W = 72


def _fmt(value) -> str:
    if value is None:
        return "-"
    if isinstance(value, Decimal):
        return f"{value:,.2f}"
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def print_report(title: str, rows: list, columns: list[tuple[str, str, int]]) -> None:
    """Print one report as a fixed-width table of (attribute, header, width) columns."""
    print()
    print("=" * W)
    print(f"  {title}")
    print("=" * W)
    if not rows:
        print("  (no rows)")
        return
    print("  " + " ".join(header.ljust(width) for _, header, width in columns))
    print("  " + " ".join("-" * width for _, _, width in columns))
    for row in rows:
        cells = []
        for attr, _, width in columns:
            value = getattr(row, attr)
            numeric = isinstance(value, Decimal | int) and not isinstance(value, Enum)
            cells.append(_fmt(value).rjust(width) if numeric else _fmt(value).ljust(width))
        print("  " + " ".join(cells))


def main() -> int:
    parser = argparse.ArgumentParser(description="Print the workshop reports")
    parser.add_argument("--db-url", help="Database URL (overrides configuration)")
    parser.add_argument("--config", help="Path to a configuration YAML file")
    parser.add_argument(
        "--work-order", type=int, default=None,
        help="Work order for the line breakdown (default: lowest id)",
    )
    args = parser.parse_args()

    logging.disable(logging.CRITICAL)

    from sqlalchemy import func, select

    from garage_config import get_active_config
    from garage_config.bridges import build_policy
    from garage_kernel.db.engine import get_session, init_engine_from_url
    from garage_kernel.models.work_order import WorkOrder
    from garage_kernel.selectors.report_selector import ReportSelector

    config = get_active_config(args.config)

    # -----------------------------------------------------------------
    # Connect
    # -----------------------------------------------------------------
    try:
        init_engine_from_url(args.db_url or config.database_url, echo=False)
    except Exception as exc:
        print(f"  ERROR: Could not connect: {exc}", file=sys.stderr)
        return 1

    session = get_session()

    try:
        first_id = session.execute(select(func.min(WorkOrder.id))).scalar()
        if first_id is None:
            print("  No work orders found. Run seed_data.py first.", file=sys.stderr)
            return 1

        reports = ReportSelector(session, build_policy(config))
        breakdown_id = args.work_order or first_id

        print_report(
            "1. Work orders per client",
            reports.orders_per_client(),
            [("client_id", "Id", 4), ("name", "Client", 30), ("order_count", "Orders", 8)],
        )
        print_report(
            f"2. Work orders using parts below {config.low_stock_threshold} units",
            reports.work_orders_with_low_stock_parts(),
            [("work_order_id", "WO", 4), ("status", "Status", 12),
             ("client_name", "Client", 30), ("plate", "Plate", 10)],
        )
        print_report(
            "3. Estimated cost per work order",
            reports.estimated_cost_per_work_order(),
            [("work_order_id", "WO", 4), ("client_name", "Client", 30),
             ("estimated_cost", "Cost", 12)],
        )
        print_report(
            "4. Service hours per mechanic",
            reports.mechanic_service_hours(),
            [("mechanic_id", "Id", 4), ("name", "Mechanic", 30), ("total_hours", "Hours", 8)],
        )
        print_report(
            "5. Parts usage ranking",
            reports.parts_usage_ranking(),
            [("part_id", "Id", 4), ("name", "Part", 24),
             ("supplier_name", "Supplier", 20), ("total_used", "Used", 6)],
        )
        print_report(
            f"6. Clients invoiced above {config.top_client_invoiced_threshold}",
            reports.clients_above_invoiced(),
            [("client_id", "Id", 4), ("name", "Client", 28),
             ("total_invoiced", "Invoiced", 12), ("total_paid", "Paid", 12)],
        )
        print_report(
            f"7. Line breakdown of work order {breakdown_id}",
            reports.work_order_breakdown(breakdown_id),
            [("item_id", "Item", 4), ("kind", "Kind", 8), ("description", "Description", 24),
             ("quantity", "Qty", 4), ("hours", "Hours", 6), ("line_total", "Total", 10)],
        )
        print_report(
            "8. Low-stock parts with open demand",
            reports.low_stock_parts_with_demand(),
            [("part_id", "Id", 4), ("name", "Part", 30),
             ("stock_quantity", "Stock", 6), ("orders_waiting", "Orders", 6)],
        )
        print_report(
            "9. Labour revenue per mechanic",
            reports.revenue_per_mechanic(),
            [("mechanic_id", "Id", 4), ("name", "Mechanic", 30), ("revenue", "Revenue", 12)],
        )
        print_report(
            "10. Top clients",
            reports.top_clients(),
            [("client_id", "Id", 4), ("name", "Client", 30),
             ("order_count", "Orders", 6), ("average_order_value", "Average", 12)],
        )
        print()
    finally:
        session.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
