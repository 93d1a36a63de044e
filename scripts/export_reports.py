#!/usr/bin/env python3
"""
Export all workshop reports to an Excel workbook.

Usage:
    python3 scripts/export_reports.py reports.xlsx
    python3 scripts/export_reports.py reports.xlsx --work-order 1
"""

import argparse
import logging
import sys
from pathlib import Path

# ---------------------------------------------------------------------------
# Project root on sys.path
# ---------------------------------------------------------------------------
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def main() -> int:
    parser = argparse.ArgumentParser(description="Export the workshop reports to .xlsx")
    parser.add_argument("output", type=Path, help="Destination .xlsx file")
    parser.add_argument("--db-url", help="Database URL (overrides configuration)")
    parser.add_argument("--config", help="Path to a configuration YAML file")
    parser.add_argument("--work-order", type=int, default=None,
                        help="Also export the line breakdown of this work order")
    args = parser.parse_args()

    logging.disable(logging.CRITICAL)

    from garage_config import get_active_config
    from garage_config.bridges import build_policy
    from garage_kernel.db.engine import get_session, init_engine_from_url
    from garage_kernel.selectors.report_export import export_reports_xlsx
    from garage_kernel.selectors.report_selector import ReportSelector

    config = get_active_config(args.config)
    try:
        init_engine_from_url(args.db_url or config.database_url, echo=False)
    except Exception as exc:
        print(f"  ERROR: Could not connect: {exc}", file=sys.stderr)
        return 1

    session = get_session()
    try:
        selector = ReportSelector(session, build_policy(config))
        path = export_reports_xlsx(selector, args.output, args.work_order)
    finally:
        session.close()

    print(f"  Wrote {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
