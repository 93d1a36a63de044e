#!/usr/bin/env python3
"""
Seed the workshop database with the bootstrap dataset.

Drops and recreates every table, then loads the fixed demo workshop
(suppliers, parts with stock, mechanics, clients, vehicles, three work
orders, their invoices and one payment) in a single transaction.

The database comes from the active configuration (GARAGE_CONFIG /
GARAGE_DATABASE_URL) unless --db-url is given.

Usage:
    python3 scripts/seed_data.py
    python3 scripts/seed_data.py --db-url sqlite:///demo.db
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
    parser = argparse.ArgumentParser(description="Seed the workshop database")
    parser.add_argument("--db-url", help="Database URL (overrides configuration)")
    parser.add_argument("--config", help="Path to a configuration YAML file")
    parser.add_argument("--verbose", action="store_true", help="Show kernel logs")
    args = parser.parse_args()

    if not args.verbose:
        logging.disable(logging.CRITICAL)

    from garage_config import get_active_config
    from garage_config.bridges import build_policy
    from garage_kernel.db.engine import (
        create_tables,
        drop_tables,
        init_engine_from_url,
        session_scope,
    )
    from garage_kernel.domain.clock import SystemClock
    from garage_kernel.seed import load_seed_data

    print()
    print("  [1/4] Loading configuration...")
    config = get_active_config(args.config)
    db_url = args.db_url or config.database_url
    policy = build_policy(config)

    print(f"  [2/4] Connecting to {db_url} ...")
    try:
        init_engine_from_url(db_url, echo=False)
    except Exception as exc:
        print(f"  ERROR: Could not connect: {exc}", file=sys.stderr)
        return 1

    print("  [3/4] Recreating tables...")
    drop_tables()
    create_tables()

    print("  [4/4] Loading seed data...")
    with session_scope() as session:
        ids = load_seed_data(session, SystemClock(), policy)

    print()
    print(f"  Suppliers:   {len(ids.suppliers)}")
    print(f"  Parts:       {len(ids.parts)}")
    print(f"  Mechanics:   {len(ids.mechanics)}")
    print(f"  Clients:     {len(ids.clients)}")
    print(f"  Vehicles:    {len(ids.vehicles)}")
    print(f"  Work orders: {len(ids.work_orders)}")
    print(f"  Invoices:    {len(ids.invoices)}")
    print(f"  Payments:    {len(ids.payments)}")
    print()
    print("  Done. Run scripts/view_reports.py to see the reports.")
    print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
