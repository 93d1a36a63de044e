"""
WorkshopPolicy -- the kernel-side view of shop configuration.

The kernel never reads YAML or environment variables.  ``garage_config``
compiles its ``ShopConfig`` into this frozen value (see
``garage_config.bridges``) and services receive it by injection.  The
defaults reproduce the reference behaviour of the shop.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from garage_kernel.domain.status_machine import PERMISSIVE, StatusMachine


@dataclass(frozen=True)
class WorkshopPolicy:
    """Business rules that are deliberately configurable."""

    # Inventory quantity strictly below this counts as low stock
    low_stock_threshold: int = 5

    # Clients whose invoiced total exceeds this are "top spenders"
    invoiced_threshold: Decimal = Decimal("200.00")

    top_clients_limit: int = 3

    # Invoice due date = issue date + this many days
    invoice_due_days: int = 7

    # Reject Part items asking for more units than are on hand
    enforce_stock_on_part_items: bool = True

    # Reject work orders / appointments whose vehicle belongs to another client
    enforce_vehicle_ownership: bool = True

    status_machine: StatusMachine = field(default_factory=lambda: PERMISSIVE)

    max_transition_retries: int = 3


DEFAULT_POLICY = WorkshopPolicy()
