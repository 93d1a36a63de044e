"""
Configuration schema (``garage_config.schema``).

``ShopConfig`` is the validated, frozen result of loading a configuration
set.  Parsing lives in ``loader.py``; turning a ShopConfig into the
kernel's WorkshopPolicy lives in ``bridges.py``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal


class ConfigValidationError(ValueError):
    """A configuration value is missing, mistyped or out of range."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(
            "Configuration validation failed:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


@dataclass(frozen=True)
class ShopConfig:
    """Runtime configuration of one workshop installation."""

    config_id: str
    database_url: str = "sqlite:///garage.db"
    low_stock_threshold: int = 5
    top_client_invoiced_threshold: Decimal = Decimal("200.00")
    top_clients_limit: int = 3
    invoice_due_days: int = 7
    enforce_stock_on_part_items: bool = True
    enforce_vehicle_ownership: bool = True
    forbidden_transitions: tuple[tuple[str, str], ...] = field(default_factory=tuple)
    max_transition_retries: int = 3
    source_path: str | None = None
