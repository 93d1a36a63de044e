"""
Config -> Kernel Bridges.

Functions that convert a ShopConfig into kernel inputs.  They live in
garage_config (the producer) because the kernel must NEVER import
garage_config.

Usage:
    from garage_config import get_active_config
    from garage_config.bridges import build_policy

    config = get_active_config()
    policy = build_policy(config)
    WorkOrderService(session, clock, policy)
"""

from __future__ import annotations

from garage_config.schema import ShopConfig
from garage_kernel.domain.policy import WorkshopPolicy
from garage_kernel.domain.status_machine import StatusMachine


def build_status_machine(config: ShopConfig) -> StatusMachine:
    """The work order status machine with the configured moves forbidden."""
    return StatusMachine.from_pairs(config.forbidden_transitions)


def build_policy(config: ShopConfig) -> WorkshopPolicy:
    """Translate a ShopConfig into the WorkshopPolicy services receive."""
    return WorkshopPolicy(
        low_stock_threshold=config.low_stock_threshold,
        invoiced_threshold=config.top_client_invoiced_threshold,
        top_clients_limit=config.top_clients_limit,
        invoice_due_days=config.invoice_due_days,
        enforce_stock_on_part_items=config.enforce_stock_on_part_items,
        enforce_vehicle_ownership=config.enforce_vehicle_ownership,
        status_machine=build_status_machine(config),
        max_transition_retries=config.max_transition_retries,
    )
