"""
Garage Kernel - workshop operations core

A relational model for an auto-repair shop with:
- Clients, vehicles, mechanics, suppliers and parts as reference data
- A single-quantity-per-part inventory ledger
- Work orders whose totals are always derived from their line items
- An explicit, auditable work order status machine
- Invoices snapshotted from work orders, with payments recorded against them
- Read-only reporting over all of the above
"""

__version__ = "0.1.0"
