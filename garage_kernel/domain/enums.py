"""
Enumerations shared by the pure domain layer and the ORM models.

Values are the strings persisted in the database, matching the ENUM columns
of the workshop schema.
"""

from enum import Enum


class AccountKind(str, Enum):
    """Client account kind: a person or a company."""

    INDIVIDUAL = "INDIVIDUAL"
    BUSINESS = "BUSINESS"


class WorkOrderStatus(str, Enum):
    """Lifecycle status of a work order."""

    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    WAITING_PARTS = "WAITING_PARTS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ItemKind(str, Enum):
    """Line item kind: labour or a replaced component."""

    SERVICE = "SERVICE"
    PART = "PART"


class AppointmentStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    ATTENDED = "ATTENDED"
    NO_SHOW = "NO_SHOW"
    CANCELLED = "CANCELLED"


class PaymentMethod(str, Enum):
    CASH = "CASH"
    CARD = "CARD"
    PIX = "PIX"
    TRANSFER = "TRANSFER"
