"""
Typed Exception Hierarchy for the Garage Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the kernel (scripts, an eventual API layer, tests) must be able to
tell a rejected input from a missing foreign key from a uniqueness clash
without parsing message strings.  Every exception here:

  1. Has a TYPED class (catch by type, not message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured DATA naming the offending entity and field

Example:
    try:
        clients.create_client(AccountKind.INDIVIDUAL, "Ana", email="a@x.com")
    except DuplicateEmailError as e:
        api_response(code=e.code, field="email", value=e.email)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from GarageKernelError:

    GarageKernelError (base)
    |
    +-- ValidationError
    |   +-- RequiredFieldError
    |   +-- NegativeValueError
    |   +-- NonPositiveValueError
    |   +-- TaxIdRuleError
    |   +-- MissingMechanicError
    |   +-- MissingPartError
    |   +-- InsufficientStockError
    |   +-- NegativeStockError
    |   +-- InvalidPaymentAmountError
    |   +-- InvoiceNotSettledError
    |   +-- StatusTransitionError
    |
    +-- ReferenceIntegrityError
    |   +-- EntityNotFoundError
    |   +-- VehicleOwnershipError
    |   +-- EntityInUseError
    |
    +-- ConflictError
    |   +-- DuplicateEmailError
    |   +-- DuplicateSkuError
    |   +-- InvoiceAlreadyIssuedError
    |   +-- InventoryRecordExistsError
    |
    +-- ConcurrencyError
        +-- OptimisticLockError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                      | When Raised
-------------|---------------------------|-------------------------------------------
Validation   | REQUIRED_FIELD            | Blank name / plate / description
             | NEGATIVE_VALUE            | Price, rate, hours or stock below zero
             | NON_POSITIVE_VALUE        | Item quantity <= 0
             | TAX_ID_RULE               | Account kind / tax id mismatch
             | MISSING_MECHANIC          | Service line without mechanic
             | MISSING_PART              | Part line without part
             | INSUFFICIENT_STOCK        | Part line exceeds on-hand quantity
             | NEGATIVE_STOCK            | Adjustment would go below zero
             | INVALID_PAYMENT_AMOUNT    | Payment amount <= 0
             | INVOICE_NOT_SETTLED       | mark_paid before payments cover total
             | STATUS_TRANSITION         | Transition forbidden by policy
-------------|---------------------------|-------------------------------------------
Reference    | ENTITY_NOT_FOUND          | Foreign key target missing
             | VEHICLE_OWNERSHIP         | Vehicle belongs to another client
             | ENTITY_IN_USE             | Delete blocked by referencing rows
-------------|---------------------------|-------------------------------------------
Conflict     | DUPLICATE_EMAIL           | Client email already used
             | DUPLICATE_SKU             | Part SKU already used
             | INVOICE_ALREADY_ISSUED    | Second invoice for a work order
             | INVENTORY_RECORD_EXISTS   | Second stock record for a part
-------------|---------------------------|-------------------------------------------
Concurrency  | OPTIMISTIC_LOCK_CONFLICT  | Work order version moved underneath us

None of these are retried automatically except OptimisticLockError, and only
when the caller opts in through ``garage_kernel.db.engine.run_with_retry``.
"""


class GarageKernelError(Exception):
    """
    Base exception for all garage kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "GARAGE_KERNEL_ERROR"


# Validation exceptions


class ValidationError(GarageKernelError):
    """A field value violates a domain constraint."""

    code: str = "VALIDATION_ERROR"


class RequiredFieldError(ValidationError):
    """A required text field is missing or blank."""

    code: str = "REQUIRED_FIELD"

    def __init__(self, entity: str, field: str):
        self.entity = entity
        self.field = field
        super().__init__(f"{entity}.{field} is required")


class NegativeValueError(ValidationError):
    """A value that must be >= 0 is negative."""

    code: str = "NEGATIVE_VALUE"

    def __init__(self, entity: str, field: str, value: str):
        self.entity = entity
        self.field = field
        self.value = value
        super().__init__(f"{entity}.{field} must be >= 0, got {value}")


class NonPositiveValueError(ValidationError):
    """A value that must be > 0 is zero or negative."""

    code: str = "NON_POSITIVE_VALUE"

    def __init__(self, entity: str, field: str, value: str):
        self.entity = entity
        self.field = field
        self.value = value
        super().__init__(f"{entity}.{field} must be > 0, got {value}")


class TaxIdRuleError(ValidationError):
    """
    Account kind and tax ids disagree.

    Individual clients carry a personal tax id and no business tax id;
    business clients carry the reverse.
    """

    code: str = "TAX_ID_RULE"

    def __init__(self, account_kind: str, reason: str):
        self.account_kind = account_kind
        self.reason = reason
        super().__init__(f"Invalid tax ids for {account_kind} client: {reason}")


class MissingMechanicError(ValidationError):
    """A Service line item was submitted without a mechanic."""

    code: str = "MISSING_MECHANIC"

    def __init__(self, work_order_id: int):
        self.work_order_id = work_order_id
        super().__init__(
            f"Service item on work order {work_order_id} requires a mechanic_id"
        )


class MissingPartError(ValidationError):
    """A Part line item was submitted without a part."""

    code: str = "MISSING_PART"

    def __init__(self, work_order_id: int):
        self.work_order_id = work_order_id
        super().__init__(
            f"Part item on work order {work_order_id} requires a part_id"
        )


class InsufficientStockError(ValidationError):
    """A Part line item asks for more units than are on hand."""

    code: str = "INSUFFICIENT_STOCK"

    def __init__(self, part_id: int, requested: int, available: int):
        self.part_id = part_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Part {part_id}: requested {requested}, only {available} in stock"
        )


class NegativeStockError(ValidationError):
    """An inventory adjustment would drive the quantity below zero."""

    code: str = "NEGATIVE_STOCK"

    def __init__(self, part_id: int, current: int, delta: int):
        self.part_id = part_id
        self.current = current
        self.delta = delta
        super().__init__(
            f"Adjusting part {part_id} by {delta} would leave "
            f"{current + delta} units (current {current})"
        )


class InvalidPaymentAmountError(ValidationError):
    """Payment amount is zero or negative."""

    code: str = "INVALID_PAYMENT_AMOUNT"

    def __init__(self, invoice_id: int, amount: str):
        self.invoice_id = invoice_id
        self.amount = amount
        super().__init__(
            f"Payment on invoice {invoice_id} must be > 0, got {amount}"
        )


class InvoiceNotSettledError(ValidationError):
    """An invoice was marked paid before its payments covered the total."""

    code: str = "INVOICE_NOT_SETTLED"

    def __init__(self, invoice_id: int, total_amount: str, amount_paid: str):
        self.invoice_id = invoice_id
        self.total_amount = total_amount
        self.amount_paid = amount_paid
        super().__init__(
            f"Invoice {invoice_id} total {total_amount} not covered "
            f"by payments {amount_paid}"
        )


class StatusTransitionError(ValidationError):
    """The configured status machine forbids this work order transition."""

    code: str = "STATUS_TRANSITION"

    def __init__(self, work_order_id: int, from_status: str, to_status: str):
        self.work_order_id = work_order_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Work order {work_order_id} cannot move "
            f"from {from_status} to {to_status}"
        )


# Reference exceptions


class ReferenceIntegrityError(GarageKernelError):
    """A foreign key target is missing or two references disagree."""

    code: str = "REFERENCE_ERROR"


class EntityNotFoundError(ReferenceIntegrityError):
    """Referenced entity does not exist."""

    code: str = "ENTITY_NOT_FOUND"

    def __init__(self, entity: str, entity_id: int | str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class VehicleOwnershipError(ReferenceIntegrityError):
    """The vehicle on a work order or appointment belongs to another client."""

    code: str = "VEHICLE_OWNERSHIP"

    def __init__(self, vehicle_id: int, client_id: int, owner_id: int):
        self.vehicle_id = vehicle_id
        self.client_id = client_id
        self.owner_id = owner_id
        super().__init__(
            f"Vehicle {vehicle_id} belongs to client {owner_id}, not {client_id}"
        )


class EntityInUseError(ReferenceIntegrityError):
    """Delete refused because other rows still reference the entity."""

    code: str = "ENTITY_IN_USE"

    def __init__(self, entity: str, entity_id: int, referenced_by: str):
        self.entity = entity
        self.entity_id = entity_id
        self.referenced_by = referenced_by
        super().__init__(
            f"{entity} {entity_id} is still referenced by {referenced_by}"
        )


# Conflict exceptions


class ConflictError(GarageKernelError):
    """A uniqueness rule would be broken."""

    code: str = "CONFLICT_ERROR"


class DuplicateEmailError(ConflictError):
    """Client email already in use."""

    code: str = "DUPLICATE_EMAIL"

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Email already in use: {email}")


class DuplicateSkuError(ConflictError):
    """Part SKU already in use."""

    code: str = "DUPLICATE_SKU"

    def __init__(self, sku: str):
        self.sku = sku
        super().__init__(f"SKU already in use: {sku}")


class InvoiceAlreadyIssuedError(ConflictError):
    """An invoice already exists for the work order."""

    code: str = "INVOICE_ALREADY_ISSUED"

    def __init__(self, work_order_id: int, invoice_id: int):
        self.work_order_id = work_order_id
        self.invoice_id = invoice_id
        super().__init__(
            f"Work order {work_order_id} already invoiced as {invoice_id}"
        )


class InventoryRecordExistsError(ConflictError):
    """A part already has its inventory record."""

    code: str = "INVENTORY_RECORD_EXISTS"

    def __init__(self, part_id: int):
        self.part_id = part_id
        super().__init__(f"Inventory record already exists for part {part_id}")


# Concurrency exceptions


class ConcurrencyError(GarageKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class OptimisticLockError(ConcurrencyError):
    """Optimistic locking conflict detected."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id: int | str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            "entity was modified by another transaction"
        )
