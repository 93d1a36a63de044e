"""
garage_kernel.services.client_service -- Clients and their vehicles.

Responsibility:
    Create, read, update and delete clients; register and update vehicles
    against them.  Every rule the clients/vehicles tables declare (tax id
    exclusivity, unique email, vehicle owner must exist) is checked here
    before the write is flushed.

Architecture position:
    Kernel > Services.  May import from domain/, models/, db/.

Invariants enforced:
    - Exactly one tax id per client, matching its account kind.
    - Email unique when present (compared after trim + lower-case).
    - delete_client removes the client's vehicles and, through them,
      every work order, item, invoice, payment, status log and appointment.

Failure modes:
    - TaxIdRuleError, RequiredFieldError on invalid input.
    - DuplicateEmailError when the email is taken by another client.
    - EntityNotFoundError for an unknown client or vehicle id.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import select

from garage_kernel.domain.checks import optional_text, require_text
from garage_kernel.domain.client_rules import check_tax_ids, normalize_email
from garage_kernel.domain.enums import AccountKind
from garage_kernel.exceptions import DuplicateEmailError
from garage_kernel.logging_config import get_logger
from garage_kernel.models.client import Client, Vehicle
from garage_kernel.services.base import BaseService

logger = get_logger("services.client")

# Marks an update_* argument the caller did not pass.
_UNSET: Any = object()


@dataclass(frozen=True)
class ClientInfo:
    """Immutable view of a client."""

    id: int
    account_kind: AccountKind
    name: str
    email: str | None
    phone: str | None
    personal_tax_id: str | None
    business_tax_id: str | None

    @property
    def tax_id(self) -> str | None:
        if self.account_kind == AccountKind.BUSINESS:
            return self.business_tax_id
        return self.personal_tax_id


@dataclass(frozen=True)
class VehicleInfo:
    """Immutable view of a vehicle."""

    id: int
    client_id: int
    plate: str
    vin: str | None
    brand: str | None
    model: str | None
    year: int | None
    color: str | None


class ClientService(BaseService[Client]):
    """
    Service for clients and vehicles.

    All public methods return ClientInfo / VehicleInfo DTOs, not ORM rows.
    """

    def _to_dto(self, client: Client) -> ClientInfo:
        return ClientInfo(
            id=client.id,
            account_kind=client.account_kind,
            name=client.name,
            email=client.email,
            phone=client.phone,
            personal_tax_id=client.personal_tax_id,
            business_tax_id=client.business_tax_id,
        )

    def _vehicle_dto(self, vehicle: Vehicle) -> VehicleInfo:
        return VehicleInfo(
            id=vehicle.id,
            client_id=vehicle.client_id,
            plate=vehicle.plate,
            vin=vehicle.vin,
            brand=vehicle.brand,
            model=vehicle.model,
            year=vehicle.year,
            color=vehicle.color,
        )

    def _check_email_free(self, email: str | None, client_id: int | None = None) -> None:
        if email is None:
            return
        stmt = select(Client.id).where(Client.email == email)
        if client_id is not None:
            stmt = stmt.where(Client.id != client_id)
        if self.session.execute(stmt).first() is not None:
            raise DuplicateEmailError(email)

    # ------------------------------------------------------------------
    # Clients
    # ------------------------------------------------------------------

    def create_client(
        self,
        account_kind: AccountKind,
        name: str,
        email: str | None = None,
        phone: str | None = None,
        personal_tax_id: str | None = None,
        business_tax_id: str | None = None,
    ) -> ClientInfo:
        """
        Register a client.

        Args:
            account_kind: INDIVIDUAL or BUSINESS.
            name: Display name (required).
            email: Optional, unique across clients.
            phone: Optional.
            personal_tax_id: Required for INDIVIDUAL, forbidden for BUSINESS.
            business_tax_id: Required for BUSINESS, forbidden for INDIVIDUAL.

        Returns:
            Created ClientInfo DTO.

        Raises:
            RequiredFieldError: Blank name.
            TaxIdRuleError: Tax ids do not match the account kind.
            DuplicateEmailError: Email already used by another client.
        """
        account_kind = AccountKind(account_kind)
        name = require_text("Client", "name", name)
        personal_tax_id = optional_text(personal_tax_id)
        business_tax_id = optional_text(business_tax_id)
        check_tax_ids(account_kind, personal_tax_id, business_tax_id)
        email = normalize_email(email)
        self._check_email_free(email)

        client = Client(
            account_kind=account_kind,
            name=name,
            email=email,
            phone=optional_text(phone),
            personal_tax_id=personal_tax_id,
            business_tax_id=business_tax_id,
        )
        self.session.add(client)
        self.session.flush()

        logger.info(
            "client_created",
            extra={
                "client_id": client.id,
                "account_kind": account_kind.value,
            },
        )
        return self._to_dto(client)

    def update_client(
        self,
        client_id: int,
        *,
        name: str | None = _UNSET,
        email: str | None = _UNSET,
        phone: str | None = _UNSET,
        account_kind: AccountKind = _UNSET,
        personal_tax_id: str | None = _UNSET,
        business_tax_id: str | None = _UNSET,
    ) -> ClientInfo:
        """
        Update a client.  Arguments not passed are left unchanged; passing
        None clears an optional field.

        The tax id rule and email uniqueness are re-checked against the
        merged record, so switching account kind requires supplying the
        new tax id and clearing the old one in the same call.
        """
        client = self._require(Client, client_id)

        new_kind = client.account_kind if account_kind is _UNSET else AccountKind(account_kind)
        new_personal = (
            client.personal_tax_id if personal_tax_id is _UNSET else optional_text(personal_tax_id)
        )
        new_business = (
            client.business_tax_id if business_tax_id is _UNSET else optional_text(business_tax_id)
        )
        check_tax_ids(new_kind, new_personal, new_business)

        changed: list[str] = []
        if name is not _UNSET:
            client.name = require_text("Client", "name", name)
            changed.append("name")
        if email is not _UNSET:
            new_email = normalize_email(email)
            self._check_email_free(new_email, client_id=client.id)
            client.email = new_email
            changed.append("email")
        if phone is not _UNSET:
            client.phone = optional_text(phone)
            changed.append("phone")
        if account_kind is not _UNSET:
            changed.append("account_kind")
        if personal_tax_id is not _UNSET:
            changed.append("personal_tax_id")
        if business_tax_id is not _UNSET:
            changed.append("business_tax_id")

        client.account_kind = new_kind
        client.personal_tax_id = new_personal
        client.business_tax_id = new_business
        self.session.flush()

        logger.info(
            "client_updated",
            extra={"client_id": client.id, "fields": changed},
        )
        return self._to_dto(client)

    def get_client(self, client_id: int) -> ClientInfo:
        """
        Raises:
            EntityNotFoundError: If the client doesn't exist.
        """
        return self._to_dto(self._require(Client, client_id))

    def find_by_email(self, email: str) -> ClientInfo | None:
        normalized = normalize_email(email)
        if normalized is None:
            return None
        client = self.session.execute(
            select(Client).where(Client.email == normalized)
        ).scalar_one_or_none()
        return self._to_dto(client) if client else None

    def list_clients(self) -> list[ClientInfo]:
        """All clients in insertion order."""
        clients = self.session.execute(select(Client).order_by(Client.id)).scalars().all()
        return [self._to_dto(c) for c in clients]

    def delete_client(self, client_id: int) -> None:
        """
        Delete a client and everything it owns.

        Vehicles, work orders (items, invoice, payments, status logs) and
        appointments go with it in the caller's transaction.
        """
        client = self._require(Client, client_id)
        vehicle_count = len(client.vehicles)
        work_order_count = len(client.work_orders)
        self.session.delete(client)
        self._flush("Client", client_id)

        logger.info(
            "client_deleted",
            extra={
                "client_id": client_id,
                "vehicles_removed": vehicle_count,
                "work_orders_removed": work_order_count,
            },
        )

    # ------------------------------------------------------------------
    # Vehicles
    # ------------------------------------------------------------------

    def create_vehicle(
        self,
        client_id: int,
        plate: str,
        vin: str | None = None,
        brand: str | None = None,
        model: str | None = None,
        year: int | None = None,
        color: str | None = None,
    ) -> VehicleInfo:
        """
        Register a vehicle owned by ``client_id``.

        Raises:
            EntityNotFoundError: If the client doesn't exist.
            RequiredFieldError: Blank plate.
        """
        client = self._require(Client, client_id)
        plate = require_text("Vehicle", "plate", plate)

        vehicle = Vehicle(
            plate=plate,
            vin=optional_text(vin),
            brand=optional_text(brand),
            model=optional_text(model),
            year=year,
            color=optional_text(color),
        )
        client.vehicles.append(vehicle)
        self.session.flush()

        logger.info(
            "vehicle_created",
            extra={"vehicle_id": vehicle.id, "client_id": client.id, "plate": plate},
        )
        return self._vehicle_dto(vehicle)

    def update_vehicle(
        self,
        vehicle_id: int,
        *,
        plate: str = _UNSET,
        vin: str | None = _UNSET,
        brand: str | None = _UNSET,
        model: str | None = _UNSET,
        year: int | None = _UNSET,
        color: str | None = _UNSET,
    ) -> VehicleInfo:
        """
        Update a vehicle's descriptive fields.  Arguments not passed are
        left unchanged; passing None clears an optional field.  The owner
        is fixed at registration.

        Raises:
            EntityNotFoundError: If the vehicle doesn't exist.
            RequiredFieldError: Blank plate.
        """
        vehicle = self._require(Vehicle, vehicle_id)

        changed: list[str] = []
        if plate is not _UNSET:
            vehicle.plate = require_text("Vehicle", "plate", plate)
            changed.append("plate")
        for field, value in (("vin", vin), ("brand", brand), ("model", model), ("color", color)):
            if value is not _UNSET:
                setattr(vehicle, field, optional_text(value))
                changed.append(field)
        if year is not _UNSET:
            vehicle.year = year
            changed.append("year")
        self.session.flush()

        logger.info(
            "vehicle_updated",
            extra={"vehicle_id": vehicle.id, "client_id": vehicle.client_id, "fields": changed},
        )
        return self._vehicle_dto(vehicle)

    def get_vehicle(self, vehicle_id: int) -> VehicleInfo:
        return self._vehicle_dto(self._require(Vehicle, vehicle_id))

    def list_vehicles(self, client_id: int) -> list[VehicleInfo]:
        """Vehicles of one client, oldest first."""
        self._require(Client, client_id)
        vehicles = self.session.execute(
            select(Vehicle).where(Vehicle.client_id == client_id).order_by(Vehicle.id)
        ).scalars().all()
        return [self._vehicle_dto(v) for v in vehicles]
