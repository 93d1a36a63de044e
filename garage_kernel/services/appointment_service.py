"""
garage_kernel.services.appointment_service -- Booked workshop visits.

Appointments reference a client and one of the client's vehicles and move
freely between SCHEDULED, ATTENDED, NO_SHOW and CANCELLED.  They are
deleted together with their client or vehicle.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select

from garage_kernel.domain.checks import optional_text
from garage_kernel.domain.enums import AppointmentStatus
from garage_kernel.exceptions import VehicleOwnershipError
from garage_kernel.logging_config import get_logger
from garage_kernel.models.appointment import Appointment
from garage_kernel.models.client import Client, Vehicle
from garage_kernel.services.base import BaseService

logger = get_logger("services.appointment")


@dataclass(frozen=True)
class AppointmentInfo:
    id: int
    client_id: int
    vehicle_id: int
    appointment_at: datetime
    reason: str | None
    status: AppointmentStatus


class AppointmentService(BaseService[Appointment]):
    """Scheduling of visits.  Returns AppointmentInfo DTOs."""

    def _to_dto(self, appointment: Appointment) -> AppointmentInfo:
        return AppointmentInfo(
            id=appointment.id,
            client_id=appointment.client_id,
            vehicle_id=appointment.vehicle_id,
            appointment_at=appointment.appointment_at,
            reason=appointment.reason,
            status=appointment.status,
        )

    def schedule(
        self,
        client_id: int,
        vehicle_id: int,
        appointment_at: datetime,
        reason: str | None = None,
    ) -> AppointmentInfo:
        """
        Book a visit.

        Raises:
            EntityNotFoundError: Unknown client or vehicle.
            VehicleOwnershipError: The vehicle belongs to another client.
        """
        client = self._require(Client, client_id)
        vehicle = self._require(Vehicle, vehicle_id)
        if self.policy.enforce_vehicle_ownership and vehicle.client_id != client.id:
            raise VehicleOwnershipError(vehicle.id, client.id, vehicle.client_id)

        appointment = Appointment(
            client=client,
            vehicle=vehicle,
            appointment_at=appointment_at,
            reason=optional_text(reason),
            status=AppointmentStatus.SCHEDULED,
        )
        self.session.add(appointment)
        self.session.flush()

        logger.info(
            "appointment_scheduled",
            extra={
                "appointment_id": appointment.id,
                "client_id": client_id,
                "vehicle_id": vehicle_id,
                "appointment_at": appointment_at,
            },
        )
        return self._to_dto(appointment)

    def set_status(self, appointment_id: int, status: AppointmentStatus) -> AppointmentInfo:
        appointment = self._require(Appointment, appointment_id)
        old_status = appointment.status
        appointment.status = AppointmentStatus(status)
        self.session.flush()

        logger.info(
            "appointment_status_changed",
            extra={
                "appointment_id": appointment_id,
                "from_status": old_status.value,
                "to_status": appointment.status.value,
            },
        )
        return self._to_dto(appointment)

    def get_appointment(self, appointment_id: int) -> AppointmentInfo:
        return self._to_dto(self._require(Appointment, appointment_id))

    def list_for_client(self, client_id: int) -> list[AppointmentInfo]:
        """Appointments of a client in chronological order."""
        self._require(Client, client_id)
        appointments = self.session.execute(
            select(Appointment)
            .where(Appointment.client_id == client_id)
            .order_by(Appointment.appointment_at, Appointment.id)
        ).scalars().all()
        return [self._to_dto(a) for a in appointments]
