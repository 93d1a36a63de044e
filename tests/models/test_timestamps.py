"""
Tests for timestamp storage.

Values written through the services come back from the database as the
same UTC instant, whatever offset they were given in.
"""

from datetime import datetime, timedelta, timezone

from sqlalchemy import select

from garage_kernel.db.base import UTCDateTime
from garage_kernel.models.client import Client

BRASILIA = timezone(timedelta(hours=-3))


class TestReloadedTimestamps:

    def test_appointment_time_survives_reload(self, session, appointment_service, individual, vehicle):
        at = datetime(2025, 12, 2, 9, 0, tzinfo=timezone.utc)
        scheduled = appointment_service.schedule(individual.id, vehicle.id, at)

        session.expire_all()
        reloaded = appointment_service.get_appointment(scheduled.id)

        assert reloaded.appointment_at == scheduled.appointment_at == at
        assert reloaded.appointment_at.tzinfo is not None

    def test_other_offset_stored_as_utc(self, session, appointment_service, individual, vehicle):
        local = datetime(2025, 12, 2, 6, 0, tzinfo=BRASILIA)
        scheduled = appointment_service.schedule(individual.id, vehicle.id, local)

        session.expire_all()
        reloaded = appointment_service.get_appointment(scheduled.id)

        assert reloaded.appointment_at == local
        assert reloaded.appointment_at.utcoffset() == timedelta(0)
        assert reloaded.appointment_at.hour == 9

    def test_inventory_stamp_survives_reload(
        self, session, inventory_ledger, stocked_part, deterministic_clock
    ):
        deterministic_clock.advance(90)
        inventory_ledger.adjust_quantity(stocked_part.id, 1)

        session.expire_all()
        record = inventory_ledger.get_record(stocked_part.id)

        assert record.last_updated == deterministic_clock.now()

    def test_server_default_is_aware(self, session, individual):
        session.expire_all()
        created = session.execute(
            select(Client.created_at).where(Client.id == individual.id)
        ).scalar_one()
        assert created.tzinfo is not None


class TestUTCDateTime:

    def test_naive_values_read_as_utc(self):
        column_type = UTCDateTime()
        naive = datetime(2025, 11, 20, 10, 0)
        loaded = column_type.process_result_value(naive, None)
        assert loaded == datetime(2025, 11, 20, 10, 0, tzinfo=timezone.utc)

    def test_bind_converts_to_utc(self):
        column_type = UTCDateTime()
        bound = column_type.process_bind_param(datetime(2025, 11, 20, 7, 0, tzinfo=BRASILIA), None)
        assert bound == datetime(2025, 11, 20, 10, 0, tzinfo=timezone.utc)
        assert bound.tzinfo == timezone.utc

    def test_none_passes_through(self):
        assert UTCDateTime().process_bind_param(None, None) is None
        assert UTCDateTime().process_result_value(None, None) is None
