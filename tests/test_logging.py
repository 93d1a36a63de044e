"""Structured logging: JSON envelope, workshop context and configuration."""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from io import StringIO

import pytest

from garage_kernel.domain.enums import WorkOrderStatus
from garage_kernel.exceptions import EntityNotFoundError, NegativeStockError
from garage_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _isolated_logging():
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


@pytest.fixture
def emitted():
    """Configure kernel logging on a fresh stream; returns a reader of the lines."""
    stream = StringIO()
    configure_logging(stream=stream)

    def read() -> list[dict]:
        return [json.loads(line) for line in stream.getvalue().splitlines() if line]

    return read


class TestEnvelope:

    def test_one_json_object_per_record(self, emitted):
        log = get_logger("services.billing")
        log.info("invoice_issued")
        log.warning("payment_rejected")

        first, second = emitted()
        assert first["message"] == "invoice_issued"
        assert first["level"] == "INFO"
        assert first["logger"] == "garage_kernel.services.billing"
        assert second["level"] == "WARNING"
        assert datetime.fromisoformat(first["ts"]).tzinfo is not None

    def test_extra_fields_are_top_level(self, emitted):
        get_logger("services.work_order").info(
            "work_order_item_added", extra={"work_order_id": 7, "item_kind": "PART"}
        )

        record = emitted()[0]
        assert record["work_order_id"] == 7
        assert record["item_kind"] == "PART"

    def test_money_dates_and_enums_are_rendered(self, emitted):
        get_logger("seed").info(
            "totals",
            extra={
                "total": Decimal("172.50"),
                "issued_at": datetime(2025, 11, 20, 10, 0, tzinfo=timezone.utc),
                "status": WorkOrderStatus.WAITING_PARTS,
            },
        )

        record = emitted()[0]
        assert record["total"] == "172.50"
        assert record["issued_at"] == "2025-11-20T10:00:00+00:00"
        assert record["status"] == WorkOrderStatus.WAITING_PARTS.value

    def test_extra_cannot_replace_envelope(self, emitted):
        get_logger("x").info("real_message", extra={"level": "FAKE", "ts": "never"})

        record = emitted()[0]
        assert record["level"] == "INFO"
        assert record["ts"] != "never"


class TestExceptions:

    def test_plain_exception(self, emitted):
        try:
            raise RuntimeError("pump failed")
        except RuntimeError:
            get_logger("x").exception("unexpected")

        record = emitted()[0]
        assert record["exc_type"] == "RuntimeError"
        assert record["exc_message"] == "pump failed"
        assert "exc_code" not in record
        assert "Traceback" in record["traceback"]

    def test_kernel_error_attributes(self, emitted):
        try:
            raise NegativeStockError(5, 2, -3)
        except NegativeStockError:
            get_logger("services.inventory").error("stock_error", exc_info=True)

        record = emitted()[0]
        assert record["exc_code"] == "NEGATIVE_STOCK"
        assert (record["exc_part_id"], record["exc_current"], record["exc_delta"]) == (5, 2, -3)

    def test_not_found_names_entity(self, emitted):
        try:
            raise EntityNotFoundError("Vehicle", 42)
        except EntityNotFoundError:
            get_logger("x").error("lookup_failed", exc_info=True)

        record = emitted()[0]
        assert record["exc_type"] == "EntityNotFoundError"
        assert record["exc_code"] == EntityNotFoundError.code


class TestLogContext:

    def test_context_lands_on_records(self, emitted):
        LogContext.set(correlation_id="req-1", actor_id="front-desk")
        get_logger("x").info("with_context")

        record = emitted()[0]
        assert record["correlation_id"] == "req-1"
        assert record["actor_id"] == "front-desk"
        assert "invoice_id" not in record

    def test_bind_nests_and_restores(self):
        LogContext.set(work_order_id="1")
        with LogContext.bind(work_order_id="2", invoice_id="9"):
            assert LogContext.get_all() == {"work_order_id": "2", "invoice_id": "9"}
            with LogContext.bind(invoice_id="10"):
                assert LogContext.get_all()["invoice_id"] == "10"
            assert LogContext.get_all()["invoice_id"] == "9"
        assert LogContext.get_all() == {"work_order_id": "1"}

    def test_bind_restores_after_error(self):
        with pytest.raises(ValueError):
            with LogContext.bind(work_order_id="3"):
                raise ValueError
        assert LogContext.get_all() == {}

    def test_unknown_and_none_fields_ignored(self):
        with LogContext.bind(plate="ABC1D23", invoice_id=None):
            assert LogContext.get_all() == {}

    def test_values_stored_as_strings(self):
        LogContext.set(work_order_id=12)
        assert LogContext.get_all() == {"work_order_id": "12"}

    def test_clear(self):
        LogContext.set(actor_id="clerk", trace_id="t")
        LogContext.clear()
        assert LogContext.get_all() == {}


class TestConfigureLogging:

    def test_second_call_is_noop(self, emitted):
        configure_logging(stream=StringIO())
        get_logger("x").info("once")

        assert [r["message"] for r in emitted()] == ["once"]

    def test_level_threshold(self):
        stream = StringIO()
        configure_logging(level=logging.WARNING, stream=stream)
        get_logger("x").info("dropped")
        get_logger("x").warning("kept")

        lines = stream.getvalue().splitlines()
        assert len(lines) == 1
        assert json.loads(lines[0])["message"] == "kept"

    def test_kernel_logs_stay_out_of_root(self, emitted):
        assert logging.getLogger("garage_kernel").propagate is False

    def test_custom_handler_gets_structured_formatter(self):
        stream = StringIO()
        configure_logging(handler=logging.StreamHandler(stream))
        get_logger("x").info("via_handler")

        assert json.loads(stream.getvalue())["message"] == "via_handler"

    def test_reset_allows_reconfiguration(self):
        first = StringIO()
        configure_logging(stream=first)
        reset_logging()
        second = StringIO()
        configure_logging(stream=second)
        get_logger("x").info("after_reset")

        assert first.getvalue() == ""
        assert json.loads(second.getvalue())["message"] == "after_reset"

    def test_formatter_standalone(self):
        record = logging.LogRecord("garage_kernel.x", logging.INFO, __file__, 1, "plain", (), None)
        assert json.loads(StructuredFormatter().format(record))["message"] == "plain"
