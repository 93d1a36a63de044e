"""
Tests for garage_config: loading, validation, environment overrides and
the bridge into the kernel's WorkshopPolicy.
"""

from decimal import Decimal

import pytest
import yaml

from garage_config import (
    CONFIG_PATH_ENV,
    DATABASE_URL_ENV,
    ConfigValidationError,
    ShopConfig,
    get_active_config,
)
from garage_config.bridges import build_policy, build_status_machine
from garage_config.loader import load_config_file, load_yaml_file, parse_config
from garage_kernel.domain.enums import WorkOrderStatus
from garage_kernel.domain.policy import DEFAULT_POLICY


@pytest.fixture(autouse=True)
def _no_env_overrides(monkeypatch):
    monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)
    monkeypatch.delenv(DATABASE_URL_ENV, raising=False)


def _write(tmp_path, data, name="shop.yaml"):
    path = tmp_path / name
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


class TestDefaultSet:

    def test_default_file_loads(self):
        config = get_active_config()
        assert config.config_id == "garage-default"
        assert config.database_url == "sqlite:///garage.db"
        assert config.top_client_invoiced_threshold == Decimal("200.00")
        assert config.forbidden_transitions == ()
        assert config.source_path.endswith("default.yaml")

    def test_default_policy_matches_kernel_defaults(self):
        assert build_policy(get_active_config()) == DEFAULT_POLICY

    def test_logs_config_loaded(self, captured_logs):
        get_active_config()
        record = next(r for r in captured_logs() if r["message"] == "config_loaded")
        assert record["logger"] == "garage_kernel.config"
        assert record["config_id"] == "garage-default"
        assert record["database_url_overridden"] is False


class TestOverrides:

    def test_explicit_path(self, tmp_path):
        path = _write(tmp_path, {"config_id": "branch-2", "low_stock_threshold": 2})
        config = get_active_config(path)
        assert config.config_id == "branch-2"
        assert config.low_stock_threshold == 2
        assert config.top_clients_limit == 3

    def test_path_from_environment(self, tmp_path, monkeypatch):
        path = _write(tmp_path, {"config_id": "from-env"})
        monkeypatch.setenv(CONFIG_PATH_ENV, str(path))
        assert get_active_config().config_id == "from-env"

    def test_database_url_from_environment(self, monkeypatch):
        monkeypatch.setenv(DATABASE_URL_ENV, "postgresql://u:p@db/garage")
        config = get_active_config()
        assert config.database_url == "postgresql://u:p@db/garage"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "nope.yaml")


class TestValidation:

    def test_full_valid_mapping(self):
        config = parse_config(
            {
                "config_id": "strict",
                "database_url": "sqlite://",
                "low_stock_threshold": 0,
                "top_client_invoiced_threshold": 150.5,
                "top_clients_limit": 10,
                "invoice_due_days": 30,
                "enforce_stock_on_part_items": False,
                "enforce_vehicle_ownership": False,
                "forbidden_transitions": [["CANCELLED", "OPEN"], ["COMPLETED", "OPEN"]],
                "max_transition_retries": 5,
            }
        )
        assert isinstance(config, ShopConfig)
        assert config.top_client_invoiced_threshold == Decimal("150.5")
        assert config.forbidden_transitions == (("CANCELLED", "OPEN"), ("COMPLETED", "OPEN"))
        assert config.source_path is None

    def test_every_problem_reported(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            parse_config(
                {
                    "config_id": "",
                    "colour": "red",
                    "low_stock_threshold": -1,
                    "top_clients_limit": "3",
                    "enforce_vehicle_ownership": "yes",
                    "top_client_invoiced_threshold": "lots",
                    "forbidden_transitions": [["OPEN"], ["OPEN", "ARCHIVED"]],
                    "max_transition_retries": 0,
                }
            )
        errors = exc_info.value.errors
        assert any("unknown keys: colour" in e for e in errors)
        assert any(e.startswith("config_id") for e in errors)
        assert any(e.startswith("low_stock_threshold") for e in errors)
        assert any(e.startswith("top_clients_limit") for e in errors)
        assert any(e.startswith("enforce_vehicle_ownership") for e in errors)
        assert any(e.startswith("top_client_invoiced_threshold") for e in errors)
        assert any("bad pair" in e for e in errors)
        assert any("unknown status ARCHIVED" in e for e in errors)
        assert any(e.startswith("max_transition_retries") for e in errors)
        assert isinstance(exc_info.value, ValueError)

    def test_bool_is_not_an_int(self):
        with pytest.raises(ConfigValidationError):
            parse_config({"config_id": "x", "invoice_due_days": True})

    def test_negative_threshold(self):
        with pytest.raises(ConfigValidationError):
            parse_config({"config_id": "x", "top_client_invoiced_threshold": "-1"})

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigValidationError):
            load_yaml_file(path)

    def test_empty_file_needs_config_id(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        with pytest.raises(ConfigValidationError):
            load_config_file(path)


class TestBridges:

    def test_build_policy(self):
        config = ShopConfig(
            config_id="b",
            low_stock_threshold=2,
            top_client_invoiced_threshold=Decimal("50"),
            top_clients_limit=5,
            invoice_due_days=14,
            enforce_stock_on_part_items=False,
            enforce_vehicle_ownership=False,
            forbidden_transitions=(("CANCELLED", "OPEN"),),
            max_transition_retries=6,
        )
        policy = build_policy(config)
        assert policy.low_stock_threshold == 2
        assert policy.invoiced_threshold == Decimal("50")
        assert policy.top_clients_limit == 5
        assert policy.invoice_due_days == 14
        assert policy.enforce_stock_on_part_items is False
        assert policy.enforce_vehicle_ownership is False
        assert policy.max_transition_retries == 6
        assert not policy.status_machine.can_transition(
            WorkOrderStatus.CANCELLED, WorkOrderStatus.OPEN
        )

    def test_status_machine_permissive_by_default(self):
        machine = build_status_machine(ShopConfig(config_id="p"))
        assert machine.can_transition(WorkOrderStatus.CANCELLED, WorkOrderStatus.OPEN)
