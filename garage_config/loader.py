"""
Configuration Loader (``garage_config.loader``).

Responsibility
--------------
Reads a YAML configuration set and parses it into a validated
``ShopConfig``.  This is internal tooling; runtime callers go through
``garage_config.get_active_config()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys, wrong types or out-of-range values  ->
  ``ConfigValidationError`` listing every problem found.
"""

from __future__ import annotations

from dataclasses import fields
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from garage_config.schema import ConfigValidationError, ShopConfig
from garage_kernel.domain.enums import WorkOrderStatus

_KNOWN_KEYS = frozenset(f.name for f in fields(ShopConfig)) - {"source_path"}

_VALID_STATUSES = frozenset(s.value for s in WorkOrderStatus)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ConfigValidationError: if the top level is not a mapping.
    """
    with open(path, encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigValidationError([f"{path}: top level must be a mapping"])
    return data


def _int(data: dict[str, Any], key: str, errors: list[str], minimum: int) -> Any:
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, int):
        errors.append(f"{key}: expected an integer, got {value!r}")
    elif value < minimum:
        errors.append(f"{key}: must be >= {minimum}, got {value}")
    return value


def _bool(data: dict[str, Any], key: str, errors: list[str]) -> Any:
    value = data[key]
    if not isinstance(value, bool):
        errors.append(f"{key}: expected true/false, got {value!r}")
    return value


def parse_config(data: dict[str, Any], source_path: str | None = None) -> ShopConfig:
    """
    Validate a raw mapping and build a ShopConfig.

    Keys that are absent keep their ShopConfig default.  Money values are
    read through ``str`` so a YAML float never leaks binary rounding.

    Raises:
        ConfigValidationError: One or more values are invalid.
    """
    errors: list[str] = []

    unknown = sorted(set(data) - _KNOWN_KEYS)
    if unknown:
        errors.append(f"unknown keys: {', '.join(unknown)}")

    values: dict[str, Any] = {}

    config_id = data.get("config_id")
    if not isinstance(config_id, str) or not config_id.strip():
        errors.append("config_id: required non-empty string")
    values["config_id"] = config_id

    if "database_url" in data:
        url = data["database_url"]
        if not isinstance(url, str) or not url.strip():
            errors.append("database_url: required non-empty string")
        values["database_url"] = url

    for key, minimum in (
        ("low_stock_threshold", 0),
        ("top_clients_limit", 1),
        ("invoice_due_days", 0),
        ("max_transition_retries", 1),
    ):
        if key in data:
            values[key] = _int(data, key, errors, minimum)

    for key in ("enforce_stock_on_part_items", "enforce_vehicle_ownership"):
        if key in data:
            values[key] = _bool(data, key, errors)

    if "top_client_invoiced_threshold" in data:
        raw = data["top_client_invoiced_threshold"]
        try:
            if isinstance(raw, bool):
                raise InvalidOperation
            threshold = Decimal(str(raw))
        except (InvalidOperation, ValueError):
            errors.append(f"top_client_invoiced_threshold: not a number: {raw!r}")
        else:
            if threshold < 0:
                errors.append("top_client_invoiced_threshold: must be >= 0")
            values["top_client_invoiced_threshold"] = threshold

    if "forbidden_transitions" in data:
        pairs: list[tuple[str, str]] = []
        raw_pairs = data["forbidden_transitions"] or []
        if not isinstance(raw_pairs, list):
            errors.append("forbidden_transitions: expected a list of [from, to] pairs")
            raw_pairs = []
        for pair in raw_pairs:
            if (
                not isinstance(pair, list | tuple)
                or len(pair) != 2
                or not all(isinstance(s, str) for s in pair)
            ):
                errors.append(f"forbidden_transitions: bad pair {pair!r}")
                continue
            bad = [s for s in pair if s not in _VALID_STATUSES]
            if bad:
                errors.append(f"forbidden_transitions: unknown status {', '.join(bad)}")
                continue
            pairs.append((pair[0], pair[1]))
        values["forbidden_transitions"] = tuple(pairs)

    if errors:
        raise ConfigValidationError(errors)

    return ShopConfig(source_path=source_path, **values)


def load_config_file(path: Path) -> ShopConfig:
    """Load and validate one configuration file."""
    return parse_config(load_yaml_file(path), source_path=str(path))
