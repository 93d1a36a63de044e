"""
garage_config -- single public entrypoint for workshop configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration
    files or environment variables directly.

Architecture position:
    Configuration -- sits above ``garage_kernel``.  The kernel MUST NEVER
    import from ``garage_config``; ``bridges.build_policy`` translates the
    loaded ``ShopConfig`` into the kernel's ``WorkshopPolicy``.

Failure modes:
    - ``FileNotFoundError`` -- the requested configuration file is missing.
    - ``ConfigValidationError`` (a ``ValueError``) -- invalid values.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from pathlib import Path

from garage_config.loader import load_config_file
from garage_config.schema import ConfigValidationError, ShopConfig

_logger = logging.getLogger("garage_kernel.config")

# Default configuration sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"
_DEFAULT_CONFIG_FILE = _DEFAULT_CONFIG_DIR / "default.yaml"

DATABASE_URL_ENV = "GARAGE_DATABASE_URL"
CONFIG_PATH_ENV = "GARAGE_CONFIG"

__all__ = [
    "CONFIG_PATH_ENV",
    "ConfigValidationError",
    "DATABASE_URL_ENV",
    "ShopConfig",
    "get_active_config",
]


def get_active_config(config_path: Path | str | None = None) -> ShopConfig:
    """The ONLY public configuration entrypoint.

    Resolution order for the file: ``config_path`` argument, then the
    ``GARAGE_CONFIG`` environment variable, then ``sets/default.yaml``.
    ``GARAGE_DATABASE_URL``, when set, overrides the file's database_url.

    Raises:
        FileNotFoundError: If the configuration file does not exist.
        ConfigValidationError: If any value is invalid.
    """
    path = Path(config_path or os.environ.get(CONFIG_PATH_ENV) or _DEFAULT_CONFIG_FILE)
    config = load_config_file(path)

    override = os.environ.get(DATABASE_URL_ENV)
    if override:
        config = dataclasses.replace(config, database_url=override)

    _logger.info(
        "config_loaded",
        extra={
            "config_id": config.config_id,
            "source_path": config.source_path,
            "database_url_overridden": bool(override),
            "low_stock_threshold": config.low_stock_threshold,
            "top_clients_limit": config.top_clients_limit,
            "forbidden_transition_count": len(config.forbidden_transitions),
        },
    )
    return config
