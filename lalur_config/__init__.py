"""
lalur_config -- single public entrypoint for runtime settings.

Responsibility:
    ``get_settings()`` is the only way the ingestion layer and the CLI read
    configuration.  The kernel never imports this package; services receive
    the values they need as constructor arguments.

Failure modes:
    - ``FileNotFoundError`` -- the override file does not exist.
    - ``ValueError`` -- unknown key or wrongly typed value.
"""

from __future__ import annotations

import logging
from pathlib import Path

from lalur_config.loader import load_settings
from lalur_config.schema import (
    DatabaseSettings,
    ExportSettings,
    ImportSettings,
    LoggingSettings,
    Settings,
)

_logger = logging.getLogger("lalur_kernel.config")


def get_settings(config_path: Path | str | None = None) -> Settings:
    """Load the packaged defaults and overlay ``config_path`` if given."""
    settings = load_settings(Path(config_path) if config_path is not None else None)
    _logger.debug("settings_loaded", extra={"source": settings.source})
    return settings


__all__ = [
    "DatabaseSettings",
    "ExportSettings",
    "ImportSettings",
    "LoggingSettings",
    "Settings",
    "get_settings",
]
