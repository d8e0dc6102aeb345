"""
Settings schema.

Frozen dataclasses populated by ``lalur_config.loader`` from the packaged
``defaults.yaml`` plus an optional override file.  Field defaults mirror
``defaults.yaml`` so that code constructing settings by hand (tests, mostly)
gets the same behaviour as a plain ``get_settings()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field

# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseSettings:
    """Connection settings handed to ``lalur_kernel.db.build_engine``."""

    url: str = "sqlite:///lalur.db"
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10


@dataclass(frozen=True)
class ImportSettings:
    """Bulk import limits and behaviour."""

    max_file_bytes: int = 50 * 1024 * 1024
    encoding: str = "utf-8"
    min_reference_year: int = 2000
    # Commit after every persisted row; False leaves the caller's
    # transaction open.
    auto_commit: bool = True


@dataclass(frozen=True)
class ExportSettings:
    delimiter: str = ";"
    encoding: str = "utf-8"


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Settings:
    """Complete runtime settings."""

    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    imports: ImportSettings = field(default_factory=ImportSettings)
    exports: ExportSettings = field(default_factory=ExportSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    source: str = "<defaults>"
