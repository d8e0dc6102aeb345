"""
Configuration Loader (``lalur_config.loader``).

Responsibility
--------------
Loads YAML files and parses them into the frozen dataclasses of
``lalur_config.schema``.  Callers use ``lalur_config.get_settings()``; this
module is its implementation.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* An override file may set any subset of keys; sections and keys it omits
  keep the packaged default.
* Unknown sections or keys are rejected, so a typo never silently falls back
  to a default.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown key or wrongly typed value  -> ``ValueError``.
"""

from __future__ import annotations

from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from lalur_config.schema import (
    DatabaseSettings,
    ExportSettings,
    ImportSettings,
    LoggingSettings,
    Settings,
)

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"

_SECTIONS: dict[str, type] = {
    "database": DatabaseSettings,
    "imports": ImportSettings,
    "exports": ExportSettings,
    "logging": LoggingSettings,
}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Section-wise overlay of ``override`` onto ``base``."""
    merged = {name: dict(values or {}) for name, values in base.items()}
    for name, values in override.items():
        if values is None:
            continue
        if not isinstance(values, dict):
            raise ValueError(f"Section '{name}' must be a mapping")
        merged.setdefault(name, {}).update(values)
    return merged


def _parse_section(name: str, data: dict[str, Any]) -> Any:
    cls = _SECTIONS[name]
    known = {f.name: f for f in fields(cls)}
    unknown = sorted(set(data) - set(known))
    if unknown:
        raise ValueError(f"Unknown key(s) in '{name}': {', '.join(unknown)}")

    values: dict[str, Any] = {}
    for key, raw in data.items():
        default = known[key].default
        # bool is an int subclass; keep the two apart
        if isinstance(default, bool):
            if not isinstance(raw, bool):
                raise ValueError(f"{name}.{key} must be true or false, got {raw!r}")
        elif isinstance(default, int):
            if isinstance(raw, bool) or not isinstance(raw, int):
                raise ValueError(f"{name}.{key} must be an integer, got {raw!r}")
        elif isinstance(default, str) and not isinstance(raw, str):
            raise ValueError(f"{name}.{key} must be a string, got {raw!r}")
        values[key] = raw
    return cls(**values)


def parse_settings(data: dict[str, Any], source: str = "<dict>") -> Settings:
    """
    Build a Settings instance from an already merged dict.

    Raises:
        ValueError: unknown section or key, or a wrongly typed value.
    """
    unknown = sorted(set(data) - set(_SECTIONS))
    if unknown:
        raise ValueError(f"Unknown configuration section(s): {', '.join(unknown)}")
    sections = {name: _parse_section(name, data.get(name) or {}) for name in _SECTIONS}
    settings = Settings(source=source, **sections)
    if len(settings.exports.delimiter) != 1:
        raise ValueError(
            f"exports.delimiter must be a single character, got {settings.exports.delimiter!r}"
        )
    if settings.imports.max_file_bytes <= 0:
        raise ValueError("imports.max_file_bytes must be positive")
    return settings


def load_settings(config_path: Path | None = None) -> Settings:
    """Packaged defaults, overlaid with ``config_path`` when given."""
    data = load_yaml_file(DEFAULTS_PATH)
    source = str(DEFAULTS_PATH)
    if config_path is not None:
        data = merge(data, load_yaml_file(Path(config_path)))
        source = str(config_path)
    return parse_settings(data, source=source)
