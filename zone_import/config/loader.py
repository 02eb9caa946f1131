from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from zone_import.models.config_models import DatabaseConfig, GeocodingConfig, ImportConfig
from zone_import.models.geo import CanvasExtent, GeographicBounds, InvalidBoundsError

"""Config loader.

Responsibilities:
- Load the YAML config (config/import.yml by default)
- Validate it against import_schema.json (unknown keys are rejected)
- Apply defaults and build the ImportConfig dataclasses
"""

SCHEMA_PATH = Path(__file__).with_name("import_schema.json")
DEFAULT_CONFIG_PATH = Path("config/import.yml")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: If the schema file is missing or unreadable, or the
            config data fails validation (missing keys, wrong types,
            unknown keys).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _build_bounds(raw: dict[str, Any] | None) -> GeographicBounds | None:
    if not raw:
        return None
    try:
        return GeographicBounds.from_dict(raw)
    except InvalidBoundsError as e:
        raise ConfigError(f"config validation failed: geographic_bounds: {e}") from e


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config validation failed: top level must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    canvas_raw = data["canvas"]
    geo_raw = data.get("geocoding") or {}
    db_raw = data.get("database") or {}

    geocoding = GeocodingConfig(**geo_raw)
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    return ImportConfig(
        canvas=CanvasExtent(width=canvas_raw["width"], height=canvas_raw["height"]),
        geographic_bounds=_build_bounds(data.get("geographic_bounds")),
        geocoding=geocoding,
        column_mapping=dict(data.get("column_mapping") or {}),
        additional_columns=list(data.get("additional_columns") or []),
        unresolved_policy=data.get("unresolved_policy", "drop"),
        error_log_dir=data.get("error_log_dir", "./logs"),
        database=db,
    )
