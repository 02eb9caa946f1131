from __future__ import annotations

from pathlib import Path

import pytest

from zone_import.config.loader import ConfigError, load_config
from zone_import.models.geo import GeographicBounds


def _write(tmp_path: Path, text: str) -> Path:
    p = tmp_path / "import.yml"
    p.write_text(text, encoding="utf-8")
    return p


def test_load_config_defaults(write_config: Path):
    cfg = load_config(write_config)
    assert cfg.canvas.width == 1000
    assert cfg.canvas.height == 800
    assert cfg.geographic_bounds is None
    assert cfg.geocoding.user_agent == "zone-import-tests"
    assert cfg.geocoding.domain == "nominatim.openstreetmap.org"
    assert cfg.geocoding.min_interval_seconds == 1
    assert cfg.unresolved_policy == "drop"
    assert cfg.column_mapping == {}
    assert cfg.additional_columns == []
    assert cfg.database.user == "appuser"
    assert cfg.database.port == 5432


def test_load_config_full(tmp_path: Path):
    cfg = load_config(
        _write(
            tmp_path,
            """canvas: {width: 1200, height: 900}
geographic_bounds: {min_lat: 35.6, max_lat: 35.8, min_lng: 139.6, max_lng: 139.9}
column_mapping:
  name: Title
  description: null
additional_columns: [Phone]
unresolved_policy: abort
error_log_dir: ./out/logs
""",
        )
    )
    assert cfg.geographic_bounds == GeographicBounds(35.6, 35.8, 139.6, 139.9)
    assert cfg.column_mapping == {"name": "Title", "description": None}
    assert cfg.additional_columns == ["Phone"]
    assert cfg.unresolved_policy == "abort"
    assert cfg.error_log_dir == "./out/logs"


def test_missing_file(tmp_path: Path):
    with pytest.raises(ConfigError, match="config file not found"):
        load_config(tmp_path / "nope.yml")


def test_invalid_yaml(tmp_path: Path):
    with pytest.raises(ConfigError, match="invalid yaml"):
        load_config(_write(tmp_path, "canvas: [unclosed\n"))


def test_top_level_must_be_mapping(tmp_path: Path):
    with pytest.raises(ConfigError, match="top level must be a mapping"):
        load_config(_write(tmp_path, "- just\n- a list\n"))


@pytest.mark.parametrize(
    "text",
    [
        "geocoding: {user_agent: x}\n",  # canvas missing
        "canvas: {width: 0, height: 10}\n",
        "canvas: {width: 10, height: 10}\nunknown_key: 1\n",
        "canvas: {width: 10, height: 10}\nunresolved_policy: skip\n",
        "canvas: {width: 10, height: 10}\ngeocoding: {min_interval_seconds: 0.2}\n",
        "canvas: {width: 10, height: 10}\ncolumn_mapping: {postcode: Zip}\n",
        "canvas: {width: 10, height: 10}\ngeographic_bounds: {min_lat: 0, max_lat: 95, min_lng: 0, max_lng: 1}\n",
    ],
)
def test_schema_violations(tmp_path: Path, text: str):
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config(_write(tmp_path, text))


def test_degenerate_bounds_rejected(tmp_path: Path):
    text = "canvas: {width: 10, height: 10}\ngeographic_bounds: {min_lat: 1, max_lat: 1, min_lng: 0, max_lng: 1}\n"
    with pytest.raises(ConfigError, match="geographic_bounds"):
        load_config(_write(tmp_path, text))
