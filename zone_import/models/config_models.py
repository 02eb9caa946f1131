from __future__ import annotations

from dataclasses import dataclass, field

from .geo import CanvasExtent, GeographicBounds

"""Config dataclasses for the zone import tool.

Built by ``zone_import.config.loader`` from the validated YAML document. The
pipeline receives these objects explicitly; nothing is cached at module level.
"""

__all__ = [
    "DatabaseConfig",
    "GeocodingConfig",
    "ImportConfig",
    "UNRESOLVED_POLICIES",
]

UNRESOLVED_POLICIES = ("abort", "drop")


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection fallback.

    Environment variables take precedence over these values.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class GeocodingConfig:
    domain: str = "nominatim.openstreetmap.org"
    user_agent: str = "MapConfigurator/1.0"  # Nominatim rejects requests without one
    timeout_seconds: float = 10.0
    min_interval_seconds: float = 1.0  # provider usage policy: one request per second


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for one import run."""
    canvas: CanvasExtent
    geographic_bounds: GeographicBounds | None = None  # None => derive from the import
    geocoding: GeocodingConfig = field(default_factory=GeocodingConfig)
    column_mapping: dict[str, str | None] = field(default_factory=dict)  # role -> header overrides
    additional_columns: list[str] = field(default_factory=list)
    unresolved_policy: str = "drop"  # drop | abort
    error_log_dir: str = "./logs"
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
