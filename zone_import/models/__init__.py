"""Domain models for the zone import pipeline.

Value types (bounds, extents, mappings, records) and the ZoneCandidate that
the pipeline hands to the persistence collaborator.
"""

from .config_models import DatabaseConfig, GeocodingConfig, ImportConfig
from .error_record import ErrorRecord
from .geo import WORLD_BOUNDS, CanvasExtent, GeographicBounds, GeoPoint, InvalidBoundsError
from .mapping import ColumnMapping, ColumnMappingError
from .processing_result import ImportResult
from .record import NormalizedRecord
from .zone import CircleShape, PointShape, RectangleShape, ZoneCandidate, ZoneContent

__all__ = [
    # Configuration models
    "DatabaseConfig",
    "GeocodingConfig",
    "ImportConfig",
    # Geometry
    "CanvasExtent",
    "GeoPoint",
    "GeographicBounds",
    "InvalidBoundsError",
    "WORLD_BOUNDS",
    # Pipeline models
    "ColumnMapping",
    "ColumnMappingError",
    "NormalizedRecord",
    "ZoneCandidate",
    "ZoneContent",
    "PointShape",
    "RectangleShape",
    "CircleShape",
    # Results
    "ErrorRecord",
    "ImportResult",
]
