from __future__ import annotations

import math
from collections.abc import Sequence

from ..models.geo import CanvasExtent, GeographicBounds, GeoPoint, InvalidBoundsError
from ..models.record import NormalizedRecord
from ..models.zone import ZoneCandidate, ZoneContent, make_shape, new_zone_id

"""Coordinate projection between geographic and canvas space.

- geo_to_canvas / canvas_to_geo: linear mapping inside a bounds rectangle,
  canvas Y grows downward while latitude grows northward
- equirectangular_position: bounds-free placement over the whole globe,
  squeezed into the inner 80% of the canvas
- grid_position: deterministic placeholder for records without usable
  geographic data (or still waiting for geocoding)
"""

__all__ = [
    "GRID_ORIGIN",
    "GRID_SPACING",
    "canvas_to_geo",
    "equirectangular_position",
    "geo_to_canvas",
    "grid_position",
    "position_for",
    "prepare_zones_for_canvas",
    "reproject_zones",
]

GRID_SPACING = 50.0
GRID_ORIGIN = (50.0, 50.0)
FALLBACK_MARGIN = 0.1  # per side, as a fraction of the canvas


def _ranges(bounds: GeographicBounds) -> tuple[float, float]:
    lat_range = bounds.max_lat - bounds.min_lat
    lng_range = bounds.max_lng - bounds.min_lng
    if lat_range <= 0 or lng_range <= 0:
        raise InvalidBoundsError(f"cannot project with degenerate bounds: {bounds}")
    return lat_range, lng_range


def geo_to_canvas(
    lat: float, lng: float, bounds: GeographicBounds, extent: CanvasExtent
) -> tuple[float, float]:
    lat_range, lng_range = _ranges(bounds)
    normalized_lng = (lng - bounds.min_lng) / lng_range
    normalized_lat = 1 - (lat - bounds.min_lat) / lat_range
    return (normalized_lng * extent.width, normalized_lat * extent.height)


def canvas_to_geo(
    x: float, y: float, bounds: GeographicBounds, extent: CanvasExtent
) -> GeoPoint:
    """Inverse of geo_to_canvas."""
    lat_range, lng_range = _ranges(bounds)
    lng = bounds.min_lng + (x / extent.width) * lng_range
    lat = bounds.max_lat - (y / extent.height) * lat_range
    return GeoPoint(lat=lat, lng=lng)


def equirectangular_position(lat: float, lng: float, extent: CanvasExtent) -> tuple[float, float]:
    normalized_lng = (lng + 180) / 360
    normalized_lat = (90 - lat) / 180
    inner = 1 - 2 * FALLBACK_MARGIN
    return (
        normalized_lng * extent.width * inner + extent.width * FALLBACK_MARGIN,
        normalized_lat * extent.height * inner + extent.height * FALLBACK_MARGIN,
    )


def grid_position(index: int, total: int) -> tuple[float, float]:
    columns = max(1, math.ceil(math.sqrt(total)))
    row, col = divmod(index, columns)
    return (GRID_ORIGIN[0] + col * GRID_SPACING, GRID_ORIGIN[1] + row * GRID_SPACING)


def position_for(
    point: GeoPoint, bounds: GeographicBounds | None, extent: CanvasExtent
) -> tuple[float, float]:
    """Canvas anchor for a resolved coordinate, with or without bounds."""
    if bounds is not None:
        return geo_to_canvas(point.lat, point.lng, bounds, extent)
    return equirectangular_position(point.lat, point.lng, extent)


def _content_for(record: NormalizedRecord) -> ZoneContent:
    description = record.description or ""
    if record.extra:
        additional = "\n".join(f"{key}: {value}" for key, value in record.extra.items())
        description = f"{description}\n\n{additional}" if description else additional
    return ZoneContent(title=record.name, description=description, category=record.category)


def prepare_zones_for_canvas(
    records: Sequence[NormalizedRecord],
    bounds: GeographicBounds | None,
    extent: CanvasExtent,
) -> list[ZoneCandidate]:
    """Turn records into positioned candidates. Pure; no network access.

    Records with coordinates get their final position; records with only an
    address are flagged ``needs_geocoding`` and parked on the grid; records
    with neither are parked on the grid for good.
    """
    total = len(records)
    zones: list[ZoneCandidate] = []
    for index, record in enumerate(records):
        resolved: GeoPoint | None = None
        needs_geocoding = False
        if record.has_coordinates:
            resolved = GeoPoint(lat=record.latitude, lng=record.longitude)  # type: ignore[arg-type]
            anchor = position_for(resolved, bounds, extent)
        else:
            needs_geocoding = record.address is not None
            anchor = grid_position(index, total)

        zones.append(
            ZoneCandidate(
                id=new_zone_id(),
                shape=make_shape(record.shape_type, anchor),
                content=_content_for(record),
                source_address=record.address,
                needs_geocoding=needs_geocoding,
                resolved_geo=resolved,
                source_row=record.row_number,
            )
        )
    return zones


def reproject_zones(
    zones: Sequence[ZoneCandidate], bounds: GeographicBounds, extent: CanvasExtent
) -> int:
    """Recompute canvas positions of every resolved candidate in place.

    Candidates without a resolved coordinate keep their grid position.
    Returns the number of candidates moved.
    """
    moved = 0
    for zone in zones:
        if zone.resolved_geo is None:
            continue
        zone.move_to(geo_to_canvas(zone.resolved_geo.lat, zone.resolved_geo.lng, bounds, extent))
        moved += 1
    return moved
