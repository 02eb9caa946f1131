from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from ..logging.error_log import ErrorLogBuffer
from ..models.geo import WORLD_BOUNDS, CanvasExtent, GeographicBounds, GeoPoint
from ..models.zone import ZoneCandidate
from .batch_geocoder import GeocodeBatchResult, ProgressCallback, batch_geocode_zones
from .errors import ProcessingError
from .geocoding import GeocodingClient
from .projection import reproject_zones

"""Bounds calculation and the two-phase bounds bootstrap.

When an import arrives without geographic bounds, addresses are first
geocoded against a world-sized placeholder purely to obtain coordinates.
Real bounds are then derived from every resolved coordinate (padded by
0.01 degrees) and all candidates are projected again with them.
"""

__all__ = [
    "BOUNDS_PADDING",
    "BootstrapError",
    "BootstrapResult",
    "bootstrap_bounds",
    "calculate_bounds",
    "resolved_points",
]

logger = logging.getLogger(__name__)

BOUNDS_PADDING = 0.01  # degrees, applied on every side


class BootstrapError(ProcessingError):
    """Raised when bounds cannot be derived because nothing resolved."""


@dataclass(frozen=True)
class BootstrapResult:
    bounds: GeographicBounds
    batch: GeocodeBatchResult


def resolved_points(zones: Iterable[ZoneCandidate]) -> list[GeoPoint]:
    return [z.resolved_geo for z in zones if z.resolved_geo is not None]


def calculate_bounds(points: Iterable[GeoPoint], padding: float = BOUNDS_PADDING) -> GeographicBounds:
    """Smallest rectangle holding every point, grown by ``padding`` on each side.

    Raises:
        ValueError: no points were given.
    """
    pts = list(points)
    if not pts:
        raise ValueError("cannot calculate bounds without coordinates")
    if padding <= 0:
        raise ValueError(f"padding must be positive, got {padding}")
    return GeographicBounds(
        min_lat=min(p.lat for p in pts) - padding,
        max_lat=max(p.lat for p in pts) + padding,
        min_lng=min(p.lng for p in pts) - padding,
        max_lng=max(p.lng for p in pts) + padding,
    )


def bootstrap_bounds(
    zones: list[ZoneCandidate],
    extent: CanvasExtent,
    on_progress: ProgressCallback | None = None,
    *,
    client: GeocodingClient,
    error_log: ErrorLogBuffer | None = None,
    source: str = "<input>",
) -> BootstrapResult:
    """Geocode with placeholder bounds, derive real bounds, re-project.

    Raises:
        BootstrapError: no candidate ended up with a resolved coordinate.
        GeocodeCancelledError: the batch was cancelled.
    """
    batch = batch_geocode_zones(
        zones,
        WORLD_BOUNDS,
        extent,
        on_progress,
        client=client,
        error_log=error_log,
        source=source,
    )

    points = resolved_points(zones)
    if not points:
        if error_log is not None:
            error_log.add(
                source=source,
                row=-1,
                error_type="BOOTSTRAP_FAILED",
                message=f"none of {batch.attempted} address(es) could be geocoded",
            )
        raise BootstrapError(
            f"cannot derive geographic bounds: none of {batch.attempted} address(es) could be geocoded"
        )

    bounds = calculate_bounds(points)
    # Positions from the placeholder pass are thrown away here
    moved = reproject_zones(zones, bounds, extent)
    logger.info(
        "derived bounds lat=[%.6f, %.6f] lng=[%.6f, %.6f] from %d coordinate(s); reprojected %d zone(s)",
        bounds.min_lat,
        bounds.max_lat,
        bounds.min_lng,
        bounds.max_lng,
        len(points),
        moved,
    )
    return BootstrapResult(bounds=bounds, batch=batch)
