from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from ..logging.error_log import ErrorLogBuffer
from ..models.geo import CanvasExtent, GeographicBounds
from ..models.zone import ZoneCandidate
from .geocoding import GeocodeStatus, GeocodingClient
from .projection import position_for

"""Sequential batch geocoding of candidates waiting for a coordinate.

The loop is serial: one request at a time, paced by the client's
RequestThrottle (one second by default) to respect the provider's usage
policy. Individual misses never abort the batch; they are counted and the
candidate is left untouched at its grid placeholder.
"""

__all__ = [
    "GeocodeBatchResult",
    "ProgressCallback",
    "batch_geocode_zones",
]

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]


@dataclass(frozen=True)
class GeocodeBatchResult:
    zones: list[ZoneCandidate]  # full input list, resolved and pending mixed
    attempted: int
    succeeded: int
    failed: int  # includes not_found
    not_found: int

    @property
    def pending(self) -> list[ZoneCandidate]:
        return [z for z in self.zones if z.needs_geocoding]


def batch_geocode_zones(
    zones: list[ZoneCandidate],
    bounds: GeographicBounds | None,
    extent: CanvasExtent,
    on_progress: ProgressCallback | None = None,
    *,
    client: GeocodingClient,
    error_log: ErrorLogBuffer | None = None,
    source: str = "<input>",
) -> GeocodeBatchResult:
    """Geocode every candidate flagged ``needs_geocoding``, in order.

    Resolved candidates get their final position (``geo_to_canvas`` with
    ``bounds``, or the equirectangular fallback when ``bounds`` is None), the
    resolved coordinate, and ``needs_geocoding=False``.

    ``on_progress(current, total, address)`` is called before each request;
    it must not raise, an exception there ends the batch.

    Raises:
        GeocodeCancelledError: the client's cancel signal was set. The
            caller must discard the (partially updated) list.
    """
    queue = [z for z in zones if z.needs_geocoding and z.source_address]
    total = len(queue)
    if total == 0:
        logger.debug("no addresses need geocoding")
        return GeocodeBatchResult(zones=zones, attempted=0, succeeded=0, failed=0, not_found=0)

    logger.info("starting geocoding for %d address(es)", total)
    succeeded = 0
    failed = 0
    not_found = 0

    for current, zone in enumerate(queue, start=1):
        address = zone.source_address or ""
        if on_progress is not None:
            on_progress(current, total, address)

        result = client.geocode(address)

        point = result.point
        if result.resolved and point is not None:
            zone.move_to(position_for(point, bounds, extent))
            zone.resolved_geo = point
            zone.needs_geocoding = False
            succeeded += 1
            continue

        failed += 1
        if result.status is GeocodeStatus.NOT_FOUND:
            not_found += 1
        if error_log is not None:
            error_type = (
                "GEOCODE_NOT_FOUND" if result.status is GeocodeStatus.NOT_FOUND else "GEOCODE_FAILED"
            )
            error_log.add(
                source=source,
                row=zone.source_row,
                error_type=error_type,
                message=f"{zone.content.title}: {address}" + (f" ({result.error})" if result.error else ""),
            )

    logger.info(
        "geocoding complete: %d successful, %d failed (out of %d total)", succeeded, failed, total
    )
    return GeocodeBatchResult(
        zones=zones, attempted=total, succeeded=succeeded, failed=failed, not_found=not_found
    )
