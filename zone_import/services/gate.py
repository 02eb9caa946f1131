from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from ..models.geo import CanvasExtent, GeographicBounds
from ..models.zone import ZoneCandidate
from .bounds import calculate_bounds, resolved_points
from .errors import ProcessingError
from .projection import position_for

"""Final validation before zones leave the pipeline.

Every candidate positioned from a geographic coordinate is projected again and
must land inside the canvas. One stray zone rejects the whole import; nothing
is clipped or dropped. The report carries suggested bounds (same min/max plus
padding as the bootstrap) so the user can widen the area or re-run with
derived bounds.
"""

__all__ = [
    "GateReport",
    "ImportRejectedError",
    "check_import",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GateReport:
    accepted: bool
    checked: int  # candidates with a geographic position
    out_of_bounds: int
    current_bounds: GeographicBounds | None
    suggested_bounds: GeographicBounds | None = None
    out_of_bounds_titles: tuple[str, ...] = ()

    def describe(self) -> str:
        if self.accepted:
            return f"all {self.checked} positioned zone(s) fall inside the canvas"
        text = f"{self.out_of_bounds} of {self.checked} zone(s) fall outside the canvas"
        if self.current_bounds is not None:
            text += f"; current bounds {self.current_bounds.to_dict()}"
        if self.suggested_bounds is not None:
            text += f"; suggested bounds {self.suggested_bounds.to_dict()}"
        return text

    def raise_if_rejected(self) -> None:
        if not self.accepted:
            raise ImportRejectedError(self)


class ImportRejectedError(ProcessingError):
    """Raised when resolved positions fall outside the canvas."""

    def __init__(self, report: GateReport) -> None:
        super().__init__(report.describe())
        self.report = report


def check_import(
    zones: Sequence[ZoneCandidate],
    bounds: GeographicBounds | None,
    extent: CanvasExtent,
) -> GateReport:
    checked = 0
    outside: list[str] = []
    for zone in zones:
        if zone.resolved_geo is None:
            continue
        checked += 1
        x, y = position_for(zone.resolved_geo, bounds, extent)
        if not extent.contains(x, y):
            outside.append(zone.content.title)

    if not outside:
        return GateReport(accepted=True, checked=checked, out_of_bounds=0, current_bounds=bounds)

    suggested = calculate_bounds(resolved_points(zones))
    report = GateReport(
        accepted=False,
        checked=checked,
        out_of_bounds=len(outside),
        current_bounds=bounds,
        suggested_bounds=suggested,
        out_of_bounds_titles=tuple(outside),
    )
    logger.warning("import rejected: %s", report.describe())
    return report
