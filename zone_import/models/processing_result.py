from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .geo import GeographicBounds
from .zone import ZoneCandidate

"""Processing result model for one import run.

Aggregates the statistics the caller reports (dropped rows, geocoding
successes and failures) together with the candidates that were handed to the
persistence collaborator.
"""

__all__ = [
    "ImportResult",
]


@dataclass(frozen=True)
class ImportResult:
    total_rows: int  # rows parsed from the file
    dropped_rows: int  # rows without a name
    geocode_attempted: int
    geocode_succeeded: int
    geocode_failed: int
    unresolved_dropped: int  # candidates removed under unresolved_policy=drop
    bounds: GeographicBounds | None  # bounds the final positions were computed with
    bounds_derived: bool  # True when bounds were bootstrapped from the import
    persisted: bool
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    zones: list[ZoneCandidate] = field(default_factory=list)

    @property
    def imported_zones(self) -> int:
        return len(self.zones)

    @property
    def is_partial(self) -> bool:
        return self.dropped_rows > 0 or self.unresolved_dropped > 0
