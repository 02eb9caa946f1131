from __future__ import annotations

from dataclasses import dataclass

"""Geographic and canvas value types.

GeographicBounds is the lat/lng rectangle a map works in; CanvasExtent is the
pixel area zones are placed within. Both validate themselves on construction so
that the projector never has to divide by a zero-width range.
"""

__all__ = [
    "CanvasExtent",
    "GeoPoint",
    "GeographicBounds",
    "InvalidBoundsError",
    "WORLD_BOUNDS",
]


class InvalidBoundsError(ValueError):
    """Raised when a bounds rectangle is degenerate or inverted."""


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lng: float


@dataclass(frozen=True)
class GeographicBounds:
    """Lat/lng rectangle in degrees.

    Invariant: min_lat < max_lat and min_lng < max_lng. The world-sized
    placeholder used while bootstrapping satisfies it too.
    """
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    def __post_init__(self) -> None:
        if not self.min_lat < self.max_lat:
            raise InvalidBoundsError(
                f"degenerate latitude range: min_lat={self.min_lat} max_lat={self.max_lat}"
            )
        if not self.min_lng < self.max_lng:
            raise InvalidBoundsError(
                f"degenerate longitude range: min_lng={self.min_lng} max_lng={self.max_lng}"
            )

    @property
    def lat_range(self) -> float:
        return self.max_lat - self.min_lat

    @property
    def lng_range(self) -> float:
        return self.max_lng - self.min_lng

    def contains(self, point: GeoPoint) -> bool:
        return (
            self.min_lat <= point.lat <= self.max_lat
            and self.min_lng <= point.lng <= self.max_lng
        )

    def to_dict(self) -> dict[str, float]:
        # Key names follow the stored map JSON
        return {
            "minLat": self.min_lat,
            "maxLat": self.max_lat,
            "minLng": self.min_lng,
            "maxLng": self.max_lng,
        }

    @staticmethod
    def from_dict(data: dict[str, float]) -> GeographicBounds:
        """Build bounds from either snake_case config keys or camelCase map JSON."""
        def pick(snake: str, camel: str) -> float:
            if snake in data:
                return float(data[snake])
            return float(data[camel])

        return GeographicBounds(
            min_lat=pick("min_lat", "minLat"),
            max_lat=pick("max_lat", "maxLat"),
            min_lng=pick("min_lng", "minLng"),
            max_lng=pick("max_lng", "maxLng"),
        )


WORLD_BOUNDS = GeographicBounds(min_lat=-90.0, max_lat=90.0, min_lng=-180.0, max_lng=180.0)


@dataclass(frozen=True)
class CanvasExtent:
    """Pixel width/height of the working area."""
    width: float
    height: float

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"canvas extent must be positive: {self.width}x{self.height}")

    def contains(self, x: float, y: float) -> bool:
        return 0 <= x <= self.width and 0 <= y <= self.height
