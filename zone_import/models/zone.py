from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Union

from .geo import GeoPoint
from .record import ShapeType

"""ZoneCandidate and shape variants.

Each shape type is its own class so a circle always has a radius and a
rectangle always has a size. ``anchor`` is the single canvas point a shape is
positioned by (the centre for rectangles and circles); projection only ever
moves anchors.
"""

__all__ = [
    "CircleShape",
    "DEFAULT_CIRCLE_RADIUS",
    "DEFAULT_RECTANGLE_SIZE",
    "PendingGeocodeError",
    "PointShape",
    "RectangleShape",
    "Shape",
    "ZoneCandidate",
    "ZoneContent",
    "make_shape",
    "new_zone_id",
]

DEFAULT_RECTANGLE_SIZE = 40.0
DEFAULT_CIRCLE_RADIUS = 20.0


class PendingGeocodeError(Exception):
    """Raised when a candidate with a placeholder position is about to leave the pipeline."""


@dataclass(frozen=True)
class PointShape:
    x: float
    y: float
    shape_type: ShapeType = field(default="point", init=False)

    @property
    def anchor(self) -> tuple[float, float]:
        return (self.x, self.y)

    def moved_to(self, anchor: tuple[float, float]) -> PointShape:
        return PointShape(x=anchor[0], y=anchor[1])

    def coordinates(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class RectangleShape:
    x: float  # top-left
    y: float
    width: float
    height: float
    shape_type: ShapeType = field(default="rectangle", init=False)

    @property
    def anchor(self) -> tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    def moved_to(self, anchor: tuple[float, float]) -> RectangleShape:
        return RectangleShape(
            x=anchor[0] - self.width / 2,
            y=anchor[1] - self.height / 2,
            width=self.width,
            height=self.height,
        )

    def coordinates(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class CircleShape:
    x: float  # centre
    y: float
    radius: float
    shape_type: ShapeType = field(default="circle", init=False)

    @property
    def anchor(self) -> tuple[float, float]:
        return (self.x, self.y)

    def moved_to(self, anchor: tuple[float, float]) -> CircleShape:
        return CircleShape(x=anchor[0], y=anchor[1], radius=self.radius)

    def coordinates(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "radius": self.radius}


Shape = Union[PointShape, RectangleShape, CircleShape]


def make_shape(shape_type: ShapeType | None, anchor: tuple[float, float]) -> Shape:
    """Build a shape of the given type centred on ``anchor`` (point when unset)."""
    if shape_type == "rectangle":
        return RectangleShape(
            x=0.0, y=0.0, width=DEFAULT_RECTANGLE_SIZE, height=DEFAULT_RECTANGLE_SIZE
        ).moved_to(anchor)
    if shape_type == "circle":
        return CircleShape(x=anchor[0], y=anchor[1], radius=DEFAULT_CIRCLE_RADIUS)
    return PointShape(x=anchor[0], y=anchor[1])


def new_zone_id() -> str:
    return uuid.uuid4().hex


@dataclass
class ZoneContent:
    title: str
    description: str = ""
    category: str | None = None
    images: list[str] = field(default_factory=list)
    videos: list[str] = field(default_factory=list)
    links: list[dict[str, str]] = field(default_factory=list)  # {"label", "url"}

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "title": self.title,
            "description": self.description,
            "images": list(self.images),
            "videos": list(self.videos),
            "links": [dict(link) for link in self.links],
        }
        if self.category is not None:
            data["category"] = self.category
        return data


@dataclass
class ZoneCandidate:
    """A positioned, not-yet-persisted zone.

    ``needs_geocoding=True`` means ``shape`` sits at a grid placeholder and
    must not be treated as final. The batch geocoder updates candidates in
    place.
    """
    id: str
    shape: Shape
    content: ZoneContent
    source_address: str | None = None
    needs_geocoding: bool = False
    resolved_geo: GeoPoint | None = None
    source_row: int = -1  # data row the candidate came from

    @property
    def shape_type(self) -> ShapeType:
        return self.shape.shape_type

    @property
    def pixel_coordinates(self) -> tuple[float, float]:
        return self.shape.anchor

    def move_to(self, anchor: tuple[float, float]) -> None:
        self.shape = self.shape.moved_to(anchor)

    def to_record(self) -> dict[str, Any]:
        """Payload for the persistence collaborator."""
        if self.needs_geocoding:
            raise PendingGeocodeError(
                f"zone {self.id} ({self.content.title!r}) is still waiting for geocoding"
            )
        return {
            "id": self.id,
            "type": self.shape_type,
            "coordinates": self.shape.coordinates(),
            "content": self.content.to_dict(),
        }
