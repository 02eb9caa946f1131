from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

"""NormalizedRecord model.

A NormalizedRecord is one source row after the column mapping has been
applied: the semantic fields a zone is built from. Records are created once
per import attempt and never persisted.
"""

__all__ = [
    "NormalizedRecord",
    "SHAPE_TYPES",
    "ShapeType",
]

ShapeType = Literal["point", "rectangle", "circle"]
SHAPE_TYPES: tuple[str, ...] = ("point", "rectangle", "circle")


@dataclass(frozen=True)
class NormalizedRecord:
    row_number: int  # 1-based data row in the source file
    name: str
    address: str | None = None
    description: str | None = None
    category: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    shape_type: ShapeType | None = None
    extra: dict[str, str] = field(default_factory=dict)  # additional columns

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None
