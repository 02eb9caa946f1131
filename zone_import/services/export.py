from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import pandas as pd

from ..models.geo import CanvasExtent, GeographicBounds
from ..models.zone import ZoneCandidate
from .projection import canvas_to_geo

"""Landmark export for globe viewers.

Zones are converted back from canvas pixels to lat/lng (rectangles and circles
by their centre) and written as ``name,lon,lat,icon,color,contentUrl`` CSV.
"""

__all__ = [
    "DEFAULT_COLOR",
    "LANDMARK_COLUMNS",
    "zones_to_landmark_csv",
    "zones_to_landmarks",
]

DEFAULT_COLOR = "#0066CC"
LANDMARK_COLUMNS = ["name", "lon", "lat", "icon", "color", "contentUrl"]


def _content_url(zone: ZoneCandidate) -> str:
    if zone.content.videos:
        return zone.content.videos[0]
    if zone.content.links:
        return zone.content.links[0].get("url", "")
    return ""


def zones_to_landmarks(
    zones: Sequence[ZoneCandidate],
    bounds: GeographicBounds | None,
    extent: CanvasExtent,
    *,
    default_icon: str = "",
    default_color: str = DEFAULT_COLOR,
) -> list[dict[str, Any]]:
    if bounds is None:
        raise ValueError("geographic bounds are required to export landmarks")

    landmarks: list[dict[str, Any]] = []
    for zone in zones:
        x, y = zone.pixel_coordinates
        point = canvas_to_geo(x, y, bounds, extent)
        landmarks.append(
            {
                "name": zone.content.title or "Unnamed Zone",
                "lon": point.lng,
                "lat": point.lat,
                "icon": default_icon,
                "color": default_color,
                "contentUrl": _content_url(zone),
            }
        )
    return landmarks


def zones_to_landmark_csv(
    zones: Sequence[ZoneCandidate],
    bounds: GeographicBounds | None,
    extent: CanvasExtent,
    **kwargs: Any,
) -> str:
    landmarks = zones_to_landmarks(zones, bounds, extent, **kwargs)
    df = pd.DataFrame(landmarks, columns=LANDMARK_COLUMNS)
    # 7 decimals ~ 1 cm, enough for GPS precision
    return df.to_csv(index=False, float_format="%.7f", lineterminator="\n")
