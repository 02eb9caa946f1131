from __future__ import annotations

import json
import time
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from psycopg2.extras import execute_values

from zone_import.models.geo import CanvasExtent, GeographicBounds
from zone_import.models.zone import PendingGeocodeError, ZoneCandidate

"""Persistence adapter for maps and their zones.

The store only offers the two operations the import needs: read a map by id
and replace a map's zones. Geometry and content travel as JSON text columns,
matching the ``"Map"`` / ``"Zone"`` tables of the map application. The store
refuses candidates that are still waiting for geocoding.

Transaction boundaries belong to the caller's connection; ``write_map_zones``
issues its statements on the cursor it was given and does not commit.
"""

__all__ = [
    "MapRecord",
    "MapStore",
    "StoreError",
    "WriteResult",
]


class StoreError(Exception):
    pass


@dataclass(frozen=True)
class MapRecord:
    id: str
    title: str
    geographic_bounds: GeographicBounds | None
    canvas: CanvasExtent


@dataclass(frozen=True)
class WriteResult:
    inserted_zones: int
    deleted_zones: int
    elapsed_seconds: float


class MapStore:
    def __init__(self, cursor: Any, *, page_size: int = 500) -> None:
        self._cursor = cursor
        self.page_size = page_size

    def read_map(self, map_id: str) -> MapRecord:
        try:
            self._cursor.execute(
                'SELECT "id", "title", "geographicBounds", "canvasConfig" FROM "Map" WHERE "id" = %s',
                (map_id,),
            )
            row = self._cursor.fetchone()
        except Exception as e:
            raise StoreError(f"failed reading map {map_id}: {e}") from e
        if row is None:
            raise StoreError(f"map not found: {map_id}")

        _id, title, bounds_json, canvas_json = row
        try:
            canvas_raw = json.loads(canvas_json)
            canvas = CanvasExtent(width=float(canvas_raw["width"]), height=float(canvas_raw["height"]))
            bounds = GeographicBounds.from_dict(json.loads(bounds_json)) if bounds_json else None
        except (ValueError, KeyError, TypeError) as e:
            raise StoreError(f"map {map_id} has invalid canvas or bounds: {e}") from e
        return MapRecord(id=_id, title=title, geographic_bounds=bounds, canvas=canvas)

    def write_map_zones(
        self,
        map_id: str,
        zones: Sequence[ZoneCandidate],
        bounds: GeographicBounds | None = None,
    ) -> WriteResult:
        """Replace the zones of ``map_id`` with ``zones``.

        ``bounds`` (when given) is stored on the map as well; used when the
        import derived the bounds itself.
        """
        try:
            records = [zone.to_record() for zone in zones]
        except PendingGeocodeError as e:
            raise StoreError(f"refusing to persist unresolved zones: {e}") from e

        now = datetime.now(UTC)
        rows = [
            (
                r["id"],
                map_id,
                r["type"],
                json.dumps(r["coordinates"]),
                json.dumps(r["content"], ensure_ascii=False),
                None,
                now,
                now,
            )
            for r in records
        ]

        start = time.time()
        try:
            if bounds is not None:
                self._cursor.execute(
                    'UPDATE "Map" SET "geographicBounds" = %s, "updatedAt" = %s WHERE "id" = %s',
                    (json.dumps(bounds.to_dict()), now, map_id),
                )
            self._cursor.execute('DELETE FROM "Zone" WHERE "mapId" = %s', (map_id,))
            deleted = self._cursor.rowcount if self._cursor.rowcount is not None else 0
            if rows:
                execute_values(
                    self._cursor,
                    'INSERT INTO "Zone" ("id", "mapId", "type", "coordinates", "content", '
                    '"style", "createdAt", "updatedAt") VALUES %s',
                    rows,
                    page_size=self.page_size,
                )
        except Exception as e:
            raise StoreError(f"failed writing zones for map {map_id}: {e}") from e
        return WriteResult(
            inserted_zones=len(rows),
            deleted_zones=max(deleted, 0),
            elapsed_seconds=time.time() - start,
        )
