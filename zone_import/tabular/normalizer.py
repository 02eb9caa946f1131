from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, field

from zone_import.logging.error_log import ErrorLogBuffer
from zone_import.models.mapping import ColumnMapping
from zone_import.models.record import SHAPE_TYPES, NormalizedRecord

from .reader import TabularRow

"""Row normalization: apply a ColumnMapping to parsed rows.

Only mapped columns are read. A coordinate pair is kept only when both halves
parse as finite numbers. Rows whose name comes out empty are dropped silently;
the drop shows up in ``NormalizeResult.dropped_rows`` (and in the error log
when one is supplied), never as an exception.
"""

__all__ = [
    "NormalizeResult",
    "rows_to_records",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizeResult:
    records: list[NormalizedRecord]
    total_rows: int
    dropped_rows: int
    dropped_row_numbers: list[int] = field(default_factory=list)


def _cell(row: TabularRow, column: str | None) -> str | None:
    if column is None:
        return None
    value = row.get(column)
    if value is None:
        return None
    return value.strip()


def _optional(row: TabularRow, column: str | None) -> str | None:
    value = _cell(row, column)
    return value if value else None


def _parse_float(value: str | None) -> float | None:
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def rows_to_records(
    rows: Sequence[TabularRow],
    mapping: ColumnMapping,
    *,
    error_log: ErrorLogBuffer | None = None,
    source: str = "<input>",
) -> NormalizeResult:
    records: list[NormalizedRecord] = []
    dropped: list[int] = []

    for index, row in enumerate(rows):
        row_number = index + 1
        name = _cell(row, mapping.name_column) or ""
        if not name:
            dropped.append(row_number)
            if error_log is not None:
                error_log.add(
                    source=source,
                    row=row_number,
                    error_type="MISSING_NAME",
                    message=f"empty value in name column {mapping.name_column!r}",
                )
            continue

        latitude = _parse_float(_cell(row, mapping.latitude_column))
        longitude = _parse_float(_cell(row, mapping.longitude_column))
        if latitude is None or longitude is None:
            latitude = longitude = None

        shape_type = None
        raw_type = _cell(row, mapping.type_column)
        if raw_type:
            lowered = raw_type.lower()
            if lowered in SHAPE_TYPES:
                shape_type = lowered

        extra = {
            col: value
            for col in mapping.additional_columns
            if (value := _cell(row, col))
        }

        records.append(
            NormalizedRecord(
                row_number=row_number,
                name=name,
                address=_optional(row, mapping.address_column),
                description=_optional(row, mapping.description_column),
                category=_optional(row, mapping.category_column),
                latitude=latitude,
                longitude=longitude,
                shape_type=shape_type,  # type: ignore[arg-type]
                extra=extra,
            )
        )

    if dropped:
        logger.info("dropped %d row(s) without a name: rows=%s", len(dropped), dropped[:20])
    logger.debug("normalized %d of %d rows", len(records), len(rows))
    return NormalizeResult(
        records=records,
        total_rows=len(rows),
        dropped_rows=len(dropped),
        dropped_row_numbers=dropped,
    )
