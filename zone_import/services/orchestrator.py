from __future__ import annotations

import logging
import threading
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..db.map_store import MapStore
from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import ImportConfig
from ..models.geo import CanvasExtent, GeographicBounds
from ..models.mapping import ColumnMapping, ColumnMappingError
from ..models.processing_result import ImportResult
from ..tabular.columns import analyze_columns
from ..tabular.normalizer import rows_to_records
from ..tabular.reader import TabularRow, parse_csv_text, read_csv_file
from .batch_geocoder import GeocodeBatchResult, ProgressCallback, batch_geocode_zones
from .bounds import BootstrapError, bootstrap_bounds
from .errors import ProcessingError
from .gate import ImportRejectedError, check_import
from .geocoding import GeocodingClient
from .projection import prepare_zones_for_canvas
from .throttle import GeocodeCancelledError

"""Import orchestration: tabular file -> resolved zone candidates -> store.

Control flow:
1. parse the file (empty => NoDataError)
2. suggest a column mapping, apply configured overrides
3. normalize rows (blank names are dropped and counted)
4. position candidates (pure projection pass)
5. geocode pending addresses: with configured bounds directly, otherwise
   via the bounds bootstrap
6. gate: every geographic position must land on the canvas
7. apply the unresolved policy and hand resolved candidates to the store

Fatal outcomes raise a ProcessingError subclass; graceful degradations are
reported in ImportResult.
"""

__all__ = [
    "BootstrapError",
    "GeocodeCancelledError",
    "ImportRejectedError",
    "NoDataError",
    "ProcessingError",
    "UnresolvedZonesError",
    "describe_mapping",
    "run_import",
]

logger = logging.getLogger(__name__)


class NoDataError(ProcessingError):
    """The file has no header, no rows, or no row with a name."""


class UnresolvedZonesError(ProcessingError):
    """Some addresses stayed unresolved and the policy is ``abort``."""

    def __init__(self, pending: int, total: int) -> None:
        super().__init__(
            f"{pending} of {total} zone(s) could not be geocoded; nothing was imported"
        )
        self.pending = pending
        self.total = total


def _load_rows(source: Path | str) -> tuple[list[TabularRow], str]:
    if isinstance(source, Path):
        return read_csv_file(source), source.name
    return parse_csv_text(source), "<input>"


def run_import(
    config: ImportConfig,
    source: Path | str,
    *,
    client: GeocodingClient | None = None,
    store: MapStore | None = None,
    map_id: str | None = None,
    bounds: GeographicBounds | None = None,
    extent: CanvasExtent | None = None,
    mapping: ColumnMapping | None = None,
    on_progress: ProgressCallback | None = None,
    cancel_event: threading.Event | None = None,
    error_log: ErrorLogBuffer | None = None,
) -> ImportResult:
    """Run one import attempt.

    Args:
        config: Import configuration (canvas, bounds, geocoding, mapping overrides)
        source: Path to a CSV file, or the CSV text itself
        client: Geocoding client; built from ``config.geocoding`` when omitted
        store: Persistence collaborator (None = mock mode, nothing written)
        map_id: Map receiving the zones (required for persistence)
        bounds / extent: Override the configured bounds/canvas (e.g. from the stored map)
        mapping: Fully chosen column mapping; otherwise suggested + config overrides
        on_progress: Geocoding progress callback ``(current, total, address)``
        cancel_event: Set to abort geocoding; the partial result is discarded.
            A passed-in ``client`` is rebound to this event, replacing its own.

    Raises:
        NoDataError, BootstrapError, ImportRejectedError, UnresolvedZonesError,
        GeocodeCancelledError
    """
    start_time = datetime.now(UTC)
    error_log = error_log if error_log is not None else ErrorLogBuffer(Path(config.error_log_dir))
    extent = extent or config.canvas
    bounds = bounds if bounds is not None else config.geographic_bounds

    try:
        return _run(
            config,
            source,
            client=client,
            store=store,
            map_id=map_id,
            bounds=bounds,
            extent=extent,
            mapping=mapping,
            on_progress=on_progress,
            cancel_event=cancel_event,
            error_log=error_log,
            start_time=start_time,
        )
    finally:
        try:
            path = error_log.flush()
        except OSError as e:
            logger.warning("could not write error log: %s", e)
        else:
            if path is not None:
                logger.info("error log written: %s", path)


def _run(
    config: ImportConfig,
    source: Path | str,
    *,
    client: GeocodingClient | None,
    store: MapStore | None,
    map_id: str | None,
    bounds: GeographicBounds | None,
    extent: CanvasExtent,
    mapping: ColumnMapping | None,
    on_progress: ProgressCallback | None,
    cancel_event: threading.Event | None,
    error_log: ErrorLogBuffer,
    start_time: datetime,
) -> ImportResult:
    rows, source_name = _load_rows(source)
    if not rows:
        raise NoDataError(f"no data found in {source_name}")

    if mapping is None:
        try:
            mapping = analyze_columns(rows).with_overrides(
                config.column_mapping, config.additional_columns or None
            )
        except ColumnMappingError as e:
            raise ProcessingError(f"column mapping: {e}") from e
    logger.info("column mapping: %s", {k: v for k, v in mapping.role_columns().items() if v})

    normalized = rows_to_records(rows, mapping, error_log=error_log, source=source_name)
    if not normalized.records:
        raise NoDataError(
            f"no rows with a name in {source_name} "
            f"(name column {mapping.name_column!r}, {normalized.dropped_rows} row(s) dropped)"
        )

    zones = prepare_zones_for_canvas(normalized.records, bounds, extent)
    batch: GeocodeBatchResult | None = None
    bounds_derived = False

    if any(z.needs_geocoding for z in zones):
        if client is None:
            client = GeocodingClient(config.geocoding, cancel_event=cancel_event)
        elif cancel_event is not None:
            client.cancel_event = cancel_event
        try:
            if bounds is None:
                boot = bootstrap_bounds(
                    zones,
                    extent,
                    on_progress,
                    client=client,
                    error_log=error_log,
                    source=source_name,
                )
                bounds, batch, bounds_derived = boot.bounds, boot.batch, True
            else:
                batch = batch_geocode_zones(
                    zones,
                    bounds,
                    extent,
                    on_progress,
                    client=client,
                    error_log=error_log,
                    source=source_name,
                )
        except GeocodeCancelledError:
            logger.warning("geocoding cancelled; discarding %d candidate(s)", len(zones))
            raise
        except BootstrapError as e:
            logger.error("bounds bootstrap failed: %s", e)
            raise

    report = check_import(zones, bounds, extent)
    if not report.accepted:
        error_log.add(
            source=source_name, row=-1, error_type="GATE_REJECTED", message=report.describe()
        )
        raise ImportRejectedError(report)

    pending = [z for z in zones if z.needs_geocoding]
    unresolved_dropped = 0
    if pending:
        if config.unresolved_policy == "drop":
            for zone in pending:
                error_log.add(
                    source=source_name,
                    row=zone.source_row,
                    error_type="UNRESOLVED_DROPPED",
                    message=f"{zone.content.title}: {zone.source_address}",
                )
            zones = [z for z in zones if not z.needs_geocoding]
            unresolved_dropped = len(pending)
            logger.warning("dropping %d zone(s) whose address could not be geocoded", unresolved_dropped)
        else:
            raise UnresolvedZonesError(pending=len(pending), total=len(zones))

    persisted = False
    if store is not None and map_id is not None:
        written = store.write_map_zones(map_id, zones, bounds if bounds_derived else None)
        persisted = True
        logger.info(
            "map=%s replaced %d zone(s) with %d in %.2fs",
            map_id,
            written.deleted_zones,
            written.inserted_zones,
            written.elapsed_seconds,
        )
    else:
        logger.debug("mock mode: %d zone(s) not persisted", len(zones))

    end_time = datetime.now(UTC)
    return ImportResult(
        total_rows=normalized.total_rows,
        dropped_rows=normalized.dropped_rows,
        geocode_attempted=batch.attempted if batch else 0,
        geocode_succeeded=batch.succeeded if batch else 0,
        geocode_failed=batch.failed if batch else 0,
        unresolved_dropped=unresolved_dropped,
        bounds=bounds,
        bounds_derived=bounds_derived,
        persisted=persisted,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        zones=zones,
    )


def describe_mapping(mapping: ColumnMapping) -> dict[str, Any]:
    """Role -> header view used by the CLI inspect mode."""
    data: dict[str, Any] = {k: v for k, v in mapping.role_columns().items() if v}
    if mapping.additional_columns:
        data["additional_columns"] = list(mapping.additional_columns)
    return data
