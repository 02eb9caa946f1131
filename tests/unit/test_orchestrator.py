from __future__ import annotations

import logging
import threading
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from zone_import.db.map_store import WriteResult
from zone_import.logging.error_log import ErrorLogBuffer
from zone_import.models.config_models import ImportConfig
from zone_import.models.geo import CanvasExtent, GeographicBounds
from zone_import.models.mapping import ColumnMapping
from zone_import.services.orchestrator import (
    GeocodeCancelledError,
    NoDataError,
    ProcessingError,
    UnresolvedZonesError,
    describe_mapping,
    run_import,
)

EXTENT = CanvasExtent(width=1000, height=800)
BOUNDS = GeographicBounds(min_lat=39.5, max_lat=41.0, min_lng=-75.5, max_lng=-74.0)


@pytest.fixture()
def error_log(tmp_path: Path) -> ErrorLogBuffer:
    return ErrorLogBuffer(tmp_path / "logs")


@pytest.fixture()
def store() -> MagicMock:
    store = MagicMock()
    store.write_map_zones.return_value = WriteResult(inserted_zones=2, deleted_zones=1, elapsed_seconds=0.25)
    return store


def _config(**kwargs) -> ImportConfig:
    return ImportConfig(canvas=EXTENT, **kwargs)


def test_empty_file_is_no_data(geocoding_client, error_log):
    with pytest.raises(NoDataError):
        run_import(_config(), "", client=geocoding_client, error_log=error_log)


def test_all_names_blank_is_no_data(geocoding_client, error_log):
    with pytest.raises(NoDataError, match="2 row"):
        run_import(_config(), "Name,Notes\n,a\n,b\n", client=geocoding_client, error_log=error_log)


def test_coordinates_only_import_needs_no_geocoder(error_log):
    client = MagicMock()
    result = run_import(
        _config(geographic_bounds=BOUNDS),
        "Name,Lat,Lng\nA,40.0,-75.0\nB,40.5,-74.5\n",
        client=client,
        error_log=error_log,
    )
    client.geocode.assert_not_called()
    assert result.imported_zones == 2
    assert result.geocode_attempted == 0
    assert result.bounds == BOUNDS
    assert not result.bounds_derived
    assert not result.persisted


def test_blank_names_are_reported_not_fatal(geocoding_client, error_log):
    result = run_import(
        _config(geographic_bounds=BOUNDS),
        "Name,Lat,Lng\nA,40.0,-75.0\n,40.5,-74.5\n",
        client=geocoding_client,
        error_log=error_log,
    )
    assert result.total_rows == 2
    assert result.dropped_rows == 1
    assert result.is_partial
    assert error_log.file_path.exists()


def test_config_overrides_and_additional_columns(geocoding_client, error_log):
    result = run_import(
        _config(
            geographic_bounds=BOUNDS,
            column_mapping={"name": "Label"},
            additional_columns=["Phone"],
        ),
        "Title,Label,Lat,Lng,Phone\nignored,Cafe,40.0,-75.0,555\n",
        client=geocoding_client,
        error_log=error_log,
    )
    zone = result.zones[0]
    assert zone.content.title == "Cafe"
    assert zone.content.description == "Phone: 555"


def test_conflicting_overrides_are_fatal(geocoding_client, error_log):
    with pytest.raises(ProcessingError, match="column mapping"):
        run_import(
            _config(column_mapping={"name": "Name", "address": "Name"}),
            "Name\nA\n",
            client=geocoding_client,
            error_log=error_log,
        )


def test_unresolved_abort(geocoding_client, error_log):
    with pytest.raises(UnresolvedZonesError) as excinfo:
        run_import(
            _config(geographic_bounds=BOUNDS, unresolved_policy="abort"),
            'Name,Address\nA,"1 Main St, Springfield"\nB,Unknown Place\n',
            client=geocoding_client,
            error_log=error_log,
        )
    assert excinfo.value.pending == 1
    assert excinfo.value.total == 2


def test_unresolved_are_dropped_by_default(geocoding_client, error_log):
    result = run_import(
        _config(geographic_bounds=BOUNDS),
        'Name,Address\nA,"1 Main St, Springfield"\nB,Unknown Place\n',
        client=geocoding_client,
        error_log=error_log,
    )
    assert [z.content.title for z in result.zones] == ["A"]
    assert result.unresolved_dropped == 1
    assert result.geocode_failed == 1
    assert result.is_partial
    assert all(not z.needs_geocoding for z in result.zones)
    assert error_log.file_path.exists()


def test_record_without_address_or_coordinates_stays_on_grid(geocoding_client, error_log):
    result = run_import(
        _config(geographic_bounds=BOUNDS),
        "Name,Notes\nA,somewhere\n",
        client=geocoding_client,
        error_log=error_log,
    )
    assert result.zones[0].pixel_coordinates == (50.0, 50.0)
    assert not result.is_partial


def test_explicit_mapping_is_used_as_is(geocoding_client, error_log):
    mapping = ColumnMapping(name_column="B")
    result = run_import(
        _config(), "A,B\nx,y\n", client=geocoding_client, mapping=mapping, error_log=error_log
    )
    assert result.zones[0].content.title == "y"


def test_cancellation_discards_batch(geocoding_client, fake_geocoder, error_log):
    store = MagicMock()
    event = threading.Event()
    event.set()
    with pytest.raises(GeocodeCancelledError):
        run_import(
            _config(),
            'Name,Address\nA,"1 Main St, Springfield"\n',
            client=geocoding_client,
            store=store,
            map_id="m1",
            cancel_event=event,
            error_log=error_log,
        )
    store.write_map_zones.assert_not_called()
    assert geocoding_client.cancel_event is event
    assert fake_geocoder.queries == []


def test_store_receives_zones_and_derived_bounds(geocoding_client, store, error_log, caplog):
    caplog.set_level(logging.INFO, logger="zone_import")
    result = run_import(
        _config(),
        'Name,Address\nA,"1 Main St, Springfield"\nB,"2 Oak Ave, Springfield"\n',
        client=geocoding_client,
        store=store,
        map_id="m1",
        error_log=error_log,
    )
    assert result.persisted
    assert result.bounds_derived
    map_id, zones, bounds = store.write_map_zones.call_args.args
    assert map_id == "m1"
    assert len(zones) == 2
    assert bounds == result.bounds
    assert "map=m1 replaced 1 zone(s) with 2 in 0.25s" in caplog.text


def test_store_not_given_bounds_when_configured(geocoding_client, store, error_log):
    run_import(
        _config(geographic_bounds=BOUNDS),
        "Name,Lat,Lng\nA,40.0,-75.0\n",
        client=geocoding_client,
        store=store,
        map_id="m1",
        error_log=error_log,
    )
    assert store.write_map_zones.call_args.args[2] is None


def test_describe_mapping():
    mapping = ColumnMapping(name_column="Name", address_column="Addr", additional_columns=("Phone",))
    assert describe_mapping(mapping) == {
        "name_column": "Name",
        "address_column": "Addr",
        "additional_columns": ["Phone"],
    }
