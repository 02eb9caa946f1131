from __future__ import annotations

from datetime import UTC, datetime

from zone_import.models.processing_result import ImportResult
from zone_import.services.summary import _format_seconds, render_summary_line

T0 = datetime(2025, 1, 1, tzinfo=UTC)


def _result(**overrides) -> ImportResult:
    values = dict(
        total_rows=10,
        dropped_rows=0,
        geocode_attempted=0,
        geocode_succeeded=0,
        geocode_failed=0,
        unresolved_dropped=0,
        bounds=None,
        bounds_derived=False,
        persisted=False,
        start_time=T0,
        end_time=T0,
        elapsed_seconds=1.5,
    )
    values.update(overrides)
    return ImportResult(**values)


def test_render_summary_line():
    line = render_summary_line(
        _result(dropped_rows=2, geocode_attempted=5, geocode_succeeded=4, geocode_failed=1)
    )
    assert line == "SUMMARY rows=10 imported=0 dropped=2 geocoded=4/5 geocode_failed=1 elapsed_sec=1.5"


def test_format_seconds():
    assert _format_seconds(0) == "0"
    assert _format_seconds(3.0) == "3"
    assert _format_seconds(1.234) == "1.23"
    assert _format_seconds(0.0012) == "0.0012"


def test_partial_flag():
    assert not _result().is_partial
    assert _result(dropped_rows=1).is_partial
    assert _result(unresolved_dropped=1).is_partial
