from __future__ import annotations

from ..models.processing_result import ImportResult

"""SUMMARY line rendering for the zone import CLI."""


def _format_seconds(seconds: float) -> str:
    if seconds == 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        # avoid scientific notation for very small values
        return f"{seconds:.6f}".rstrip("0").rstrip(".")
    return f"{seconds:.2f}".rstrip("0").rstrip(".")


def render_summary_line(result: ImportResult) -> str:
    """Render the SUMMARY line for an import run.

    Format:
    SUMMARY rows={total} imported={zones} dropped={blank names}
    geocoded={ok}/{attempted} geocode_failed={failed} elapsed_sec={elapsed}

    Examples:
        >>> from datetime import datetime, timezone
        >>> t = datetime(2025, 1, 1, tzinfo=timezone.utc)
        >>> result = ImportResult(
        ...     total_rows=5, dropped_rows=1, geocode_attempted=3, geocode_succeeded=2,
        ...     geocode_failed=1, unresolved_dropped=1, bounds=None, bounds_derived=True,
        ...     persisted=False, start_time=t, end_time=t, elapsed_seconds=2.0,
        ... )
        >>> render_summary_line(result)
        'SUMMARY rows=5 imported=0 dropped=1 geocoded=2/3 geocode_failed=1 elapsed_sec=2'
    """
    return (
        f"SUMMARY rows={result.total_rows} "
        f"imported={result.imported_zones} "
        f"dropped={result.dropped_rows} "
        f"geocoded={result.geocode_succeeded}/{result.geocode_attempted} "
        f"geocode_failed={result.geocode_failed} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)}"
    )
