from __future__ import annotations

import argparse
import logging
import os
import signal
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict
from pathlib import Path
from typing import Any

import psycopg2
import yaml
from dotenv import load_dotenv

from zone_import.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from zone_import.db.map_store import MapStore, StoreError
from zone_import.logging.init import log_summary, setup_logging
from zone_import.models.config_models import ImportConfig
from zone_import.models.geo import CanvasExtent
from zone_import.models.processing_result import ImportResult
from zone_import.services.export import zones_to_landmark_csv
from zone_import.services.orchestrator import (
    ImportRejectedError,
    ProcessingError,
    describe_mapping,
    run_import,
)
from zone_import.services.progress import GeocodeProgress
from zone_import.services.summary import render_summary_line
from zone_import.tabular.columns import analyze_columns
from zone_import.tabular.reader import TabularReadError, read_csv_file

"""CLI entrypoint.

Flow:
- Load .env (overrides the process environment) and the YAML config
- Connect to PostgreSQL unless DISABLE_DB_CONNECT=1 or no --map-id is given
  (mock mode: the import runs, nothing is written)
- Run the import, print the SUMMARY line, optionally export landmarks

Exit codes: 0 all rows imported, 2 imported with drops, 1 fatal.
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1


@contextmanager
def _db_connection(cfg: ImportConfig) -> Iterator[Any]:  # pragma: no cover (thin wrapper)
    """Yield a psycopg2 cursor; commit on success, roll back on error.

    Connection settings, first match wins:
        1. DATABASE_URL / PGDSN (a full DSN)
        2. PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
        3. the ``database`` section of the config
    ``.env`` values have already been loaded over the process environment.
    """
    db_cfg = cfg.database
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if not dsn:
        host = os.getenv("PGHOST", db_cfg.host or "localhost")
        port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
        user = os.getenv("PGUSER", db_cfg.user or "postgres")
        password = os.getenv("PGPASSWORD", db_cfg.password or "")
        database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
        dsn = f"host={host} port={port} user={user} dbname={database}"
        if password:
            dsn += f" password={password}"

    conn = psycopg2.connect(dsn)
    try:
        conn.autocommit = False
        with conn.cursor() as cur:
            try:
                yield cur
            except BaseException:
                conn.rollback()
                raise
            conn.commit()
    finally:
        conn.close()


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env with python-dotenv; its values win over the process environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="zone_import",
        description="CSV -> map zones importer (geocodes addresses, places zones on the canvas)",
    )
    p.add_argument("csv", type=Path, help="CSV file to import")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="YAML config path")
    p.add_argument("--map-id", help="Map receiving the zones (omit for a dry run)")
    p.add_argument("--export-landmarks", type=Path, metavar="PATH", help="Also write a landmark CSV")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument(
        "--inspect-data",
        action="store_true",
        help="Print headers, suggested column mapping and first rows then exit",
    )
    return p.parse_args(argv)


def _inspect_data(path: Path, logger: logging.Logger) -> int:
    try:
        rows = read_csv_file(path)
    except TabularReadError as e:
        logger.error(f"inspect: {e}")
        return EXIT_FATAL
    if not rows:
        print("inspect: no data rows")
        return EXIT_SUCCESS_ALL
    print(f"FILE: {path.name} rows={len(rows)}")
    print(f"  headers={list(rows[0].keys())}")
    print(f"  suggested_mapping={describe_mapping(analyze_columns(rows))}")
    print(f"  sample_rows={rows[:3]}")
    return EXIT_SUCCESS_ALL


def _report_rejection(e: ImportRejectedError, logger: logging.Logger) -> None:
    logger.error(f"import rejected: {e}")
    suggested = e.report.suggested_bounds
    if suggested is not None:
        snippet = yaml.safe_dump({"geographic_bounds": asdict(suggested)}, sort_keys=False)
        print("Suggested config:")
        print(snippet.rstrip())


def _export_landmarks(
    path: Path, result: ImportResult, extent: CanvasExtent, logger: logging.Logger
) -> None:
    if result.bounds is None:
        logger.warning("landmark export skipped: no geographic bounds available")
        return
    text = zones_to_landmark_csv(result.zones, result.bounds, extent)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    logger.info(f"landmarks written: {path} ({len(result.zones)} zone(s))")


@contextmanager
def _cancel_on_sigint(event: threading.Event) -> Iterator[None]:
    """First Ctrl-C sets ``event`` (geocoding stops cleanly), a second one interrupts."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _handler(signum, frame):
        if event.is_set():
            raise KeyboardInterrupt
        logging.getLogger("zone_import").warning("interrupt received, cancelling geocoding")
        event.set()

    previous = signal.signal(signal.SIGINT, _handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def _import(
    cfg: ImportConfig, args: argparse.Namespace, store: MapStore | None
) -> tuple[ImportResult, CanvasExtent]:
    bounds = None
    extent = cfg.canvas
    if store is not None:
        record = store.read_map(args.map_id)
        bounds = record.geographic_bounds
        extent = record.canvas
    cancel_event = threading.Event()
    with _cancel_on_sigint(cancel_event), GeocodeProgress() as progress:
        result = run_import(
            cfg,
            args.csv,
            store=store,
            map_id=args.map_id,
            bounds=bounds,
            extent=extent,
            on_progress=progress,
            cancel_event=cancel_event,
        )
    return result, extent


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # only read sys.argv when no list was passed; cli_main([]) must not pick up pytest's args
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        for h in logger.handlers:
            h.setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
        logger.debug("debug mode enabled")

    if args.inspect_data:
        return _inspect_data(args.csv, logger)

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if not args.csv.exists():
        logger.error(f"file not found: {args.csv}")
        return EXIT_FATAL

    logger.info(f"Importing zones from: {args.csv}")

    disable_db = os.getenv("DISABLE_DB_CONNECT") == "1"
    db_mode = "mock"
    try:
        if disable_db or args.map_id is None:
            logger.debug("no database connection -> mock mode")
            result, extent = _import(cfg, args, store=None)
        else:
            with _db_connection(cfg) as cur:
                db_mode = "live"
                result, extent = _import(cfg, args, store=MapStore(cur))
    except ImportRejectedError as e:
        _report_rejection(e, logger)
        return EXIT_FATAL
    except ProcessingError as e:
        logger.error(f"processing: {e}")
        return EXIT_FATAL
    except (TabularReadError, StoreError) as e:
        logger.error(f"{db_mode}: {e}")
        return EXIT_FATAL
    except psycopg2.Error as e:
        logger.error(f"database: {e}")
        return EXIT_FATAL
    except KeyboardInterrupt:
        logger.error("interrupted; nothing was imported")
        return EXIT_FATAL

    logger.info(f"mode={db_mode} zones={result.imported_zones} persisted={result.persisted}")
    if result.bounds_derived and result.bounds is not None:
        logger.info(f"derived geographic bounds: {result.bounds.to_dict()}")

    if args.export_landmarks is not None:
        _export_landmarks(args.export_landmarks, result, extent, logger)

    summary_line = render_summary_line(result)
    log_summary(summary_line[len("SUMMARY "):])

    if result.is_partial:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
