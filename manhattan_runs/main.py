from __future__ import annotations

import argparse
import logging
from pathlib import Path
import webbrowser
from typing import Optional, Sequence

from .auth import TokenError, credentials_from_env
from .config import (
    BOUNDARY_FILE,
    MAP_OUTPUT_FILE,
    OUTPUT_FILE,
    SNAP_TO_ROADS_ENABLED,
    SYNC_WINDOW_DAYS,
)
from .errors import BoundaryFormatError, ConfigError, StravaAPIError
from .geometry import load_boundary
from .render import build_runs_map, write_geojson
from .storage import load_runs
from .sync import SyncOptions, SyncOrchestrator

EXIT_OK = 0
EXIT_FATAL = 1


def _setup_logging() -> None:
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level=logging.INFO,
            format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="manhattan_runs",
        description="Sync Strava runs that pass through a region and map them.",
    )
    sub = parser.add_subparsers(dest="command")

    sync = sub.add_parser("sync", help="Fetch, filter and persist runs (default)")
    sync.add_argument("--days", type=int, default=SYNC_WINDOW_DAYS, help="Trailing window in days")
    sync.add_argument("--boundary", default=BOUNDARY_FILE, help="GeoJSON boundary file")
    sync.add_argument("--output", default=OUTPUT_FILE, help="Runs JSON file to overwrite")
    sync.add_argument(
        "--no-snap",
        action="store_true",
        default=not SNAP_TO_ROADS_ENABLED,
        help="Skip road snapping even when a Mapbox token is configured",
    )

    render = sub.add_parser("render", help="Render persisted runs to an HTML map")
    render.add_argument("--input", default=OUTPUT_FILE, help="Runs JSON file to read")
    render.add_argument("--boundary", default=BOUNDARY_FILE, help="GeoJSON boundary to outline")
    render.add_argument("--output", default=MAP_OUTPUT_FILE, help="HTML map to write")
    render.add_argument("--geojson", default=None, help="Optional GeoJSON overlay output path")
    render.add_argument("--open", action="store_true", help="Open the map in a browser")
    return parser


def run_sync_command(args: argparse.Namespace) -> int:
    try:
        credentials = credentials_from_env()
        options = SyncOptions(
            boundary_path=args.boundary,
            output_path=args.output,
            window_days=args.days,
            snap_to_roads=not args.no_snap,
        )
        summary = SyncOrchestrator(credentials, options).run()
    except ConfigError as exc:
        logging.error("Configuration error: %s", exc)
        return EXIT_FATAL
    except FileNotFoundError as exc:
        logging.error("Boundary file not found: %s", exc)
        return EXIT_FATAL
    except BoundaryFormatError as exc:
        logging.error("Invalid boundary file '%s': %s", args.boundary, exc)
        return EXIT_FATAL
    except TokenError as exc:
        logging.error("Could not obtain a Strava access token: %s", exc)
        return EXIT_FATAL
    except StravaAPIError as exc:
        logging.error("Listing activities failed: %s", exc)
        return EXIT_FATAL
    logging.info("Saved %d runs to %s", summary.accepted, summary.output_path)
    return EXIT_OK


def run_render_command(args: argparse.Namespace) -> int:
    try:
        runs = load_runs(args.input)
    except ValueError as exc:
        logging.error("Cannot read runs file '%s': %s", args.input, exc)
        return EXIT_FATAL

    boundary = None
    if args.boundary and Path(args.boundary).exists():
        try:
            boundary = load_boundary(args.boundary)
        except BoundaryFormatError as exc:
            logging.warning("Ignoring boundary outline: %s", exc)

    build_runs_map(runs, boundary=boundary, output_html_path=args.output)
    if args.geojson:
        write_geojson(args.geojson, runs)
    if args.open:
        webbrowser.open(Path(args.output).resolve().as_uri())
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    _setup_logging()
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        args = parser.parse_args(["sync"])
    if args.command == "render":
        return run_render_command(args)
    return run_sync_command(args)
