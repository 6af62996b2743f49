"""Command line entry point: sample a route and report coverage per operator.

Usage examples:

    # Route from a GeoJSON/JSON file, default 150 evenly spaced samples
    python -m route_coverage --route-file route.geojson

    # Encoded polyline, one sample every 250 m, two operators, CSV output
    python -m route_coverage --polyline "_p~iF~ps|U_ulLnnqC" \
        --interval 250 --operators mno1,mno3 --output results.csv
"""

from __future__ import annotations

import argparse
import logging
from typing import List, Optional, Sequence

from . import config
from .errors import ConfigurationError, ValidationError
from .export import check_output_path, write_results
from .geometry.projection import GeodeticProjector
from .geometry.sampling import sample_by_count, sample_by_interval
from .models import LonLat, SampledPoint
from .routes import decode_polyline, load_route_file
from .services import CoverageService
from .summary import summarize_coverage
from .tiles import DiskTileStore, LayeredTileStore, MemoryTileStore, TileCache
from .tiles.store import TileStore

LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INPUT_ERROR = 2


def _setup_logging(level: str) -> None:
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level=getattr(logging, level),
            format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Estimate mobile coverage along a route from raster coverage tiles"
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--route-file",
        help="JSON [[lon, lat], ...] or GeoJSON LineString/Feature file",
    )
    source.add_argument("--polyline", help="Encoded polyline string")
    sampling = parser.add_mutually_exclusive_group()
    sampling.add_argument(
        "--interval",
        type=float,
        help="Sample every N metres instead of a fixed count",
    )
    sampling.add_argument(
        "--count",
        type=int,
        default=config.ROUTE_SAMPLE_COUNT,
        help="Number of evenly spaced samples (default: %(default)s)",
    )
    parser.add_argument(
        "--operators",
        default=",".join(config.OPERATORS),
        help="Comma separated operator ids (default: %(default)s)",
    )
    parser.add_argument(
        "--output",
        help="Write per-point results to .csv, .json or .xlsx",
    )
    parser.add_argument(
        "--cache-dir",
        default=config.TILE_CACHE_DIR,
        help="Persistent tile cache directory (default: %(default)s)",
    )
    parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Keep tiles in memory only for this run",
    )
    parser.add_argument(
        "--clear-cache",
        action="store_true",
        help="Delete every persisted tile before running",
    )
    parser.add_argument(
        "--prune-stale",
        action="store_true",
        help="Delete persisted tiles from other data versions",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Python logging level",
    )
    return parser


def _load_route(args: argparse.Namespace) -> List[LonLat]:
    if args.polyline:
        return decode_polyline(args.polyline)
    if args.route_file:
        return load_route_file(args.route_file)
    raise ValidationError("Provide a route with --route-file or --polyline")


def _sample(route: Sequence[LonLat], args: argparse.Namespace) -> List[SampledPoint]:
    if args.interval is not None:
        return sample_by_interval(route, args.interval)
    return sample_by_count(route, args.count)


def _build_store(args: argparse.Namespace) -> TileStore:
    memory = MemoryTileStore()
    if args.no_cache or not config.TILE_CACHE_ENABLED:
        return memory
    disk = DiskTileStore(args.cache_dir)
    if args.clear_cache:
        disk.clear()
    elif args.prune_stale:
        disk.prune(keep_version=config.TILE_VERSION)
    return LayeredTileStore(memory, disk)


def _progress(done: int, total: int) -> None:
    if done == 1 or done == total or done % 25 == 0:
        LOGGER.info("Coverage progress: %d/%d points", done, total)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    _setup_logging(args.log_level)
    operators = [op.strip() for op in args.operators.split(",") if op.strip()]

    try:
        if args.output:
            check_output_path(args.output)
        route = _load_route(args)
        points = _sample(route, args)
        service = CoverageService(
            tile_cache=TileCache(store=_build_store(args)),
            projector=GeodeticProjector(),
        )
    except (ValidationError, ConfigurationError, OSError) as exc:
        LOGGER.error("Cannot analyse route: %s", exc)
        return EXIT_INPUT_ERROR

    LOGGER.info("Sampled %d points over %.0f m", len(points), points[-1].distance)
    results = service.analyze(points, operators, progress=_progress)
    summary = summarize_coverage(results, operators)
    print(summary.to_string(index=False))

    if args.output:
        write_results(args.output, results, operators, summary=summary)
    LOGGER.info(
        "Tiles fetched=%d from cache=%d stored=%d",
        service.tile_cache.stats.tiles_fetched,
        service.tile_cache.stats.tiles_from_cache,
        service.tile_cache.stored_count(),
    )
    return EXIT_OK
