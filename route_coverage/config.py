"""Central configuration for the route coverage tool.

All values are constants imported by the rest of the package. Adjust as needed
for your environment. Overrides are read from environment variables
(optionally via a local `.env`).
"""

from __future__ import annotations

import importlib
import os


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


# Load .env variables when python-dotenv is available.
_load_dotenv = None
try:
    _dotenv_mod = importlib.import_module("dotenv")
    _load_dotenv = getattr(_dotenv_mod, "load_dotenv", None)
except Exception:
    _load_dotenv = None

if callable(_load_dotenv):
    # Load .env from the current directory or any parent folder.
    _load_dotenv()


# ---------------------------------------------------------------------------
# Tile source
# ---------------------------------------------------------------------------
# URL template for the raster coverage tiles. ``{mno}`` is replaced by the
# operator identifier; zoom, tile indices and version are appended.
TILE_API_BASE = os.getenv(
    "COVERAGE_TILE_API_BASE",
    "https://ofcom.europa.uk.com/tiles/gbof_{mno}_raster_bng2",
)

# Data version tag sent as ``?v=``. Bumping it invalidates every cached tile.
TILE_VERSION = os.getenv("COVERAGE_TILE_VERSION", "42")

# Zoom level used for every coverage lookup.
STANDARD_ZOOM = _env_int("COVERAGE_STANDARD_ZOOM", 8)

# Tiles are always square PNGs of this many pixels.
TILE_SIZE = 256

# Metres per pixel for zoom 0..11 on the British National Grid tile scheme.
RESOLUTIONS = (
    2867.2,
    1433.6,
    716.8,
    358.4,
    179.2,
    89.6,
    44.8,
    22.4,
    11.2,
    5.6,
    2.8,
    1.4,
)

# Operator identifiers used in tile URLs, in reporting order.
OPERATORS = {
    "mno1": "Vodafone",
    "mno2": "O2",
    "mno3": "EE",
    "mno4": "Three",
}


# ---------------------------------------------------------------------------
# Colour matching
# ---------------------------------------------------------------------------
# Maximum Euclidean RGB distance accepted when mapping a pixel to a level.
COLOR_TOLERANCE = _env_float("COVERAGE_COLOR_TOLERANCE", 10.0)


# ---------------------------------------------------------------------------
# Route sampling
# ---------------------------------------------------------------------------
# Number of evenly spaced points used by count-mode sampling.
ROUTE_SAMPLE_COUNT = _env_int("COVERAGE_ROUTE_SAMPLE_COUNT", 150)

# Spacing (metres) used by interval-mode sampling.
ROUTE_SAMPLE_INTERVAL_M = _env_float("COVERAGE_ROUTE_SAMPLE_INTERVAL_M", 500.0)


# ---------------------------------------------------------------------------
# HTTP / pacing
# ---------------------------------------------------------------------------
# Request timeout in seconds. A timeout counts as a failed tile fetch.
REQUEST_TIMEOUT = _env_float("COVERAGE_REQUEST_TIMEOUT", 15.0)

# HTTP session pool sizes.
HTTP_POOL_CONNECTIONS = 8
HTTP_POOL_MAXSIZE = 8

# Transport-level retries for 5xx responses.
HTTP_MAX_RETRIES = _env_int("COVERAGE_HTTP_MAX_RETRIES", 2)

# Pause FETCH_BATCH_DELAY_SECONDS after every FETCH_BATCH_SIZE points.
FETCH_BATCH_SIZE = _env_int("COVERAGE_FETCH_BATCH_SIZE", 5)
FETCH_BATCH_DELAY_SECONDS = _env_float("COVERAGE_FETCH_BATCH_DELAY_SECONDS", 0.5)

# Threads used to fetch the operators of a single point. 1 keeps the strict
# point-by-point, operator-by-operator loop.
OPERATOR_MAX_WORKERS = _env_int("COVERAGE_OPERATOR_MAX_WORKERS", 1)


# ---------------------------------------------------------------------------
# Tile cache
# ---------------------------------------------------------------------------
# Persist fetched tiles to disk so later runs skip the network.
TILE_CACHE_ENABLED = _env_bool("COVERAGE_TILE_CACHE_ENABLED", True)

# Directory (absolute or relative) holding persisted tiles.
TILE_CACHE_DIR = os.getenv("COVERAGE_TILE_CACHE_DIR", "tile_cache")

# Maximum number of decoded tiles kept in memory.
TILE_MEMORY_CACHE_SIZE = _env_int("COVERAGE_TILE_MEMORY_CACHE_SIZE", 512)
