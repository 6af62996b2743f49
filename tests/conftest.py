"""Global pytest fixtures & helpers.

Adds project root to path and provides reusable fixtures for tile, cache and
coverage service tests so that no test touches the network.
"""
from __future__ import annotations

import io
import math
import os
import sys
from typing import Callable, Dict, List, Tuple

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from PIL import Image

from route_coverage.errors import TileFetchError
from route_coverage.models import GeographicPoint, ProjectedCoordinate


# --- Factory helpers -------------------------------------------------
def make_png(
    color: Tuple[int, int, int, int] = (0x7D, 0x20, 0x93, 255),
    size: int = 256,
    pixels: Dict[Tuple[int, int], Tuple[int, int, int, int]] | None = None,
) -> bytes:
    """Build a solid PNG tile, optionally overriding individual (x, y) pixels."""
    image = Image.new("RGBA", (size, size), color)
    for (x, y), value in (pixels or {}).items():
        image.putpixel((x, y), value)
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


class FakeTileClient:
    """Records fetches and serves PNG bytes from a callable."""

    def __init__(self, payload: Callable[[str, int, int, int, str], bytes] | bytes):
        self._payload = payload
        self.calls: List[Tuple[str, int, int, int, str]] = []

    def tile_url(self, operator_id, zoom, tile_x, tile_y, version):
        return f"https://tiles.test/{operator_id}/{zoom}/{tile_x}/{tile_y}.png?v={version}"

    def fetch(self, operator_id, zoom, tile_x, tile_y, version):
        self.calls.append((operator_id, zoom, tile_x, tile_y, version))
        if callable(self._payload):
            return self._payload(operator_id, zoom, tile_x, tile_y, version)
        return self._payload


class FailingTileClient(FakeTileClient):
    def __init__(self, message: str = "boom"):
        super().__init__(b"")
        self._message = message

    def fetch(self, operator_id, zoom, tile_x, tile_y, version):
        self.calls.append((operator_id, zoom, tile_x, tile_y, version))
        raise TileFetchError(self._message)


class FakeProjector:
    """Treats lon/lat as easting/northing scaled by 1000 (NaN stays NaN)."""

    def to_projected(self, lat, lon):
        try:
            lat_f, lon_f = float(lat), float(lon)
        except (TypeError, ValueError):
            return ProjectedCoordinate(math.nan, math.nan)
        if math.isnan(lat_f) or math.isnan(lon_f):
            return ProjectedCoordinate(math.nan, math.nan)
        return ProjectedCoordinate(lon_f * 1000.0, lat_f * 1000.0)

    def to_geographic(self, easting, northing):
        return GeographicPoint(lat=northing / 1000.0, lon=easting / 1000.0)


# --- Fixtures --------------------------------------------------------
@pytest.fixture
def png_factory():
    return make_png


@pytest.fixture
def fake_projector():
    return FakeProjector()


@pytest.fixture
def london_route():
    # Roughly 2.8 km due east along latitude 51.5074.
    return [(-0.1276, 51.5074), (-0.0876, 51.5074)]
