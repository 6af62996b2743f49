"""WGS84 <-> British National Grid projection used by the coverage tiles.

The tile server renders on OSGB36 / British National Grid with a fixed
seven-parameter Helmert shift from WGS84. The same definition is used here so
that pixel lookups line up with what the server drew; swapping it for the
grid-based EPSG:27700 transform would move points by a few metres.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Protocol

from ..errors import ConfigurationError
from ..models import GeographicPoint, ProjectedCoordinate

LOGGER = logging.getLogger(__name__)

BNG_PROJ_DEFINITION = (
    "+proj=tmerc +lat_0=49 +lon_0=-2 +k=0.9996012717 +x_0=400000 +y_0=-100000 "
    "+ellps=airy "
    "+towgs84=446.448,-125.157,542.06,0.15,0.247,0.842,-20.489 "
    "+units=m +no_defs"
)
WGS84_EPSG = 4326

__all__ = ["BNG_PROJ_DEFINITION", "GeodeticProjector", "Projector"]


class Projector(Protocol):
    """Capability required by the pipeline: lat/lon <-> grid coordinates."""

    def to_projected(self, lat: Any, lon: Any) -> ProjectedCoordinate: ...

    def to_geographic(self, easting: Any, northing: Any) -> GeographicPoint: ...


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


class GeodeticProjector:
    """pyproj-backed projector for the tile grid.

    The transformers are built once in the constructor. Any failure to load
    pyproj or build the CRS pair raises :class:`ConfigurationError`, which is
    fatal for a whole run rather than a per-point problem.
    """

    def __init__(self, grid_definition: str = BNG_PROJ_DEFINITION) -> None:
        self._grid_definition = grid_definition
        self._forward, self._inverse = self._build_transformers(grid_definition)
        LOGGER.debug("Projection engine initialised grid=%s", grid_definition)

    @staticmethod
    def _build_transformers(grid_definition: str) -> tuple[Any, Any]:
        try:
            from pyproj import CRS, Transformer
            from pyproj.exceptions import CRSError, ProjError
        except ImportError as exc:  # pragma: no cover - depends on environment
            raise ConfigurationError(
                "pyproj is required to project coordinates onto the tile grid"
            ) from exc
        try:
            geographic = CRS.from_epsg(WGS84_EPSG)
            grid = CRS.from_proj4(grid_definition)
            forward = Transformer.from_crs(geographic, grid, always_xy=True)
            inverse = Transformer.from_crs(grid, geographic, always_xy=True)
        except (CRSError, ProjError) as exc:
            raise ConfigurationError(
                f"Unable to initialise projection engine: {exc}"
            ) from exc
        return forward, inverse

    @property
    def grid_definition(self) -> str:
        return self._grid_definition

    def to_projected(self, lat: Any, lon: Any) -> ProjectedCoordinate:
        """Project WGS84 degrees to easting/northing.

        Non-numeric, NaN or untransformable input yields ``(nan, nan)`` so that
        batch callers can skip the point and continue.
        """

        lat_f = _as_float(lat)
        lon_f = _as_float(lon)
        if not (math.isfinite(lat_f) and math.isfinite(lon_f)):
            return ProjectedCoordinate(math.nan, math.nan)
        easting, northing = self._forward.transform(lon_f, lat_f)
        if not (math.isfinite(easting) and math.isfinite(northing)):
            return ProjectedCoordinate(math.nan, math.nan)
        return ProjectedCoordinate(float(easting), float(northing))

    def to_geographic(self, easting: Any, northing: Any) -> GeographicPoint:
        """Inverse of :meth:`to_projected`."""

        east_f = _as_float(easting)
        north_f = _as_float(northing)
        if not (math.isfinite(east_f) and math.isfinite(north_f)):
            return GeographicPoint(math.nan, math.nan)
        lon, lat = self._inverse.transform(east_f, north_f)
        if not (math.isfinite(lat) and math.isfinite(lon)):
            return GeographicPoint(math.nan, math.nan)
        return GeographicPoint(lat=float(lat), lon=float(lon))
