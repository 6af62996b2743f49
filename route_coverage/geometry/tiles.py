"""Grid coordinate <-> tile/pixel addressing for the coverage tile scheme."""

from __future__ import annotations

import math
import numbers
from typing import Optional, Sequence

from ..config import RESOLUTIONS, STANDARD_ZOOM, TILE_SIZE
from ..errors import ValidationError
from ..models import (
    GeographicBounds,
    PixelAddress,
    ProjectedBounds,
    TileAddress,
)
from .projection import Projector

__all__ = ["TileAddressResolver"]


class TileAddressResolver:
    """Pure tile maths over a fixed resolution table.

    Tile ``(0, 0)`` has its south-west corner at the grid origin and tile Y
    grows northwards, while raster rows grow downwards. ``to_pixel`` flips the
    row so that pixel ``0`` is the northern edge of the tile.
    """

    def __init__(
        self,
        resolutions: Sequence[float] = RESOLUTIONS,
        tile_size: int = TILE_SIZE,
    ) -> None:
        if not resolutions:
            raise ValueError("resolutions must not be empty")
        self._resolutions = tuple(float(r) for r in resolutions)
        self._tile_size = int(tile_size)

    @property
    def tile_size(self) -> int:
        return self._tile_size

    @property
    def max_zoom(self) -> int:
        return len(self._resolutions) - 1

    def resolution(self, zoom: int) -> float:
        """Return metres per pixel at ``zoom``; out-of-range zooms are rejected."""

        if isinstance(zoom, bool) or not isinstance(zoom, numbers.Integral):
            raise ValidationError(f"Zoom level must be an integer, got {zoom!r}")
        if zoom < 0 or zoom > self.max_zoom:
            raise ValidationError(
                f"Zoom level must be between 0 and {self.max_zoom}, got {zoom}"
            )
        return self._resolutions[int(zoom)]

    def tile_span(self, zoom: int) -> float:
        return self.resolution(zoom) * self._tile_size

    def to_tile(
        self, easting: float, northing: float, zoom: int = STANDARD_ZOOM
    ) -> TileAddress:
        span = self.tile_span(zoom)
        _require_finite(easting, northing)
        return TileAddress(
            tile_x=math.floor(easting / span),
            tile_y=math.floor(northing / span),
            zoom=int(zoom),
        )

    def to_pixel(
        self, easting: float, northing: float, zoom: int = STANDARD_ZOOM
    ) -> PixelAddress:
        resolution = self.resolution(zoom)
        span = resolution * self._tile_size
        _require_finite(easting, northing)
        tile_x = math.floor(easting / span)
        tile_y = math.floor(northing / span)
        # Offsets are taken from the tile that was chosen above so that float
        # noise at a tile edge can never yield pixel 256.
        offset_x = easting - tile_x * span
        offset_y = northing - tile_y * span
        last = self._tile_size - 1
        pixel_x = _clamp(math.floor(offset_x / resolution), 0, last)
        pixel_y = last - _clamp(math.floor(offset_y / resolution), 0, last)
        return PixelAddress(
            tile_x=tile_x,
            tile_y=tile_y,
            zoom=int(zoom),
            pixel_x=pixel_x,
            pixel_y=pixel_y,
        )

    def tile_to_bounds(
        self, tile_x: int, tile_y: int, zoom: int = STANDARD_ZOOM
    ) -> ProjectedBounds:
        span = self.tile_span(zoom)
        return ProjectedBounds(
            west=tile_x * span,
            south=tile_y * span,
            east=(tile_x + 1) * span,
            north=(tile_y + 1) * span,
        )

    def tile_to_geographic_bounds(
        self,
        tile_x: int,
        tile_y: int,
        projector: Projector,
        zoom: Optional[int] = None,
    ) -> GeographicBounds:
        """WGS84 bounds of a tile, taken from its south-west and north-east corners."""

        bounds = self.tile_to_bounds(
            tile_x, tile_y, STANDARD_ZOOM if zoom is None else zoom
        )
        south_west = projector.to_geographic(bounds.west, bounds.south)
        north_east = projector.to_geographic(bounds.east, bounds.north)
        return GeographicBounds(
            west=south_west.lon,
            south=south_west.lat,
            east=north_east.lon,
            north=north_east.lat,
        )


def _require_finite(easting: float, northing: float) -> None:
    if not (math.isfinite(easting) and math.isfinite(northing)):
        raise ValidationError(
            f"Grid coordinates must be finite, got ({easting}, {northing})"
        )


def _clamp(value: int, lower: int, upper: int) -> int:
    return max(lower, min(value, upper))
