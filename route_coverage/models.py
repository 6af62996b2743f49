"""Dataclasses shared by the coverage pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

# Route vertices arrive as (longitude, latitude) pairs.
LonLat = Tuple[float, float]
RgbColor = Tuple[int, int, int]


@dataclass(frozen=True, slots=True)
class GeographicPoint:
    lat: float
    lon: float


@dataclass(frozen=True, slots=True)
class ProjectedCoordinate:
    """British National Grid easting/northing in metres."""

    easting: float
    northing: float

    def is_finite(self) -> bool:
        return bool(np.isfinite(self.easting) and np.isfinite(self.northing))


@dataclass(frozen=True, slots=True)
class ProjectedBounds:
    west: float
    south: float
    east: float
    north: float


@dataclass(frozen=True, slots=True)
class GeographicBounds:
    west: float
    south: float
    east: float
    north: float


@dataclass(frozen=True, slots=True)
class TileAddress:
    tile_x: int
    tile_y: int
    zoom: int


@dataclass(frozen=True, slots=True)
class PixelAddress:
    """Tile address plus the pixel inside it (raster Y grows downward)."""

    tile_x: int
    tile_y: int
    zoom: int
    pixel_x: int
    pixel_y: int

    @property
    def tile(self) -> TileAddress:
        return TileAddress(self.tile_x, self.tile_y, self.zoom)


@dataclass(frozen=True, slots=True)
class SampledPoint:
    lat: float
    lng: float
    distance: float


@dataclass(frozen=True, slots=True)
class TileKey:
    """Full cache key for one tile; a new version is a different key."""

    operator_id: str
    zoom: int
    tile_x: int
    tile_y: int
    version: str

    def as_string(self) -> str:
        return (
            f"{self.operator_id}-{self.zoom}-{self.tile_x}-{self.tile_y}"
            f"-v{self.version}"
        )


@dataclass(slots=True)
class RasterTile:
    """Decoded tile bitmap with the encoded bytes it came from."""

    key: TileKey
    pixels: NDArray[np.uint8]
    data: bytes
    fetched_at: float

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])


@dataclass(slots=True)
class CoverageReading:
    """Outcome for one operator at one point.

    ``level`` is ``None`` both when no palette colour matched (``error`` unset)
    and when the tile could not be read (``error`` set, ``color`` unset).
    """

    operator_id: str
    level: Optional[int] = None
    color: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class CoverageResult:
    point: SampledPoint
    readings: Dict[str, CoverageReading] = field(default_factory=dict)
