"""Coverage analysis service.

Walks sampled route points in order and, for every operator, resolves the
tile pixel under the point, reads its colour and classifies it. Tile-level
failures are folded into the per-operator reading so that one bad tile never
discards the rest of the route.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
import logging
import time
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Union

from ..config import (
    COLOR_TOLERANCE,
    FETCH_BATCH_DELAY_SECONDS,
    FETCH_BATCH_SIZE,
    OPERATOR_MAX_WORKERS,
    OPERATORS,
    STANDARD_ZOOM,
)
from ..errors import ProjectionError, TileError
from ..geometry.projection import GeodeticProjector, Projector
from ..geometry.tiles import TileAddressResolver
from ..matching import COVERAGE_PALETTE, match_level
from ..models import (
    CoverageReading,
    CoverageResult,
    PixelAddress,
    RgbColor,
    SampledPoint,
)
from ..pixels import extract_color
from ..tiles.cache import TileCache

ProgressCallback = Callable[[int, int], None]

__all__ = ["CoverageService", "CoverageServiceConfig"]


@dataclass(slots=True)
class CoverageServiceConfig:
    zoom: int = STANDARD_ZOOM
    tolerance: float = COLOR_TOLERANCE
    palette: Mapping[int, Union[str, RgbColor]] = field(
        default_factory=lambda: dict(COVERAGE_PALETTE)
    )
    batch_size: int = FETCH_BATCH_SIZE
    batch_delay_seconds: float = FETCH_BATCH_DELAY_SECONDS
    max_workers: int = OPERATOR_MAX_WORKERS
    sleep: Callable[[float], None] = time.sleep
    logger: logging.Logger | None = None


class CoverageService:
    def __init__(
        self,
        tile_cache: TileCache | None = None,
        projector: Projector | None = None,
        resolver: TileAddressResolver | None = None,
        config: CoverageServiceConfig | None = None,
    ) -> None:
        self.config = config or CoverageServiceConfig()
        self._log = self.config.logger or logging.getLogger(self.__class__.__name__)
        # Building the projector first makes an unusable projection engine
        # fail before any tile is requested.
        self.projector: Projector = projector or GeodeticProjector()
        self.resolver = resolver or TileAddressResolver()
        self.tile_cache = tile_cache or TileCache()
        # Validates the zoom once rather than on every point.
        self.resolver.resolution(self.config.zoom)

    def analyze(
        self,
        sampled_points: Sequence[SampledPoint],
        operator_ids: Optional[Sequence[str]] = None,
        progress: ProgressCallback | None = None,
    ) -> List[CoverageResult]:
        """Return one :class:`CoverageResult` per point, in input order."""

        operators = list(operator_ids) if operator_ids is not None else list(OPERATORS)
        total = len(sampled_points)
        self._log.info(
            "Analysing coverage for %d points across %d operators",
            total,
            len(operators),
        )
        batch_size = max(1, self.config.batch_size)
        failed_readings = 0
        results: List[CoverageResult] = []
        executor: ThreadPoolExecutor | None = None
        if self.config.max_workers > 1 and len(operators) > 1:
            executor = ThreadPoolExecutor(
                max_workers=min(self.config.max_workers, len(operators))
            )
        try:
            for index, point in enumerate(sampled_points):
                readings = self._readings_for(point.lat, point.lng, operators, executor)
                failed_readings += sum(1 for r in readings.values() if not r.ok)
                results.append(CoverageResult(point=point, readings=readings))
                if progress is not None:
                    progress(index + 1, total)
                if index < total - 1 and (index + 1) % batch_size == 0:
                    # Cooperative pacing between batches of tile requests.
                    self.config.sleep(self.config.batch_delay_seconds)
        finally:
            if executor is not None:
                executor.shutdown(wait=True)

        if failed_readings:
            self._log.warning(
                "Recorded %d failed readings out of %d",
                failed_readings,
                total * len(operators),
            )
        stats = self.tile_cache.stats
        self._log.info(
            "Coverage analysis complete points=%d tiles_fetched=%d tiles_from_cache=%d",
            total,
            stats.tiles_fetched,
            stats.tiles_from_cache,
        )
        return results

    def coverage_at(
        self,
        lat: float,
        lon: float,
        operator_ids: Optional[Sequence[str]] = None,
    ) -> Dict[str, CoverageReading]:
        """Readings for a single location."""

        operators = list(operator_ids) if operator_ids is not None else list(OPERATORS)
        return self._readings_for(lat, lon, operators, None)

    def locate(self, lat: float, lon: float) -> PixelAddress:
        """Resolve a WGS84 point to its tile pixel at the configured zoom."""

        projected = self.projector.to_projected(lat, lon)
        if not projected.is_finite():
            raise ProjectionError(f"Could not project point ({lat}, {lon})")
        return self.resolver.to_pixel(
            projected.easting, projected.northing, self.config.zoom
        )

    def _readings_for(
        self,
        lat: float,
        lon: float,
        operators: Sequence[str],
        executor: ThreadPoolExecutor | None,
    ) -> Dict[str, CoverageReading]:
        try:
            pixel = self.locate(lat, lon)
        except ProjectionError as exc:
            self._log.warning("Skipping point (%s, %s): %s", lat, lon, exc)
            return {
                operator_id: CoverageReading(operator_id=operator_id, error=str(exc))
                for operator_id in operators
            }

        if executor is None:
            readings = [self._read(operator_id, pixel) for operator_id in operators]
        else:
            readings = list(
                executor.map(lambda op: self._read(op, pixel), operators)
            )
        return {reading.operator_id: reading for reading in readings}

    def _read(self, operator_id: str, pixel: PixelAddress) -> CoverageReading:
        try:
            tile = self.tile_cache.get_or_fetch(
                operator_id, pixel.tile_x, pixel.tile_y, pixel.zoom
            )
            color = extract_color(tile, pixel.pixel_x, pixel.pixel_y)
        except TileError as exc:
            self._log.warning(
                "Failed to read %s coverage at tile %s/%s/%s: %s",
                operator_id,
                pixel.zoom,
                pixel.tile_x,
                pixel.tile_y,
                exc,
            )
            return CoverageReading(operator_id=operator_id, error=str(exc))
        level = match_level(color, self.config.palette, self.config.tolerance)
        return CoverageReading(operator_id=operator_id, level=level, color=color.hex)
