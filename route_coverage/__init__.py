"""Route mobile coverage from raster coverage tiles."""

from .errors import (
    ConfigurationError,
    CoverageError,
    TileDecodeError,
    TileFetchError,
    ValidationError,
)
from .models import CoverageReading, CoverageResult, SampledPoint
from .services import CoverageService, CoverageServiceConfig

__all__ = [
    "ConfigurationError",
    "CoverageError",
    "CoverageReading",
    "CoverageResult",
    "CoverageService",
    "CoverageServiceConfig",
    "SampledPoint",
    "TileDecodeError",
    "TileFetchError",
    "ValidationError",
]
