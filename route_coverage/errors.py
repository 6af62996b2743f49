"""Central error types used across the application."""

from __future__ import annotations


class CoverageError(RuntimeError):
    """Base error for coverage pipeline failures."""


class ConfigurationError(CoverageError):
    """Raised when the projection engine cannot be loaded or initialised."""


class ValidationError(CoverageError):
    """Raised for malformed route input or out-of-range parameters."""


class TileError(CoverageError):
    """Base error for failures scoped to a single point and operator."""


class TileFetchError(TileError):
    """Raised when a tile request fails, times out or returns a non-2xx status."""


class TileDecodeError(TileError):
    """Raised when tile bytes are not a readable image."""


class ProjectionError(TileError):
    """Raised when a point cannot be projected onto the tile grid."""


__all__ = [
    "CoverageError",
    "ConfigurationError",
    "ValidationError",
    "TileError",
    "TileFetchError",
    "TileDecodeError",
    "ProjectionError",
]
