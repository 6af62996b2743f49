"""Coordinate handling: projection, tile addressing and route sampling."""

from .projection import BNG_PROJ_DEFINITION, GeodeticProjector, Projector
from .sampling import (
    haversine_distance,
    sample_by_count,
    sample_by_interval,
    total_distance,
)
from .tiles import TileAddressResolver

__all__ = [
    "BNG_PROJ_DEFINITION",
    "GeodeticProjector",
    "Projector",
    "TileAddressResolver",
    "haversine_distance",
    "sample_by_count",
    "sample_by_interval",
    "total_distance",
]
