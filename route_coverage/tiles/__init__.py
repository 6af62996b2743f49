"""Tile source access: HTTP client, backing stores and the cache-or-fetch layer."""

from .cache import TileCache, TileCacheStats
from .client import TileClient, create_default_session
from .store import DiskTileStore, LayeredTileStore, MemoryTileStore, TileStore

__all__ = [
    "DiskTileStore",
    "LayeredTileStore",
    "MemoryTileStore",
    "TileCache",
    "TileCacheStats",
    "TileClient",
    "TileStore",
    "create_default_session",
]
