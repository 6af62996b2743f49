"""Cache-or-fetch access to coverage tiles keyed by operator, zoom, x, y and version."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import threading
import time
from typing import Callable, Optional

from ..config import STANDARD_ZOOM, TILE_VERSION
from ..models import RasterTile, TileKey
from ..pixels import decode_tile
from .client import TileClient
from .store import MemoryTileStore, TileStore

LOGGER = logging.getLogger(__name__)

__all__ = ["TileCache", "TileCacheStats"]


@dataclass(slots=True)
class TileCacheStats:
    tiles_fetched: int = 0
    tiles_from_cache: int = 0


class TileCache:
    """Serve tiles from the store, fetching and decoding on a miss.

    Failed fetches and undecodable payloads raise and are not stored, so the
    next request retries them. Concurrent misses for one key may both fetch;
    the store keeps whichever write lands last.
    """

    def __init__(
        self,
        client: TileClient | None = None,
        store: TileStore | None = None,
        *,
        version: str = TILE_VERSION,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client = client or TileClient()
        self._store: TileStore = store if store is not None else MemoryTileStore()
        self._version = version
        self._clock = clock
        self._stats_lock = threading.Lock()
        self.stats = TileCacheStats()

    @property
    def version(self) -> str:
        return self._version

    @property
    def store(self) -> TileStore:
        return self._store

    def tile_url(
        self, operator_id: str, tile_x: int, tile_y: int, zoom: int = STANDARD_ZOOM
    ) -> str:
        return self._client.tile_url(
            operator_id, zoom, tile_x, tile_y, self._version
        )

    def get_or_fetch(
        self,
        operator_id: str,
        tile_x: int,
        tile_y: int,
        zoom: int = STANDARD_ZOOM,
        version: Optional[str] = None,
    ) -> RasterTile:
        key = TileKey(
            operator_id=operator_id,
            zoom=int(zoom),
            tile_x=int(tile_x),
            tile_y=int(tile_y),
            version=str(version if version is not None else self._version),
        )
        cached = self._store.get(key)
        if cached is not None:
            with self._stats_lock:
                self.stats.tiles_from_cache += 1
            LOGGER.debug("Tile cache hit %s", key.as_string())
            return cached

        data = self._client.fetch(
            key.operator_id, key.zoom, key.tile_x, key.tile_y, key.version
        )
        pixels = decode_tile(data)
        tile = RasterTile(key=key, pixels=pixels, data=data, fetched_at=self._clock())
        self._store.put(tile)
        with self._stats_lock:
            self.stats.tiles_fetched += 1
        LOGGER.debug(
            "Fetched and cached tile %s (%d bytes)", key.as_string(), len(data)
        )
        return tile

    def stored_count(self) -> int:
        return len(self._store)

    def clear(self) -> None:
        self._store.clear()
        with self._stats_lock:
            self.stats = TileCacheStats()
