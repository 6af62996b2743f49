"""Backing stores for decoded coverage tiles.

``TileStore`` is the only capability the cache relies on. ``MemoryTileStore``
keeps decoded tiles in an LRU, ``DiskTileStore`` persists the encoded PNG with
a JSON sidecar, and ``LayeredTileStore`` puts the former in front of the latter.
"""

from __future__ import annotations

import json
import logging
import shutil
import threading
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Protocol

from cachetools import LRUCache

from ..config import TILE_CACHE_DIR, TILE_MEMORY_CACHE_SIZE
from ..errors import TileDecodeError
from ..models import RasterTile, TileKey
from ..pixels import decode_tile

LOGGER = logging.getLogger(__name__)

__all__ = ["TileStore", "MemoryTileStore", "DiskTileStore", "LayeredTileStore"]


class TileStore(Protocol):
    def get(self, key: TileKey) -> Optional[RasterTile]: ...

    def put(self, tile: RasterTile) -> None: ...

    def contains(self, key: TileKey) -> bool: ...

    def clear(self) -> None: ...

    def __len__(self) -> int: ...


class MemoryTileStore:
    """Thread-safe LRU of decoded tiles."""

    def __init__(self, max_entries: int = TILE_MEMORY_CACHE_SIZE) -> None:
        self._lock = threading.RLock()
        self._tiles: LRUCache[TileKey, RasterTile] = LRUCache(
            maxsize=max(1, max_entries)
        )

    def get(self, key: TileKey) -> Optional[RasterTile]:
        with self._lock:
            return self._tiles.get(key)

    def put(self, tile: RasterTile) -> None:
        with self._lock:
            self._tiles[tile.key] = tile

    def contains(self, key: TileKey) -> bool:
        with self._lock:
            return key in self._tiles

    def clear(self) -> None:
        with self._lock:
            self._tiles.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._tiles)


class DiskTileStore:
    """Persist tiles as ``<base>/<operator>/v<version>/<zoom>/<x>_<y>.png``.

    Each PNG has a ``.json`` sidecar recording the key, fetch timestamp and
    payload size. Unreadable entries are treated as misses.
    """

    def __init__(self, base_dir: str | Path = TILE_CACHE_DIR) -> None:
        base = Path(base_dir)
        self._base_dir = base if base.is_absolute() else Path.cwd() / base
        self._lock = threading.Lock()
        self._base_dir.mkdir(parents=True, exist_ok=True)
        LOGGER.info("Tile store initialised dir=%s", self._base_dir)

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def _tile_path(self, key: TileKey) -> Path:
        return (
            self._base_dir
            / key.operator_id
            / f"v{key.version}"
            / str(key.zoom)
            / f"{key.tile_x}_{key.tile_y}.png"
        )

    @staticmethod
    def _meta_path(tile_path: Path) -> Path:
        return tile_path.with_suffix(".json")

    def get(self, key: TileKey) -> Optional[RasterTile]:
        path = self._tile_path(key)
        meta_path = self._meta_path(path)
        try:
            data = path.read_bytes()
            meta = json.loads(meta_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            LOGGER.warning("Failed reading cached tile %s: %s", path, exc)
            return None
        if meta.get("version") != key.version:
            LOGGER.warning("Cached tile %s has mismatched metadata; ignoring", path)
            return None
        try:
            pixels = decode_tile(data)
        except TileDecodeError as exc:
            LOGGER.warning("Cached tile %s is corrupt: %s", path, exc)
            return None
        return RasterTile(
            key=key,
            pixels=pixels,
            data=data,
            fetched_at=float(meta.get("fetched_at", 0.0)),
        )

    def put(self, tile: RasterTile) -> None:
        path = self._tile_path(tile.key)
        meta: Dict[str, Any] = {
            "key": tile.key.as_string(),
            "operator_id": tile.key.operator_id,
            "zoom": tile.key.zoom,
            "tile_x": tile.key.tile_x,
            "tile_y": tile.key.tile_y,
            "version": tile.key.version,
            "fetched_at": tile.fetched_at,
            "size": len(tile.data),
        }
        # A failed write only loses persistence; the caller keeps the tile.
        with self._lock:
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                self._write_atomic(path, tile.data)
                self._write_atomic(
                    self._meta_path(path),
                    json.dumps(meta, sort_keys=True, indent=2).encode("utf-8"),
                )
            except OSError as exc:
                LOGGER.warning("Failed writing cached tile %s: %s", path, exc)

    @staticmethod
    def _write_atomic(path: Path, payload: bytes) -> None:
        temp_path = path.with_name(path.name + ".tmp")
        temp_path.write_bytes(payload)
        temp_path.replace(path)

    def contains(self, key: TileKey) -> bool:
        path = self._tile_path(key)
        return path.is_file() and self._meta_path(path).is_file()

    def clear(self) -> None:
        with self._lock:
            for child in self._base_dir.iterdir():
                if child.is_dir():
                    shutil.rmtree(child)
                else:
                    child.unlink()
        LOGGER.info("Cleared tile store %s", self._base_dir)

    def _iter_tiles(self) -> Iterable[Path]:
        return self._base_dir.glob("*/v*/*/*.png")

    def __len__(self) -> int:
        return sum(1 for _ in self._iter_tiles())

    def prune(self, *, keep_version: str, dry_run: bool = False) -> dict[str, int]:
        """Delete every stored tile whose version differs from ``keep_version``."""

        deleted = skipped = 0
        keep_dir = f"v{keep_version}"
        for version_dir in sorted(self._base_dir.glob("*/v*")):
            if not version_dir.is_dir() or version_dir.name == keep_dir:
                continue
            tiles = list(version_dir.rglob("*.png"))
            if dry_run:
                LOGGER.info(
                    "[dry-run] Would delete %s (%d tiles)", version_dir, len(tiles)
                )
                skipped += len(tiles)
                continue
            try:
                shutil.rmtree(version_dir)
                deleted += len(tiles)
            except OSError as exc:  # pragma: no cover - filesystem race
                LOGGER.warning("Failed to delete %s: %s", version_dir, exc)
                skipped += len(tiles)
        LOGGER.info(
            "Tile store prune complete base=%s keep=%s deleted=%s skipped=%s",
            self._base_dir,
            keep_version,
            deleted,
            skipped,
        )
        return {"deleted": deleted, "skipped": skipped}


class LayeredTileStore:
    """Memory LRU in front of a persistent store; disk hits are promoted."""

    def __init__(self, front: TileStore, back: TileStore) -> None:
        self._front = front
        self._back = back

    @property
    def back(self) -> TileStore:
        return self._back

    def get(self, key: TileKey) -> Optional[RasterTile]:
        tile = self._front.get(key)
        if tile is not None:
            return tile
        tile = self._back.get(key)
        if tile is not None:
            self._front.put(tile)
        return tile

    def put(self, tile: RasterTile) -> None:
        self._front.put(tile)
        self._back.put(tile)

    def contains(self, key: TileKey) -> bool:
        return self._front.contains(key) or self._back.contains(key)

    def clear(self) -> None:
        self._front.clear()
        self._back.clear()

    def __len__(self) -> int:
        return len(self._back)
