"""Tile decoding and pixel colour extraction."""

from __future__ import annotations

from dataclasses import dataclass
import io
import re
from typing import Optional

import numpy as np
from numpy.typing import NDArray
from PIL import Image, UnidentifiedImageError

from .errors import TileDecodeError
from .models import RasterTile, RgbColor

_HEX_PATTERN = re.compile(r"^#?([0-9a-f]{2})([0-9a-f]{2})([0-9a-f]{2})$", re.IGNORECASE)

__all__ = [
    "ExtractedColor",
    "decode_tile",
    "extract_color",
    "rgb_to_hex",
    "hex_to_rgb",
]


@dataclass(frozen=True, slots=True)
class ExtractedColor:
    """RGBA value read from a tile."""

    r: int
    g: int
    b: int
    a: int

    @property
    def rgb(self) -> RgbColor:
        return (self.r, self.g, self.b)

    @property
    def hex(self) -> str:
        return rgb_to_hex(self.r, self.g, self.b)


def rgb_to_hex(r: int, g: int, b: int) -> str:
    """Format an RGB triple as ``#rrggbb`` (lower case)."""

    return "#" + "".join(f"{int(value):02x}" for value in (r, g, b))


def hex_to_rgb(value: str) -> Optional[RgbColor]:
    """Parse ``#rrggbb`` (``#`` optional). Returns ``None`` when malformed."""

    match = _HEX_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        return None
    return (
        int(match.group(1), 16),
        int(match.group(2), 16),
        int(match.group(3), 16),
    )


def decode_tile(data: bytes) -> NDArray[np.uint8]:
    """Decode PNG (or any Pillow-readable) bytes into an ``(H, W, 4)`` RGBA array."""

    if not data:
        raise TileDecodeError("Tile payload is empty")
    try:
        with Image.open(io.BytesIO(data)) as image:
            rgba = image.convert("RGBA")
            pixels = np.asarray(rgba, dtype=np.uint8)
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as exc:
        raise TileDecodeError(f"Failed to decode tile image: {exc}") from exc
    if pixels.ndim != 3 or pixels.shape[0] == 0 or pixels.shape[1] == 0:
        raise TileDecodeError(f"Unexpected tile shape {pixels.shape}")
    return pixels


def extract_color(tile: RasterTile, pixel_x: int, pixel_y: int) -> ExtractedColor:
    """Return the RGBA value at ``(pixel_x, pixel_y)``.

    Coordinates are clamped into the tile; rounding upstream can land one
    pixel outside ``[0, size)`` and that must not fail the lookup.
    """

    x = max(0, min(int(pixel_x), tile.width - 1))
    y = max(0, min(int(pixel_y), tile.height - 1))
    r, g, b, a = (int(channel) for channel in tile.pixels[y, x])
    return ExtractedColor(r=r, g=g, b=b, a=a)
