"""Map extracted tile colours onto coverage levels."""

from __future__ import annotations

import math
from typing import Mapping, Optional, Union

from .config import COLOR_TOLERANCE
from .models import RgbColor
from .pixels import ExtractedColor, hex_to_rgb

# Coverage levels, best first. Level 0 is "poor to none", not "unknown";
# unknown is represented by ``None``.
LEVEL_GOOD_INDOOR = 4
LEVEL_VARIABLE_INDOOR = 3
LEVEL_GOOD_OUTDOOR = 2
LEVEL_VARIABLE_OUTDOOR = 1
LEVEL_POOR = 0

COVERAGE_LEVELS = (
    LEVEL_GOOD_INDOOR,
    LEVEL_VARIABLE_INDOOR,
    LEVEL_GOOD_OUTDOOR,
    LEVEL_VARIABLE_OUTDOOR,
    LEVEL_POOR,
)

# Canonical tile colours, checked in this order.
COVERAGE_PALETTE: Mapping[int, RgbColor] = {
    LEVEL_GOOD_INDOOR: (0x7D, 0x20, 0x93),
    LEVEL_VARIABLE_INDOOR: (0xCD, 0x7B, 0xE4),
    LEVEL_GOOD_OUTDOOR: (0x00, 0x81, 0xB3),
    LEVEL_VARIABLE_OUTDOOR: (0x83, 0xE5, 0xF6),
    LEVEL_POOR: (0xD4, 0xD4, 0xD4),
}

LEVEL_DESCRIPTIONS: Mapping[int, str] = {
    LEVEL_GOOD_INDOOR: "Good outdoor and in-home",
    LEVEL_VARIABLE_INDOOR: "Good outdoor, variable in-home",
    LEVEL_GOOD_OUTDOOR: "Good outdoor",
    LEVEL_VARIABLE_OUTDOOR: "Variable outdoor",
    LEVEL_POOR: "Poor to none outdoor",
}
UNKNOWN_DESCRIPTION = "Unknown"

ColorLike = Union[str, RgbColor, ExtractedColor]

__all__ = [
    "COVERAGE_LEVELS",
    "COVERAGE_PALETTE",
    "LEVEL_DESCRIPTIONS",
    "color_distance",
    "describe_level",
    "match_level",
]


def color_distance(color1: RgbColor, color2: RgbColor) -> float:
    """Euclidean distance between two RGB triples."""

    dr = color1[0] - color2[0]
    dg = color1[1] - color2[1]
    db = color1[2] - color2[2]
    return math.sqrt(dr * dr + dg * dg + db * db)


def match_level(
    color: ColorLike,
    palette: Mapping[int, Union[str, RgbColor]] = COVERAGE_PALETTE,
    tolerance: float = COLOR_TOLERANCE,
) -> Optional[int]:
    """Return the palette level nearest to ``color`` within ``tolerance``.

    Only candidates at distance ``<= tolerance`` are considered and a later
    entry must be strictly closer to replace an earlier one, so equidistant
    entries resolve to whichever comes first in ``palette``. ``None`` means no
    entry was close enough.
    """

    rgb = _to_rgb(color)
    if rgb is None:
        return None
    best_level: Optional[int] = None
    best_distance = math.inf
    for level, canonical in palette.items():
        canonical_rgb = _to_rgb(canonical)
        if canonical_rgb is None:
            continue
        distance = color_distance(rgb, canonical_rgb)
        if distance <= tolerance and distance < best_distance:
            best_level = int(level)
            best_distance = distance
    return best_level


def describe_level(level: Optional[int]) -> str:
    if level is None:
        return UNKNOWN_DESCRIPTION
    return LEVEL_DESCRIPTIONS.get(level, UNKNOWN_DESCRIPTION)


def _to_rgb(color: ColorLike) -> Optional[RgbColor]:
    if isinstance(color, ExtractedColor):
        return color.rgb
    if isinstance(color, str):
        return hex_to_rgb(color)
    if len(color) < 3:
        return None
    return (int(color[0]), int(color[1]), int(color[2]))
