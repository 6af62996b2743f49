"""Route input helpers.

Routes are handled as ``[longitude, latitude]`` vertex lists, the order used
by routing providers and GeoJSON. Encoded polylines (as returned by Google
Directions ``overview_polyline``) are decoded and flipped into that order.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List

from polyline import decode as polyline_decode

from .errors import ValidationError
from .models import LonLat

__all__ = ["decode_polyline", "load_route_file", "parse_route_payload"]


def decode_polyline(encoded: str) -> List[LonLat]:
    """Decode an encoded polyline string into ``(lon, lat)`` tuples."""

    if not encoded:
        return []
    try:
        decoded = polyline_decode(encoded)
    except (ValueError, TypeError, IndexError) as exc:
        raise ValidationError("Unable to decode polyline") from exc
    return [(float(lon), float(lat)) for lat, lon in decoded]


def parse_route_payload(payload: Any) -> List[LonLat]:
    """Extract route vertices from a JSON list or a GeoJSON object.

    Accepted shapes: ``[[lon, lat], ...]``, a ``LineString`` geometry, a
    ``Feature`` wrapping one, or a ``FeatureCollection`` (first LineString).
    """

    if isinstance(payload, dict):
        kind = payload.get("type")
        if kind == "LineString":
            return _as_vertices(payload.get("coordinates"))
        if kind == "Feature":
            return parse_route_payload(payload.get("geometry") or {})
        if kind == "FeatureCollection":
            for feature in payload.get("features") or []:
                geometry = (feature or {}).get("geometry") or {}
                if geometry.get("type") == "LineString":
                    return _as_vertices(geometry.get("coordinates"))
            raise ValidationError("FeatureCollection contains no LineString")
        raise ValidationError(f"Unsupported route object type: {kind!r}")
    return _as_vertices(payload)


def load_route_file(path: str | Path) -> List[LonLat]:
    route_path = Path(path)
    try:
        with route_path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Route file {route_path} is not valid JSON") from exc
    return parse_route_payload(payload)


def _as_vertices(raw: Any) -> List[LonLat]:
    if not isinstance(raw, list):
        raise ValidationError("Route coordinates must be a list of [lon, lat]")
    vertices: List[LonLat] = []
    for index, item in enumerate(raw):
        try:
            lon, lat = float(item[0]), float(item[1])
        except (TypeError, ValueError, IndexError, KeyError) as exc:
            raise ValidationError(
                f"Route vertex {index} is not a [lon, lat] pair: {item!r}"
            ) from exc
        vertices.append((lon, lat))
    return vertices
