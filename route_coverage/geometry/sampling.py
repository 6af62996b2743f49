"""Route sampling along a polyline of (lon, lat) vertices."""

from __future__ import annotations

import math
from typing import List, Sequence

import numpy as np
from numpy.typing import NDArray

from ..config import ROUTE_SAMPLE_COUNT, ROUTE_SAMPLE_INTERVAL_M
from ..errors import ValidationError
from ..models import SampledPoint

EARTH_RADIUS_M = 6_371_000.0

__all__ = [
    "EARTH_RADIUS_M",
    "haversine_distance",
    "total_distance",
    "sample_by_interval",
    "sample_by_count",
]


def haversine_distance(
    point1: Sequence[float], point2: Sequence[float]
) -> float:
    """Great-circle distance in metres between two ``(lon, lat)`` points."""

    lon1, lat1 = float(point1[0]), float(point1[1])
    lon2, lat2 = float(point2[0]), float(point2[1])
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def total_distance(coordinates: Sequence[Sequence[float]]) -> float:
    """Sum of segment lengths of a route in metres."""

    array = _as_route_array(coordinates, minimum=1)
    return float(np.sum(_segment_lengths(array)))


def sample_by_interval(
    coordinates: Sequence[Sequence[float]],
    interval_m: float = ROUTE_SAMPLE_INTERVAL_M,
) -> List[SampledPoint]:
    """Sample a route every ``interval_m`` metres (or closer).

    Each segment is cut into ``ceil(length / interval_m)`` equal steps with
    linear interpolation in lat/lon. The first vertex is always returned at
    distance 0; zero-length segments contribute nothing.
    """

    if not interval_m > 0:
        raise ValidationError("interval_m must be greater than zero")
    array = _as_route_array(coordinates, minimum=2)
    lengths = _segment_lengths(array)

    first_lon, first_lat = array[0]
    points = [SampledPoint(lat=float(first_lat), lng=float(first_lon), distance=0.0)]
    travelled = 0.0
    for index, segment_length in enumerate(lengths):
        if segment_length == 0:
            continue
        start = array[index]
        end = array[index + 1]
        steps = math.ceil(segment_length / interval_m)
        for step in range(1, steps + 1):
            fraction = step / steps
            points.append(
                SampledPoint(
                    lat=float(start[1] + (end[1] - start[1]) * fraction),
                    lng=float(start[0] + (end[0] - start[0]) * fraction),
                    distance=float(travelled + segment_length * fraction),
                )
            )
        travelled += float(segment_length)
    return points


def sample_by_count(
    coordinates: Sequence[Sequence[float]],
    count: int = ROUTE_SAMPLE_COUNT,
) -> List[SampledPoint]:
    """Sample exactly ``count`` points evenly spaced by distance along a route.

    A route with no length (start equals end) yields the single start point.
    """

    if count < 1:
        raise ValidationError("count must be at least 1")
    array = _as_route_array(coordinates, minimum=2)
    lengths = _segment_lengths(array)
    keep = lengths > 0
    first_lon, first_lat = array[0]
    first = SampledPoint(lat=float(first_lat), lng=float(first_lon), distance=0.0)
    if not np.any(keep) or count == 1:
        return [first]

    starts = array[:-1][keep]
    ends = array[1:][keep]
    seg_lengths = lengths[keep]
    cum_end = np.cumsum(seg_lengths)
    cum_start = cum_end - seg_lengths
    route_length = float(cum_end[-1])

    targets = np.linspace(0.0, route_length, num=count)
    index = np.searchsorted(cum_end, targets, side="left")
    index = np.clip(index, 0, len(seg_lengths) - 1)
    fraction = np.clip((targets - cum_start[index]) / seg_lengths[index], 0.0, 1.0)
    lons = starts[index, 0] + (ends[index, 0] - starts[index, 0]) * fraction
    lats = starts[index, 1] + (ends[index, 1] - starts[index, 1]) * fraction
    # Pin the final sample to the last vertex rather than an interpolated
    # value that may differ in the last bit.
    lons[-1] = ends[-1, 0]
    lats[-1] = ends[-1, 1]

    return [
        SampledPoint(lat=float(lat), lng=float(lon), distance=float(dist))
        for lat, lon, dist in zip(lats, lons, targets)
    ]


def _segment_lengths(array: NDArray[np.float64]) -> NDArray[np.float64]:
    """Vectorised haversine length of each consecutive vertex pair."""

    if len(array) < 2:
        return np.zeros(0, dtype=float)
    lon = np.radians(array[:, 0])
    lat = np.radians(array[:, 1])
    d_phi = np.diff(lat)
    d_lambda = np.diff(lon)
    a = (
        np.sin(d_phi / 2) ** 2
        + np.cos(lat[:-1]) * np.cos(lat[1:]) * np.sin(d_lambda / 2) ** 2
    )
    return EARTH_RADIUS_M * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))


def _as_route_array(
    coordinates: Sequence[Sequence[float]], *, minimum: int
) -> NDArray[np.float64]:
    """Validate ``[[lon, lat], ...]`` input and return it as a float array."""

    if coordinates is None or len(coordinates) < minimum:
        raise ValidationError(f"Route must have at least {minimum} points")
    try:
        array = np.asarray([[c[0], c[1]] for c in coordinates], dtype=float)
    except (TypeError, ValueError, IndexError) as exc:
        raise ValidationError(
            "Route coordinates must be [longitude, latitude] pairs"
        ) from exc
    if not np.all(np.isfinite(array)):
        raise ValidationError("Route coordinates must be finite numbers")
    return array
