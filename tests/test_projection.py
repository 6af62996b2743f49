"""Tests for the WGS84 <-> British National Grid projector."""

from __future__ import annotations

import math

import pytest

from route_coverage.errors import ConfigurationError
from route_coverage.geometry.projection import GeodeticProjector
from route_coverage.geometry.tiles import TileAddressResolver


@pytest.fixture(scope="module")
def projector() -> GeodeticProjector:
    return GeodeticProjector()


def test_known_point_projects_close_to_published_grid_reference(projector):
    # Caister Water Tower, the Ordnance Survey worked example.
    lat = 52 + 39 / 60 + 28.8282 / 3600
    lon = 1 + 42 / 60 + 57.8663 / 3600
    projected = projector.to_projected(lat, lon)
    # Seven-parameter Helmert is accurate to a few metres against OSTN15.
    assert projected.easting == pytest.approx(651409.903, abs=15)
    assert projected.northing == pytest.approx(313177.270, abs=15)


def test_round_trip_is_sub_metre(projector):
    for lat, lon in [(51.5074, -0.1276), (55.9533, -3.1883), (50.0657, -5.7132)]:
        projected = projector.to_projected(lat, lon)
        back = projector.to_geographic(projected.easting, projected.northing)
        again = projector.to_projected(back.lat, back.lon)
        assert again.easting == pytest.approx(projected.easting, abs=0.5)
        assert again.northing == pytest.approx(projected.northing, abs=0.5)
        assert back.lat == pytest.approx(lat, abs=1e-6)
        assert back.lon == pytest.approx(lon, abs=1e-6)


@pytest.mark.parametrize(
    "lat, lon",
    [(math.nan, -0.1), (51.5, math.nan), ("not-a-number", -0.1), (None, None)],
)
def test_invalid_input_yields_nan_instead_of_raising(projector, lat, lon):
    projected = projector.to_projected(lat, lon)
    assert math.isnan(projected.easting)
    assert math.isnan(projected.northing)
    assert not projected.is_finite()


def test_numeric_strings_are_accepted(projector):
    direct = projector.to_projected(51.5074, -0.1276)
    from_text = projector.to_projected("51.5074", "-0.1276")
    assert from_text == direct


def test_unusable_grid_definition_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        GeodeticProjector("+proj=definitely_not_a_projection")


def test_central_london_resolves_to_expected_tile(projector):
    projected = projector.to_projected(51.5074, -0.1276)
    pixel = TileAddressResolver().to_pixel(projected.easting, projected.northing, 8)
    assert (pixel.tile_x, pixel.tile_y) == (184, 62)
    assert 0 <= pixel.pixel_x < 256
    assert 0 <= pixel.pixel_y < 256


def test_tile_geographic_bounds_contain_the_point(projector):
    resolver = TileAddressResolver()
    projected = projector.to_projected(51.5074, -0.1276)
    tile = resolver.to_tile(projected.easting, projected.northing, 8)
    bounds = resolver.tile_to_geographic_bounds(
        tile.tile_x, tile.tile_y, projector, zoom=8
    )
    assert bounds.south < 51.5074 < bounds.north
    assert bounds.west < -0.1276 < bounds.east
