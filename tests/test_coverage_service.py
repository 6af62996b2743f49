import math
import threading

import pytest

from route_coverage.errors import TileFetchError, ValidationError
from route_coverage.models import SampledPoint
from route_coverage.services import CoverageService, CoverageServiceConfig
from route_coverage.tiles import TileCache

from conftest import FakeProjector, FakeTileClient, make_png

OPERATORS = ["mno1", "mno2", "mno3", "mno4"]


def _points(n, spacing=0.01):
    return [
        SampledPoint(lat=51.5, lng=-0.1 + i * spacing, distance=i * 700.0)
        for i in range(n)
    ]


def _service(client, *, sleeps=None, **overrides):
    sleeps = [] if sleeps is None else sleeps
    cfg = CoverageServiceConfig(sleep=sleeps.append, **overrides)
    return CoverageService(
        tile_cache=TileCache(client=client),
        projector=FakeProjector(),
        config=cfg,
    )


def test_every_point_gets_a_reading_per_operator():
    service = _service(FakeTileClient(make_png()))
    results = service.analyze(_points(3), OPERATORS)
    assert len(results) == 3
    for result in results:
        assert list(result.readings) == OPERATORS
        for reading in result.readings.values():
            assert reading.ok
            assert reading.level == 4
            assert reading.color == "#7d2093"


def test_failed_operator_does_not_affect_others():
    good = make_png(color=(0x00, 0x81, 0xB3, 255))

    def payload(operator_id, zoom, tile_x, tile_y, version):
        if operator_id == "mno2":
            raise TileFetchError("HTTP 503")
        return good

    results = _service(FakeTileClient(payload)).analyze(_points(2), OPERATORS)
    for result in results:
        failed = result.readings["mno2"]
        assert failed.level is None
        assert failed.color is None
        assert "503" in failed.error
        assert all(result.readings[op].level == 2 for op in ("mno1", "mno3", "mno4"))


def test_undecodable_tile_becomes_error_reading():
    results = _service(FakeTileClient(b"<html>")).analyze(_points(1), ["mno1"])
    reading = results[0].readings["mno1"]
    assert reading.level is None
    assert not reading.ok


def test_unmatched_colour_is_unknown_without_error():
    service = _service(FakeTileClient(make_png(color=(255, 255, 255, 255))))
    reading = service.analyze(_points(1), ["mno3"])[0].readings["mno3"]
    assert reading.ok
    assert reading.level is None
    assert reading.color == "#ffffff"


@pytest.mark.parametrize("count, expected_sleeps", [(0, 0), (4, 0), (5, 0), (6, 1), (10, 1), (12, 2)])
def test_pacing_sleeps_between_batches_but_not_after_last(count, expected_sleeps):
    sleeps = []
    service = _service(FakeTileClient(make_png()), sleeps=sleeps)
    service.analyze(_points(count), ["mno1"])
    assert sleeps == [0.5] * expected_sleeps


def test_pacing_respects_configured_batch():
    sleeps = []
    service = _service(
        FakeTileClient(make_png()),
        sleeps=sleeps,
        batch_size=2,
        batch_delay_seconds=0.1,
    )
    service.analyze(_points(5), ["mno1"])
    assert sleeps == [0.1, 0.1]


def test_points_sharing_a_tile_fetch_it_once_per_operator():
    client = FakeTileClient(make_png())
    service = _service(client)
    service.analyze(_points(4, spacing=0.0001), OPERATORS)
    assert len(client.calls) == len(OPERATORS)
    assert service.tile_cache.stats.tiles_from_cache == 3 * len(OPERATORS)


def test_parallel_operators_preserve_order():
    seen_threads = set()

    def payload(operator_id, zoom, tile_x, tile_y, version):
        seen_threads.add(threading.get_ident())
        return make_png()

    service = _service(FakeTileClient(payload), max_workers=4)
    points = _points(6)
    results = service.analyze(points, OPERATORS)
    assert [r.point for r in results] == points
    assert all(list(r.readings) == OPERATORS for r in results)
    assert seen_threads


def test_progress_callback_receives_running_count():
    calls = []
    service = _service(FakeTileClient(make_png()))
    service.analyze(_points(3), ["mno1"], progress=lambda done, total: calls.append((done, total)))
    assert calls == [(1, 3), (2, 3), (3, 3)]


def test_unprojectable_point_marks_all_operators_failed():
    client = FakeTileClient(make_png())
    service = _service(client)
    points = [SampledPoint(lat=math.nan, lng=-0.1, distance=0.0)] + _points(1)
    results = service.analyze(points, OPERATORS)
    assert all(not r.ok for r in results[0].readings.values())
    assert all(r.ok for r in results[1].readings.values())


def test_default_operators_are_all_four():
    service = _service(FakeTileClient(make_png()))
    results = service.analyze(_points(1))
    assert list(results[0].readings) == OPERATORS


def test_coverage_at_single_location():
    service = _service(FakeTileClient(make_png(color=(0x83, 0xE5, 0xF6, 255))))
    readings = service.coverage_at(51.5, -0.1, ["mno4"])
    assert readings["mno4"].level == 1


def test_invalid_zoom_is_rejected_up_front():
    with pytest.raises(ValidationError):
        _service(FakeTileClient(make_png()), zoom=12)


def test_failed_readings_are_logged(caplog):
    caplog.set_level("WARNING")
    service = _service(FakeTileClient(b"broken"))
    service.analyze(_points(2), ["mno1"])
    messages = [record.getMessage() for record in caplog.records]
    assert any("Failed to read mno1 coverage" in m for m in messages)
    assert any("2 failed readings out of 2" in m for m in messages)


def test_unwritable_tile_store_keeps_route_results(tmp_path):
    from route_coverage.tiles import DiskTileStore, LayeredTileStore, MemoryTileStore

    (tmp_path / "mno2").write_bytes(b"")
    store = LayeredTileStore(MemoryTileStore(), DiskTileStore(tmp_path))
    service = CoverageService(
        tile_cache=TileCache(client=FakeTileClient(make_png()), store=store),
        projector=FakeProjector(),
        config=CoverageServiceConfig(sleep=lambda _: None),
    )
    results = service.analyze(_points(3), ["mno1", "mno2", "mno3"])
    assert len(results) == 3
    assert all(r.readings["mno2"].level == 4 for r in results)
    assert all(r.ok for result in results for r in result.readings.values())
