import json

import pandas as pd
import pytest

from route_coverage.export import results_to_frame, write_results
from route_coverage.models import CoverageReading, CoverageResult, SampledPoint
from route_coverage.summary import summarize_coverage


@pytest.fixture
def results():
    return [
        CoverageResult(
            point=SampledPoint(lat=51.5074, lng=-0.1276, distance=0.0),
            readings={
                "mno1": CoverageReading("mno1", level=4, color="#7d2093"),
                "mno2": CoverageReading("mno2", error="HTTP 503"),
            },
        ),
        CoverageResult(
            point=SampledPoint(lat=51.5074, lng=-0.1, distance=1912.34),
            readings={
                "mno1": CoverageReading("mno1", level=None, color="#ffffff"),
                "mno2": CoverageReading("mno2", level=0, color="#d4d4d4"),
            },
        ),
    ]


def test_results_frame_has_columns_per_operator(results):
    frame = results_to_frame(results, ["mno1", "mno2"])
    assert list(frame.columns[:3]) == ["Distance (m)", "Lat", "Lng"]
    assert frame.loc[1, "Distance (m)"] == 1912.3
    assert frame.loc[0, "Vodafone Level"] == 4
    assert pd.isna(frame.loc[1, "Vodafone Level"])
    assert frame.loc[1, "Vodafone Coverage"] == "Unknown"
    assert frame.loc[0, "O2 Error"] == "HTTP 503"
    assert frame.loc[1, "O2 Coverage"] == "Poor to none outdoor"
    assert str(frame["O2 Level"].dtype) == "Int64"


def test_write_csv(tmp_path, results):
    path = write_results(tmp_path / "out" / "points.csv", results, ["mno1", "mno2"])
    frame = pd.read_csv(path)
    assert len(frame) == 2
    assert "EE Level" not in frame.columns


def test_write_json(tmp_path, results):
    path = write_results(tmp_path / "points.json", results, ["mno1"])
    records = json.loads(path.read_text(encoding="utf-8"))
    assert records[0]["Vodafone Colour"] == "#7d2093"


def test_write_xlsx_with_summary_sheet(tmp_path, results):
    summary = summarize_coverage(results, ["mno1", "mno2"])
    path = write_results(tmp_path / "points.xlsx", results, ["mno1", "mno2"], summary)
    sheets = pd.read_excel(path, sheet_name=None, engine="openpyxl")
    assert set(sheets) == {"Points", "Summary"}
    assert list(sheets["Summary"]["Operator"]) == ["mno1", "mno2"]


def test_unknown_suffix_is_rejected(tmp_path, results):
    with pytest.raises(ValueError):
        write_results(tmp_path / "points.txt", results)


def test_check_output_path_accepts_known_suffixes_only(tmp_path):
    from route_coverage.errors import ValidationError
    from route_coverage.export import check_output_path

    assert check_output_path(tmp_path / "points.XLSX").name == "points.XLSX"
    with pytest.raises(ValidationError):
        check_output_path(tmp_path / "points.txt")
    with pytest.raises(ValidationError):
        check_output_path(tmp_path / "points")
