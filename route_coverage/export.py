"""Flatten coverage results into tables and write them to disk."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pandas as pd

from .config import OPERATORS
from .errors import ValidationError
from .matching import describe_level
from .models import CoverageResult

LOGGER = logging.getLogger(__name__)

__all__ = [
    "OUTPUT_SUFFIXES",
    "check_output_path",
    "results_to_frame",
    "write_results",
]

OUTPUT_SUFFIXES = (".csv", ".json", ".xlsx")


def results_to_frame(
    results: Sequence[CoverageResult],
    operator_ids: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """One row per sampled point with level, colour and error per operator."""

    operators = list(operator_ids) if operator_ids is not None else list(OPERATORS)
    rows: List[Dict[str, object]] = []
    for result in results:
        row: Dict[str, object] = {
            "Distance (m)": round(result.point.distance, 1),
            "Lat": result.point.lat,
            "Lng": result.point.lng,
        }
        for operator_id in operators:
            label = OPERATORS.get(operator_id, operator_id)
            reading = result.readings.get(operator_id)
            level = reading.level if reading is not None else None
            row[f"{label} Level"] = level
            row[f"{label} Coverage"] = describe_level(level)
            row[f"{label} Colour"] = reading.color if reading is not None else None
            row[f"{label} Error"] = reading.error if reading is not None else None
        rows.append(row)
    frame = pd.DataFrame(rows)
    level_columns = [c for c in frame.columns if c.endswith(" Level")]
    for column in level_columns:
        frame[column] = frame[column].astype("Int64")
    return frame


def check_output_path(path: str | Path) -> Path:
    """Reject output paths whose suffix has no writer, before any work is done."""

    output = Path(path)
    if output.suffix.lower() not in OUTPUT_SUFFIXES:
        raise ValidationError(
            f"Unsupported output format: {output.suffix or '(none)'}; "
            f"expected one of {', '.join(OUTPUT_SUFFIXES)}"
        )
    return output


def write_results(
    path: str | Path,
    results: Sequence[CoverageResult],
    operator_ids: Optional[Sequence[str]] = None,
    summary: Optional[pd.DataFrame] = None,
) -> Path:
    """Write results as CSV, JSON or XLSX depending on the file suffix."""

    output = Path(path)
    output.parent.mkdir(parents=True, exist_ok=True)
    frame = results_to_frame(results, operator_ids)
    suffix = output.suffix.lower()
    if suffix == ".csv":
        frame.to_csv(output, index=False)
    elif suffix == ".json":
        frame.to_json(output, orient="records", indent=2)
    elif suffix == ".xlsx":
        with pd.ExcelWriter(output, engine="openpyxl") as writer:
            frame.to_excel(writer, sheet_name="Points", index=False)
            if summary is not None:
                summary.to_excel(writer, sheet_name="Summary", index=False)
    else:
        raise ValueError(f"Unsupported output format: {output.suffix or '(none)'}")
    LOGGER.info("Wrote %d rows to %s", len(frame), output)
    return output
