"""Per-operator coverage statistics for a completed route analysis.

Percentages are cumulative ("level or better") over every sampled point.
Readings without a level (no palette match or a failed tile) are counted as
``Unknown`` and excluded from the average rather than treated as level 0.
"""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Sequence

import pandas as pd

from .config import OPERATORS
from .models import CoverageResult

SUMMARY_COLUMNS = [
    "Operator",
    "Network",
    "Indoor+",
    "Indoor",
    "Outdoor",
    "Variable",
    "Poor/None",
    "Unknown",
    "Avg Level",
    "Rank",
]

# Column -> (minimum level, exact match)
_THRESHOLDS = {
    "Indoor+": (4, False),
    "Indoor": (3, False),
    "Outdoor": (2, False),
    "Variable": (1, False),
    "Poor/None": (0, True),
}


def _percent(count: int, total: int) -> int:
    return int(round(count / total * 100)) if total else 0


def summarize_coverage(
    results: Sequence[CoverageResult],
    operator_ids: Optional[Sequence[str]] = None,
    names: Mapping[str, str] = OPERATORS,
) -> pd.DataFrame:
    """Return one row per operator, ordered by rank then operator order."""

    operators = list(operator_ids) if operator_ids is not None else list(names)
    total = len(results)
    rows: List[Dict[str, object]] = []
    for operator_id in operators:
        levels: List[Optional[int]] = []
        for result in results:
            reading = result.readings.get(operator_id)
            levels.append(reading.level if reading is not None else None)
        known = [level for level in levels if level is not None]
        row: Dict[str, object] = {
            "Operator": operator_id,
            "Network": names.get(operator_id, operator_id),
        }
        for column, (threshold, exact) in _THRESHOLDS.items():
            if exact:
                matched = sum(1 for level in known if level == threshold)
            else:
                matched = sum(1 for level in known if level >= threshold)
            row[column] = _percent(matched, total)
        row["Unknown"] = _percent(total - len(known), total)
        row["Avg Level"] = (sum(known) / len(known)) if known else float("nan")
        rows.append(row)

    frame = pd.DataFrame(rows, columns=SUMMARY_COLUMNS[:-1])
    if frame.empty:
        return pd.DataFrame(columns=SUMMARY_COLUMNS)
    # Competition ranking: ties share the best rank, operators without any
    # known reading rank last.
    frame["Rank"] = (
        frame["Avg Level"]
        .rank(method="min", ascending=False, na_option="bottom")
        .astype(int)
    )
    return frame.sort_values(["Rank"], kind="stable").reset_index(drop=True)
