"""Filtro por rango de fechas y estadísticas derivadas."""

from __future__ import annotations

from collections.abc import Sequence

import pandas as pd

from datavis_tool.model import DateRange, DerivedStats, Sample

FRAME_COLUMNS = ["datetime", "date", "value"]
DAILY_COLUMNS = ["date", "count", "min", "max", "avg"]


def filter_range(samples: Sequence[Sample], date_range: DateRange) -> list[Sample]:
    """Samples whose timestamp is within ``date_range`` (both ends inclusive)."""
    return [s for s in samples if date_range.contains(s.timestamp)]


def aggregate(samples: Sequence[Sample]) -> DerivedStats:
    """Compute count/total/average/min/max; all zero for an empty sequence."""
    count = len(samples)
    if count == 0:
        return DerivedStats()
    values = [s.value for s in samples]
    total = sum(values)
    return DerivedStats(
        count=count,
        total=total,
        average=total / count,
        min=min(values),
        max=max(values),
    )


def samples_to_frame(samples: Sequence[Sample]) -> pd.DataFrame:
    """Convert samples to a DataFrame with datetime/date/value columns."""
    rows = [
        {"datetime": s.timestamp, "date": s.timestamp.date(), "value": s.value}
        for s in samples
    ]
    if not rows:
        return pd.DataFrame(columns=FRAME_COLUMNS)
    return pd.DataFrame(rows, columns=FRAME_COLUMNS)


def daily_summary(samples: Sequence[Sample]) -> pd.DataFrame:
    """Aggregate samples by (UTC) day: count/min/max/avg."""
    frame = samples_to_frame(samples)
    if frame.empty:
        return pd.DataFrame(columns=DAILY_COLUMNS)
    g = frame.groupby("date", as_index=False).agg(
        count=("value", "count"),
        min=("value", "min"),
        max=("value", "max"),
        avg=("value", "mean"),
    )
    g["avg"] = g["avg"].round(2)
    return g.sort_values("date").reset_index(drop=True)
