from __future__ import annotations

import math
from datetime import date, datetime, timedelta, timezone

from datavis_tool.analysis import (
    DAILY_COLUMNS,
    aggregate,
    daily_summary,
    filter_range,
    samples_to_frame,
)
from datavis_tool.model import DateRange, DerivedStats, Sample
from datavis_tool.series import SeriesStore

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _series(*pairs: tuple[float, float]) -> list[Sample]:
    return [Sample(timestamp=T0 + timedelta(hours=h), value=v) for h, v in pairs]


def test_aggregate_empty_is_all_zero() -> None:
    assert aggregate([]) == DerivedStats(count=0, total=0, average=0, min=0, max=0)


def test_aggregate_values() -> None:
    stats = aggregate(_series((0, 10), (1, 20), (2, 15)))
    assert stats.count == 3
    assert stats.total == 45
    assert stats.min == 10
    assert stats.max == 20
    assert math.isclose(stats.average, stats.total / stats.count)


def test_aggregate_negative_values() -> None:
    stats = aggregate(_series((0, -3), (1, -1)))
    assert stats.min == -3
    assert stats.max == -1
    assert stats.average == -2


def test_filter_range_inclusive_both_ends() -> None:
    series = _series((0, 1), (1, 2), (2, 3), (3, 4))
    window = DateRange(T0 + timedelta(hours=1), T0 + timedelta(hours=2))
    out = filter_range(series, window)
    assert [s.value for s in out] == [2, 3]


def test_filter_full_bounds_keeps_everything() -> None:
    store = SeriesStore(_series((5, 1), (-1, 2), (3, 3)))
    bounds = store.min_max_timestamp()
    assert bounds is not None
    out = filter_range(store.samples, DateRange.from_bounds(bounds))
    assert len(out) == len(store)
    assert [s.value for s in out] == [1, 2, 3]


def test_filter_inverted_range_is_empty() -> None:
    series = _series((0, 1), (1, 2))
    assert filter_range(series, DateRange(T0 + timedelta(hours=1), T0)) == []


def test_last_day_range() -> None:
    r = DateRange.last_day(T0)
    assert r.end - r.start == timedelta(days=1)
    assert r.contains(T0)


def test_samples_to_frame_empty_has_columns() -> None:
    df = samples_to_frame([])
    assert df.empty
    assert list(df.columns) == ["datetime", "date", "value"]


def test_daily_summary_groups_by_day() -> None:
    series = _series((0, 1.0), (5, 2.333), (25, 4.0), (1, 3.0))
    out = daily_summary(series)
    assert list(out.columns) == DAILY_COLUMNS
    assert list(out["date"]) == [date(2024, 1, 1), date(2024, 1, 2)]
    assert list(out["count"]) == [3, 1]
    assert out.loc[0, "min"] == 1.0
    assert out.loc[0, "max"] == 3.0
    assert out.loc[0, "avg"] == 2.11


def test_daily_summary_empty() -> None:
    out = daily_summary([])
    assert out.empty
    assert list(out.columns) == DAILY_COLUMNS
