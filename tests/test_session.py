from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from datavis_tool.charts import PieSlice
from datavis_tool.errors import UnsupportedFormatError
from datavis_tool.model import ChartType, DateRange
from datavis_tool.series import SeriesStore
from datavis_tool.session import DashboardSession

NOW = datetime(2024, 6, 1, 12, tzinfo=timezone.utc)


def _session() -> DashboardSession:
    return DashboardSession(SeriesStore.seeded(NOW), now=NOW)


def test_default_state() -> None:
    session = _session()
    assert session.chart_type is ChartType.LINE
    assert session.filter_active is False
    assert session.date_range == DateRange(NOW - timedelta(days=1), NOW)
    assert session.stats().count == 3


@pytest.mark.parametrize("text", ["", "abc", "nan", "inf", "1,5"])
def test_add_value_ignores_invalid_input(text: str) -> None:
    session = _session()
    assert session.add_value(text) is None
    assert len(session.store) == 3


def test_add_value_appends() -> None:
    session = _session()
    sample = session.add_value(" 12.5 ")
    assert sample is not None
    assert session.store.samples[-1].value == 12.5


def test_filter_toggle_changes_displayed_samples() -> None:
    session = _session()
    session.date_range = DateRange(NOW - timedelta(minutes=45), NOW)
    assert [s.value for s in session.filtered_samples()] == [20.0, 15.0]
    assert len(session.displayed_samples()) == 3
    session.filter_active = True
    assert session.stats().count == 2
    assert session.stats().average == 17.5


def test_reset_filter_to_full_range() -> None:
    session = _session()
    session.date_range = DateRange(NOW, NOW)
    session.reset_filter_to_full_range()
    assert session.filter_active is True
    assert session.date_range == DateRange(NOW - timedelta(hours=1), NOW)
    assert len(session.displayed_samples()) == 3


def test_reset_filter_on_empty_series_keeps_range() -> None:
    session = _session()
    session.store.replace([])
    previous = session.date_range
    session.reset_filter_to_full_range()
    assert session.filter_active is True
    assert session.date_range == previous


def test_geometry_follows_chart_type() -> None:
    session = _session()
    session.chart_type = ChartType.PIE
    slices = session.geometry()
    assert all(isinstance(s, PieSlice) for s in slices)
    assert slices[-1].end == 360


def test_import_file_detects_kind_from_suffix(tmp_path: Path) -> None:
    p = tmp_path / "points.csv"
    p.write_text("timestamp,value\n2024-01-01T00:00:00Z,3\n", encoding="utf-8")
    session = _session()
    result = session.import_file(p)
    assert result.count == 1
    assert [s.value for s in session.store.samples] == [3.0]


def test_import_file_unknown_suffix(tmp_path: Path) -> None:
    p = tmp_path / "points.unknownext"
    p.write_text("[]", encoding="utf-8")
    session = _session()
    with pytest.raises(UnsupportedFormatError):
        session.import_file(p)
    assert len(session.store) == 3
