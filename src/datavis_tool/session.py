"""Estado de la sesión del dashboard (lo que consume la GUI)."""

from __future__ import annotations

import math
from concurrent.futures import Future
from datetime import datetime
from pathlib import Path

from dateutil import tz

from datavis_tool.analysis import aggregate, filter_range
from datavis_tool.charts import ChartPoint, PieSlice, build_geometry
from datavis_tool.ingestion import (
    ContentKind,
    ImportResult,
    IngestionGateway,
    kind_for_path,
)
from datavis_tool.model import ChartType, DateRange, DerivedStats, Sample
from datavis_tool.series import SeriesStore


class DashboardSession:
    """Read/mutate facade over the series store for one dashboard session."""

    def __init__(
        self,
        store: SeriesStore,
        gateway: IngestionGateway | None = None,
        *,
        now: datetime | None = None,
    ) -> None:
        self.store = store
        self.gateway = gateway or IngestionGateway(store)
        self.chart_type = ChartType.LINE
        self.filter_active = False
        self.date_range = DateRange.last_day(now or datetime.now(tz=tz.UTC))

    def filtered_samples(self) -> list[Sample]:
        return filter_range(self.store.samples, self.date_range)

    def displayed_samples(self) -> list[Sample]:
        """Filtered samples when the filter is on, else the whole series."""
        if self.filter_active:
            return self.filtered_samples()
        return list(self.store.samples)

    def stats(self) -> DerivedStats:
        return aggregate(self.displayed_samples())

    def geometry(self, filtered: bool = False) -> list[ChartPoint] | list[PieSlice]:
        samples = self.filtered_samples() if filtered else self.displayed_samples()
        return build_geometry(self.chart_type, samples)

    def add_value(self, text: str) -> Sample | None:
        """Append the manually typed value; invalid input is ignored."""
        try:
            value = float(text.strip())
        except ValueError:
            return None
        if not math.isfinite(value):
            return None
        return self.store.append(value)

    def reset_filter_to_full_range(self) -> None:
        """Set the range to the series extent and turn the filter on."""
        bounds = self.store.min_max_timestamp()
        if bounds is not None:
            self.date_range = DateRange.from_bounds(bounds)
        self.filter_active = True

    def import_file(
        self, path: Path | str, kind: ContentKind | str | None = None
    ) -> ImportResult:
        declared = kind if kind is not None else kind_for_path(path)
        return self.gateway.import_local(path, declared)

    def import_url(self, url: str) -> Future[ImportResult]:
        return self.gateway.import_remote(url)
