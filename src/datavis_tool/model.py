"""Modelos tipados para muestras, rangos de fechas y estadísticas."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from uuid import UUID, uuid4


@dataclass(frozen=True)
class Sample:
    """One timestamped numeric observation.

    The ``id`` is only used to tell list rows apart in the UI; it is not part
    of equality and is never serialized.
    """

    timestamp: datetime
    value: float
    id: UUID = field(default_factory=uuid4, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.timestamp.tzinfo is None:
            raise ValueError("Sample timestamp must be timezone-aware")
        if not math.isfinite(self.value):
            raise ValueError(f"Sample value must be finite, got {self.value!r}")


@dataclass(frozen=True)
class DateRange:
    """Inclusive date interval used to filter a series."""

    start: datetime
    end: datetime

    @classmethod
    def last_day(cls, now: datetime) -> DateRange:
        """Default filter window: the 24 hours before ``now``."""
        return cls(start=now - timedelta(days=1), end=now)

    @classmethod
    def from_bounds(cls, bounds: tuple[datetime, datetime]) -> DateRange:
        start, end = bounds
        return cls(start=start, end=end)

    def contains(self, ts: datetime) -> bool:
        return self.start <= ts <= self.end


@dataclass(frozen=True)
class DerivedStats:
    """Count/total/average/min/max over a sequence of samples."""

    count: int = 0
    total: float = 0.0
    average: float = 0.0
    min: float = 0.0
    max: float = 0.0


class ChartType(str, Enum):
    """Chart representations offered by the dashboard."""

    LINE = "line"
    BAR = "bar"
    PIE = "pie"

    @property
    def label(self) -> str:
        return self.value.capitalize()
