"""Geometría de gráficos (línea, barras, torta) a partir de muestras.

The builders are pure: they turn samples into primitives and leave drawing
to the GUI layer. Pie angles are degrees measured clockwise from the
12 o'clock position; renderers that measure from 3 o'clock subtract 90.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from dateutil import tz

from datavis_tool.model import ChartType, Sample

PALETTE: tuple[str, ...] = ("blue", "red", "green", "orange", "purple", "yellow")

PALETTE_RGB: dict[str, tuple[float, float, float]] = {
    "blue": (0.0, 0.48, 1.0),
    "red": (1.0, 0.23, 0.19),
    "green": (0.2, 0.78, 0.35),
    "orange": (1.0, 0.58, 0.0),
    "purple": (0.69, 0.32, 0.87),
    "yellow": (1.0, 0.8, 0.0),
}

TIME_AXIS_TICKS = 4
VALUE_AXIS_TICKS = 5


@dataclass(frozen=True)
class ChartPoint:
    """One (timestamp, value) coordinate of a line or bar chart."""

    timestamp: datetime
    value: float


@dataclass(frozen=True)
class PieSlice:
    """One pie slice; ``start``/``end`` in degrees."""

    index: int
    value: float
    start: float
    end: float
    color: str

    @property
    def sweep(self) -> float:
        return self.end - self.start


def _points(samples: Sequence[Sample]) -> list[ChartPoint]:
    ordered = sorted(samples, key=lambda s: s.timestamp)
    return [ChartPoint(timestamp=s.timestamp, value=s.value) for s in ordered]


def line_points(samples: Sequence[Sample]) -> list[ChartPoint]:
    """One point per sample, in timestamp order."""
    return _points(samples)


def bar_points(samples: Sequence[Sample]) -> list[ChartPoint]:
    """One bar per sample, in timestamp order."""
    return _points(samples)


def pie_slices(samples: Sequence[Sample]) -> list[PieSlice]:
    """Slices from cumulative sums, in input order.

    The divisor is ``max(total, 1)`` so an empty or all-zero series gives
    zero-sweep slices instead of a division error.
    """
    total = sum(s.value for s in samples)
    divisor = max(total, 1.0)
    out: list[PieSlice] = []
    running = 0.0
    for index, sample in enumerate(samples):
        start = 360.0 * running / divisor
        running += sample.value
        end = 360.0 * running / divisor
        out.append(
            PieSlice(
                index=index,
                value=sample.value,
                start=start,
                end=end,
                color=color_for(index),
            )
        )
    return out


def color_for(index: int) -> str:
    return PALETTE[index % len(PALETTE)]


def build_geometry(
    chart_type: ChartType, samples: Sequence[Sample]
) -> list[ChartPoint] | list[PieSlice]:
    """Dispatch to the builder for ``chart_type``."""
    if chart_type is ChartType.LINE:
        return line_points(samples)
    if chart_type is ChartType.BAR:
        return bar_points(samples)
    return pie_slices(samples)


def _nice_number(x: float, round_result: bool) -> float:
    exponent = math.floor(math.log10(x))
    fraction = x / 10**exponent
    if round_result:
        if fraction < 1.5:
            nice = 1.0
        elif fraction < 3:
            nice = 2.0
        elif fraction < 7:
            nice = 5.0
        else:
            nice = 10.0
    elif fraction <= 1:
        nice = 1.0
    elif fraction <= 2:
        nice = 2.0
    elif fraction <= 5:
        nice = 5.0
    else:
        nice = 10.0
    return nice * 10**exponent


def nice_ticks(lo: float, hi: float, desired: int = VALUE_AXIS_TICKS) -> list[float]:
    """Round tick values covering ``[lo, hi]``, roughly ``desired`` of them."""
    if desired < 2:
        raise ValueError("desired must be >= 2")
    if hi < lo:
        lo, hi = hi, lo
    if hi == lo:
        pad = abs(lo) * 0.1 or 1.0
        lo, hi = lo - pad, hi + pad

    span = _nice_number(hi - lo, round_result=False)
    step = _nice_number(span / (desired - 1), round_result=True)
    first = math.floor(lo / step) * step
    last = math.ceil(hi / step) * step
    count = int(round((last - first) / step)) + 1
    return [round(first + i * step, 10) for i in range(count)]


def value_ticks(samples: Sequence[Sample]) -> list[float]:
    """Value-axis ticks for a line/bar chart; the axis always includes 0."""
    values = [s.value for s in samples] or [0.0]
    return nice_ticks(min(0.0, *values), max(0.0, *values), VALUE_AXIS_TICKS)


def time_ticks(samples: Sequence[Sample]) -> list[datetime]:
    """Time-axis ticks spread over the data extent."""
    if not samples:
        return []
    stamps = [s.timestamp.timestamp() for s in samples]
    ticks = nice_ticks(min(stamps), max(stamps), TIME_AXIS_TICKS)
    return [datetime.fromtimestamp(t, tz=tz.UTC) for t in ticks]
