"""Serie de muestras activa: única fuente de verdad de la sesión."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta

from dateutil import tz

from datavis_tool.model import Sample

logger = logging.getLogger(__name__)

Dispatch = Callable[[Callable[[], None]], None]
Listener = Callable[[int], None]


def run_inline(fn: Callable[[], None]) -> None:
    """Dispatcher that runs the callable right away on the calling thread."""
    fn()


def seed_samples(now: datetime | None = None) -> list[Sample]:
    """Three starter points shown before any import."""
    now = now or datetime.now(tz=tz.UTC)
    return [
        Sample(timestamp=now - timedelta(seconds=3600), value=10.0),
        Sample(timestamp=now - timedelta(seconds=1800), value=20.0),
        Sample(timestamp=now, value=15.0),
    ]


class SeriesStore:
    """Holds the current series and serializes its mutations.

    Mutations take an internal lock so readers never see a half-replaced
    series. ``dispatch`` is the owner context: code finishing on another
    thread must go through it before mutating (the GUI installs its main
    loop scheduler here).
    """

    def __init__(
        self,
        samples: Iterable[Sample] | None = None,
        *,
        dispatch: Dispatch | None = None,
    ) -> None:
        self._samples: tuple[Sample, ...] = tuple(samples or ())
        self._lock = threading.RLock()
        self._version = 0
        self._listeners: list[Listener] = []
        self._dispatch: Dispatch = dispatch or run_inline

    @classmethod
    def seeded(
        cls, now: datetime | None = None, *, dispatch: Dispatch | None = None
    ) -> SeriesStore:
        return cls(seed_samples(now), dispatch=dispatch)

    @property
    def samples(self) -> tuple[Sample, ...]:
        with self._lock:
            return self._samples

    @property
    def version(self) -> int:
        with self._lock:
            return self._version

    def __len__(self) -> int:
        return len(self.samples)

    def dispatch(self, fn: Callable[[], None]) -> None:
        """Hand ``fn`` to the owner context."""
        self._dispatch(fn)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a function that removes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def append(self, value: float, timestamp: datetime | None = None) -> Sample:
        """Add one sample at the end (timestamp defaults to now, UTC)."""
        sample = Sample(
            timestamp=timestamp or datetime.now(tz=tz.UTC), value=float(value)
        )
        with self._lock:
            self._samples = (*self._samples, sample)
            self._version += 1
            version = self._version
        self._notify(version)
        return sample

    def replace(self, samples: Iterable[Sample]) -> None:
        """Swap the whole series; an empty sequence is allowed."""
        new_samples = tuple(samples)
        with self._lock:
            self._samples = new_samples
            self._version += 1
            version = self._version
        logger.debug("Series replaced with %d samples", len(new_samples))
        self._notify(version)

    def min_max_timestamp(self) -> tuple[datetime, datetime] | None:
        """Earliest and latest timestamp, or None for an empty series."""
        samples = self.samples
        if not samples:
            return None
        stamps = [s.timestamp for s in samples]
        return min(stamps), max(stamps)

    def _notify(self, version: int) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(version)
