"""Clases base para decodificadores de muestras."""

from __future__ import annotations

import math
import re
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from dateutil import tz
from dateutil.parser import isoparse

from datavis_tool.model import Sample

_DECIMAL_RX = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


class SampleDecoder(ABC):
    """Abstract decoder turning raw bytes into samples."""

    @abstractmethod
    def decode(self, data: bytes) -> list[Sample]:
        """Decode a full payload.

        Args:
            data: Raw bytes read from a file or an HTTP body.

        Returns:
            Decoded samples, in payload order.

        Raises:
            DecodeError: If the payload cannot be decoded at all.
        """


def parse_timestamp(raw: Any) -> datetime:
    """Parse a strict ISO-8601 date-time with timezone and normalize to UTC.

    Raises:
        ValueError: If the value is not a string, not ISO-8601, or has no
            time zone (date-only values are naive and rejected too).
    """
    if not isinstance(raw, str) or not raw.strip():
        raise ValueError(f"Timestamp must be a non-empty string, got {raw!r}")
    dt = isoparse(raw.strip())
    if dt.tzinfo is None:
        raise ValueError(f"Timestamp without time zone: {raw!r}")
    return dt.astimezone(tz.UTC)


def parse_decimal(raw: str) -> float:
    """Parse a plain decimal number; NaN/Infinity are rejected."""
    text = raw.strip()
    if not _DECIMAL_RX.match(text):
        raise ValueError(f"Not a decimal number: {raw!r}")
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"Non-finite number: {raw!r}")
    return value
