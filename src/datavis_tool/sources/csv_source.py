"""Lectura de CSV de dos columnas (fecha ISO-8601, valor)."""

from __future__ import annotations

import logging
import re

from datavis_tool.errors import DecodeError
from datavis_tool.model import Sample
from datavis_tool.sources.base import SampleDecoder, parse_decimal, parse_timestamp

logger = logging.getLogger(__name__)

_HEADER_MARKER = "timestamp"
_LINE_BREAK = re.compile(r"\r\n|\r|\n")


class CsvSampleDecoder(SampleDecoder):
    """Best-effort decoder for ``<ISO-8601>,<number>`` lines.

    Only a non UTF-8 payload is an error. Rows with the wrong column count or
    an unparseable date/value are skipped.
    """

    def decode(self, data: bytes) -> list[Sample]:
        try:
            content = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError(f"CSV payload is not UTF-8: {exc}") from exc

        lines = _LINE_BREAK.split(content)
        start = 1 if lines and _HEADER_MARKER in lines[0].lower() else 0

        out: list[Sample] = []
        for lineno, line in enumerate(lines[start:], start=start + 1):
            sample = _line_to_sample(line)
            if sample is not None:
                out.append(sample)
            elif line.strip():
                logger.debug("Skipping CSV line %d: %r", lineno, line)
        return out


def _line_to_sample(line: str) -> Sample | None:
    """Convierte una línea en Sample; None si la fila no es válida."""
    text = line.strip()
    if not text:
        return None
    columns = text.split(",")
    if len(columns) != 2:
        return None
    raw_date, raw_value = (c.strip() for c in columns)
    try:
        ts = parse_timestamp(raw_date)
        value = parse_decimal(raw_value)
    except (ValueError, OverflowError):
        return None
    return Sample(timestamp=ts, value=value)
