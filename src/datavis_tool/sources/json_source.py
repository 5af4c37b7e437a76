"""Lectura y escritura del formato JSON estructurado de muestras."""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Sequence
from typing import Any

from dateutil import tz

from datavis_tool.errors import DecodeError
from datavis_tool.model import Sample
from datavis_tool.sources.base import SampleDecoder, parse_timestamp

logger = logging.getLogger(__name__)


class JsonSampleDecoder(SampleDecoder):
    """Decoder for ``[{"timestamp": <ISO-8601>, "value": <number>}, ...]``.

    Decoding is all-or-nothing: one malformed record fails the whole payload.
    Records with a non-finite value are dropped.
    """

    def decode(self, data: bytes) -> list[Sample]:
        try:
            text = data.decode("utf-8")
            raw = json.loads(text)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise DecodeError(f"Invalid JSON payload: {exc}") from exc
        if not isinstance(raw, list):
            raise DecodeError("JSON payload must be a list")

        out: list[Sample] = []
        for index, item in enumerate(raw):
            sample = _item_to_sample(item, index)
            if sample is not None:
                out.append(sample)
        return out


def _item_to_sample(item: Any, index: int) -> Sample | None:
    """Convierte un ítem en Sample; None si el valor no es finito."""
    if not isinstance(item, dict):
        raise DecodeError(f"Record {index} is not an object")
    if "timestamp" not in item or "value" not in item:
        raise DecodeError(f"Record {index} must have 'timestamp' and 'value'")

    raw_value = item["value"]
    if isinstance(raw_value, bool) or not isinstance(raw_value, int | float):
        raise DecodeError(f"Record {index} value is not a number: {raw_value!r}")
    try:
        value = float(raw_value)
        ts = parse_timestamp(item["timestamp"])
    except (ValueError, OverflowError) as exc:
        raise DecodeError(f"Record {index}: {exc}") from exc

    if not math.isfinite(value):
        logger.debug("Dropping record %d with non-finite value", index)
        return None
    return Sample(timestamp=ts, value=value)


def encode_samples(samples: Sequence[Sample]) -> bytes:
    """Serialize samples to the structured JSON format (ids omitted)."""
    payload = [
        {"timestamp": _format_timestamp(s), "value": s.value} for s in samples
    ]
    return json.dumps(payload, ensure_ascii=True).encode("utf-8")


def _format_timestamp(sample: Sample) -> str:
    return sample.timestamp.astimezone(tz.UTC).isoformat().replace("+00:00", "Z")
