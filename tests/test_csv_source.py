"""Tests for the two-column CSV decoder."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from datavis_tool.errors import DecodeError
from datavis_tool.sources.csv_source import CsvSampleDecoder, _line_to_sample


def _decode(text: str) -> list[tuple[datetime, float]]:
    out = CsvSampleDecoder().decode(text.encode("utf-8"))
    return [(s.timestamp, s.value) for s in out]


def test_decode_without_header() -> None:
    out = _decode("2024-01-01T00:00:00Z,5\n2024-01-02T00:00:00Z,7.5\n")
    assert out == [
        (datetime(2024, 1, 1, tzinfo=timezone.utc), 5.0),
        (datetime(2024, 1, 2, tzinfo=timezone.utc), 7.5),
    ]


@pytest.mark.parametrize("header", ["timestamp,value", "Timestamp,Value", "TIMESTAMP"])
def test_decode_skips_header_regardless_of_case(header: str) -> None:
    out = _decode(f"{header}\n2024-01-01T00:00:00Z,5\n")
    assert [v for _, v in out] == [5.0]


def test_header_only_skipped_on_first_line() -> None:
    out = _decode("2024-01-01T00:00:00Z,1\ntimestamp,value\n2024-01-02T00:00:00Z,2\n")
    assert [v for _, v in out] == [1.0, 2.0]


@pytest.mark.parametrize(
    "row",
    [
        "not-a-date,5",
        "2024-01-01T00:00:00Z,abc",
        "2024-01-01T00:00:00Z,5,extra",
        "2024-01-01T00:00:00Z",
        "2024-01-01,5",
        "2024-01-01T00:00:00Z,nan",
        "2024-01-01T00:00:00Z,inf",
        "2024-01-01T00:00:00Z,",
    ],
)
def test_decode_skips_malformed_rows(row: str) -> None:
    out = _decode(f"2024-01-01T00:00:00Z,1\n{row}\n2024-01-03T00:00:00Z,3\n")
    assert [v for _, v in out] == [1.0, 3.0]


def test_decode_trims_whitespace_and_blank_lines() -> None:
    out = _decode("\n  2024-01-01T00:00:00Z , 4 \r\n\r\n   \n")
    assert out == [(datetime(2024, 1, 1, tzinfo=timezone.utc), 4.0)]


def test_decode_keeps_input_order() -> None:
    out = _decode("2024-01-03T00:00:00Z,3\n2024-01-01T00:00:00Z,1\n")
    assert [v for _, v in out] == [3.0, 1.0]


def test_decode_accepts_cr_and_crlf_line_endings() -> None:
    out = _decode("2024-01-01T00:00:00Z,1\r2024-01-02T00:00:00Z,2\r\n")
    assert [v for _, v in out] == [1.0, 2.0]


@pytest.mark.parametrize("sep", ["\x0c", "\x1c", "\x85", "\u2028"])
def test_decode_only_splits_on_newline_characters(sep: str) -> None:
    out = _decode(
        f"2024-01-01T00:00:00Z,1{sep}2024-01-02T00:00:00Z,2\n"
        "2024-01-03T00:00:00Z,3\n"
    )
    assert [v for _, v in out] == [3.0]


def test_decode_all_rows_bad_returns_empty() -> None:
    assert _decode("a,b\nc,d\n") == []


def test_decode_empty_payload_returns_empty() -> None:
    assert CsvSampleDecoder().decode(b"") == []


def test_decode_not_utf8_raises() -> None:
    with pytest.raises(DecodeError, match="not UTF-8"):
        CsvSampleDecoder().decode(b"2024-01-01T00:00:00Z,\xff\n")


def test_line_to_sample_converts_offset_to_utc() -> None:
    sample = _line_to_sample("2024-01-01T02:00:00+02:00,-1.5e1")
    assert sample is not None
    assert sample.timestamp == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert sample.value == -15.0
