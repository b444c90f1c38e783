"""Tests for timestamp canonicalization."""
from __future__ import annotations

from datetime import datetime, timezone

import pytest

from logfunnel.parsers.timestamps import format_instant, normalize_timestamp, parse_timestamp


@pytest.mark.parametrize("raw,expected", [
    ("10/Oct/2023:13:55:36", "2023-10-10T13:55:36.000Z"),
    ("10/Oct/2023:13:55:36 +0200", "2023-10-10T11:55:36.000Z"),
    ("2023-10-10T13:55:36Z", "2023-10-10T13:55:36.000Z"),
    ("2023-10-10T13:55:36.123456Z", "2023-10-10T13:55:36.123Z"),
    ("2023-10-10T15:55:36+02:00", "2023-10-10T13:55:36.000Z"),
    ("2023-10-10 13:55:36.123 UTC", "2023-10-10T13:55:36.123Z"),
    ("2023-10-10 08:55:36.000 EST", "2023-10-10T13:55:36.000Z"),
    ("10/10/2023 01:55:36 PM", "2023-10-10T13:55:36.000Z"),
    ("Tue, 10 Oct 2023 13:55:36 GMT", "2023-10-10T13:55:36.000Z"),
])
def test_known_formats(raw: str, expected: str) -> None:
    assert normalize_timestamp(raw) == expected


def test_syslog_assumes_current_year() -> None:
    year = datetime.now(timezone.utc).year
    assert normalize_timestamp("Oct 10 13:55:36") == f"{year}-10-10T13:55:36.000Z"
    assert normalize_timestamp("Oct  1 08:00:00") == f"{year}-10-01T08:00:00.000Z"


def test_numbers_are_epoch_milliseconds() -> None:
    assert normalize_timestamp(1696946136000) == "2023-10-10T13:55:36.000Z"
    assert normalize_timestamp(1696946136000.5) == "2023-10-10T13:55:36.000Z"


def test_naive_datetime_is_utc() -> None:
    assert normalize_timestamp(datetime(2023, 10, 10, 13, 55, 36)) == "2023-10-10T13:55:36.000Z"


@pytest.mark.parametrize("candidate", [None, "", "   ", "not a date", True, {"a": 1}, float("nan")])
def test_unreadable_falls_back_to_now(candidate, recent) -> None:
    assert recent(normalize_timestamp(candidate))


def test_no_argument_is_now(recent) -> None:
    assert recent(normalize_timestamp())


@pytest.mark.parametrize("raw", [
    "2023-10-10T13:55:36.000Z",
    "1999-12-31T23:59:59.999Z",
])
def test_canonical_is_idempotent(raw: str) -> None:
    assert normalize_timestamp(raw) == raw
    assert normalize_timestamp(normalize_timestamp(raw)) == raw


def test_parse_returns_none_for_garbage() -> None:
    assert parse_timestamp("garbage") is None
    assert parse_timestamp(None) is None


def test_format_instant_truncates_to_milliseconds() -> None:
    dt = datetime(2023, 10, 10, 13, 55, 36, 987654, tzinfo=timezone.utc)
    assert format_instant(dt) == "2023-10-10T13:55:36.987Z"
