"""Tests for keyword-based severity classification."""
from __future__ import annotations

import pytest

from logfunnel.parsers.fallback import classify, classify_level


@pytest.mark.parametrize("line,expected", [
    ("payment-service: critical failure in charge processor", "error"),
    ("upstream FAILED after 3 retries", "error"),
    ("panic: runtime error: index out of range", "error"),
    ("3 errors while syncing", "error"),
    ("disk usage warning at 91%", "warning"),
    ("WARN cache miss ratio high", "warning"),
    ("user logged in", "info"),
    ("", "info"),
])
def test_keyword_scan(line: str, expected: str) -> None:
    assert classify_level(line) == expected


@pytest.mark.parametrize("line,expected", [
    ("level=warn job failed but will retry", "warn"),
    ("Level: DEBUG connection error injected by test", "debug"),
    ("level=Warning something", "warning"),
    ("level fatal shutting down", "fatal"),
    ("request done level=info", "info"),
])
def test_explicit_level_wins(line: str, expected: str) -> None:
    assert classify_level(line) == expected


def test_unknown_explicit_level_falls_through_to_keywords() -> None:
    assert classify_level("level=notice disk error") == "error"


def test_classify_builds_entry(recent) -> None:
    line = "payment-service: critical failure in charge processor"
    entry = classify(line)
    assert entry.service == "unknown"
    assert entry.level == "error"
    assert entry.message == line
    assert recent(entry.timestamp)
