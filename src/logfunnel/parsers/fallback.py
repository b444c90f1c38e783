"""Keyword-based severity for lines no format rule recognises."""
from __future__ import annotations

import re

from .base import DEFAULT_SERVICE, LogEntry

# An explicit level token wins over keyword guessing: level=warn, level: debug
_EXPLICIT_LEVEL_RE = re.compile(
    r"\blevel\s*[=:]?\s*(error|warn|warning|info|debug|fatal|critical|panic)\b",
    re.IGNORECASE,
)
_ERROR_WORDS_RE = re.compile(r"fatal|fail|failed|failure|error|critical|panic", re.IGNORECASE)
_WARNING_WORDS_RE = re.compile(r"warn|warning", re.IGNORECASE)


def classify_level(line: str) -> str:
    """Return the severity implied by *line*.

    Keywords are matched as substrings, so "errors" and "failover" count.
    """
    m = _EXPLICIT_LEVEL_RE.search(line)
    if m:
        return m.group(1).lower()
    if _ERROR_WORDS_RE.search(line):
        return "error"
    if _WARNING_WORDS_RE.search(line):
        return "warning"
    return "info"


def classify(line: str) -> LogEntry:
    """Build an entry for an unrecognised line."""
    return LogEntry.from_partial(
        {"service": DEFAULT_SERVICE, "level": classify_level(line), "message": line}
    )
