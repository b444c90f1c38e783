"""Windows Event Log text exports.

    10/10/2023 01:55:36 PM Application Information - Service started

The leading time is local to the exporting host with no zone, so the entry is
stamped with the ingestion time instead.  The record carries no usable
severity so it is always ``info``.
"""
from __future__ import annotations

import re

from .base import ParserRule, PartialEntry

_EVENTLOG_RE = re.compile(
    r"^\d{2}/\d{2}/\d{4} \d{2}:\d{2}:\d{2} (?:AM|PM)"
    r"\s+\w+\s+\w+\s+-\s+"
    r"(?P<message>.+)$"
)


def _extract_eventlog(m: re.Match[str]) -> PartialEntry:
    return {
        "service": "windows-eventlog",
        "level": "info",
        "message": m.group("message"),
    }


WINDOWS_EVENTLOG = ParserRule(
    name="windows-eventlog",
    pattern=_EVENTLOG_RE,
    extract=_extract_eventlog,
    default_service="windows-eventlog",
)
