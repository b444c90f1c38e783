"""Timestamp canonicalization.

Every stored entry carries its instant as a UTC ISO-8601 string with
millisecond precision, e.g. ``2023-10-10T13:55:36.000Z``.  Candidates that
cannot be read fall back to the ingestion time.
"""
from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import Any

# Formats tried in order after ISO-8601 when parsing log timestamps
_TIMESTAMP_FORMATS: list[str] = [
    "%d/%b/%Y:%H:%M:%S %z",   # Apache / nginx
    "%d/%b/%Y:%H:%M:%S",
    "%m/%d/%Y %I:%M:%S %p",   # Windows event log
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S",
]

# Syslog timestamps carry no year; the current one is assumed
_SYSLOG_FORMAT = "%Y %b %d %H:%M:%S"
_SYSLOG_RE = re.compile(r"^[A-Za-z]{3}\s+\d{1,2}\s+\d{1,2}:\d{2}:\d{2}$")

# Trailing zone abbreviations understood by browsers' Date parser
_ZONE_SUFFIX_RE = re.compile(r"^(?P<body>.*\S)\s+(?P<zone>[A-Z]{1,4})$")
_ZONE_OFFSETS: dict[str, int] = {
    "Z": 0, "UT": 0, "UTC": 0, "GMT": 0,
    "EST": -5, "EDT": -4,
    "CST": -6, "CDT": -5,
    "MST": -7, "MDT": -6,
    "PST": -8, "PDT": -7,
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_instant(dt: datetime) -> str:
    """Render an aware or naive (assumed UTC) datetime in canonical form."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def _from_epoch_ms(value: float) -> datetime | None:
    try:
        return datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(milliseconds=value)
    except (OverflowError, ValueError):
        return None


def _from_iso(raw: str) -> datetime | None:
    text = raw[:-1] + "+00:00" if raw.endswith(("Z", "z")) else raw
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _from_formats(raw: str) -> datetime | None:
    for fmt in _TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(raw, fmt)
        except ValueError:
            continue
    if _SYSLOG_RE.match(raw):
        try:
            return datetime.strptime(f"{utc_now().year} {raw}", _SYSLOG_FORMAT)
        except ValueError:
            return None
    return None


def _from_zone_suffix(raw: str) -> datetime | None:
    m = _ZONE_SUFFIX_RE.match(raw)
    if not m or m.group("zone") not in _ZONE_OFFSETS:
        return None
    body = m.group("body")
    dt = _from_iso(body) or _from_formats(body)
    if dt is None or dt.tzinfo is not None:
        return None
    return dt.replace(tzinfo=timezone(timedelta(hours=_ZONE_OFFSETS[m.group("zone")])))


def _from_rfc2822(raw: str) -> datetime | None:
    try:
        return parsedate_to_datetime(raw)
    except (TypeError, ValueError, IndexError):
        return None


def parse_timestamp(candidate: Any) -> datetime | None:
    """Return the instant described by *candidate*, or None if unreadable.

    Numbers are epoch milliseconds.  Strings are tried as ISO-8601 first,
    then the known log formats, then a zone-abbreviation suffix, then
    RFC 2822.
    """
    if candidate is None or isinstance(candidate, bool):
        return None
    if isinstance(candidate, datetime):
        return candidate
    if isinstance(candidate, (int, float)):
        return _from_epoch_ms(candidate)
    if not isinstance(candidate, str):
        return None
    raw = candidate.strip()
    if not raw:
        return None
    for attempt in (_from_iso, _from_formats, _from_zone_suffix, _from_rfc2822):
        dt = attempt(raw)
        if dt is not None:
            return dt
    return None


def normalize_timestamp(candidate: Any = None) -> str:
    """Canonicalize *candidate*; absent or unreadable values become now."""
    dt = parse_timestamp(candidate)
    if dt is None:
        dt = utc_now()
    try:
        return format_instant(dt)
    except (OverflowError, ValueError):
        return format_instant(utc_now())
