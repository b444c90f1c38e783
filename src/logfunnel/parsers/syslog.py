"""BSD syslog rules: generic RFC 3164 lines and pfSense firewall lines."""
from __future__ import annotations

import re

from .base import ParserRule, PartialEntry

# RFC 3164: timestamp hostname tag: message
_SYSLOG_RE = re.compile(
    r"^(?P<timestamp>\w+ +\d+ +\d+:\d+:\d+) "
    r"(?P<host>\S+) "
    r"(?P<service>\S+): "
    r"(?P<message>.+)"
)

# pfSense writes its own name in the hostname slot, tagged with the pid
_PFSENSE_RE = re.compile(
    r"^(?P<timestamp>\w+ +\d+ +\d+:\d+:\d+) "
    r"pfSense\[(?P<pid>\d+)\]: "
    r"(?P<message>.+)$"
)


def _extract_syslog(m: re.Match[str]) -> PartialEntry:
    return {
        "timestamp": m.group("timestamp"),
        "service": m.group("service"),
        "level": "info",
        "message": m.group("message"),
    }


def _extract_pfsense(m: re.Match[str]) -> PartialEntry:
    return {
        "timestamp": m.group("timestamp"),
        "service": "pfsense",
        "level": "info",
        "message": m.group("message"),
    }


SYSLOG = ParserRule(
    name="syslog",
    pattern=_SYSLOG_RE,
    extract=_extract_syslog,
    default_service="syslog",
)

PFSENSE = ParserRule(
    name="pfsense",
    pattern=_PFSENSE_RE,
    extract=_extract_pfsense,
    default_service="pfsense",
)
