"""logfmt-style ``key=value`` lines, e.g. ``service=api level=warn message=slow``."""
from __future__ import annotations

import re

from .base import ParserRule, PartialEntry

_KEYVALUE_RE = re.compile(r"^\w+=\S+(?: \w+=\S+)* ?$")


def parse_pairs(line: str) -> dict[str, str]:
    """Split a key=value line into a dict.  Empty keys or values are skipped."""
    pairs: dict[str, str] = {}
    for token in line.split():
        key, _, value = token.partition("=")
        if key and value:
            pairs[key] = value
    return pairs


def _extract_keyvalue(m: re.Match[str]) -> PartialEntry:
    pairs = parse_pairs(m.string)
    return {
        "timestamp": pairs.get("timestamp"),
        "service": pairs.get("service") or "keyvalue",
        "level": pairs.get("level") or "info",
        "message": pairs.get("message") or m.string,
    }


KEYVALUE = ParserRule(
    name="keyvalue",
    pattern=_KEYVALUE_RE,
    extract=_extract_keyvalue,
    default_service="keyvalue",
)
