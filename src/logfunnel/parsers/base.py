"""Core record types shared by every format rule."""
from __future__ import annotations

import json
import re
from dataclasses import asdict, dataclass
from typing import Any, Callable

from .timestamps import normalize_timestamp

# What an extractor returns: any subset of service/level/message/timestamp.
# The timestamp may be any candidate accepted by normalize_timestamp().
PartialEntry = dict[str, Any]

Extractor = Callable[["re.Match[str]"], PartialEntry]

DEFAULT_SERVICE = "unknown"
DEFAULT_LEVEL = "info"


def stringify(value: Any) -> str:
    """Render a decoded JSON value as compact JSON text."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)


def as_text(value: Any) -> str:
    """Strings pass through; anything else is stringified."""
    return value if isinstance(value, str) else stringify(value)


def storable(text: str) -> str:
    """Replace lone surrogates (legal in JSON escapes, not in UTF-8) with U+FFFD."""
    return text.encode("utf-8", "surrogatepass").decode("utf-8", "replace")


def _label(value: Any, default: str) -> str:
    if value is None:
        return default
    text = storable(as_text(value)).strip().lower()
    return text or default


@dataclass(frozen=True)
class LogEntry:
    """A normalized log record, ready for persistence.

    ``service`` and ``level`` are trimmed and lower-cased so that exact-match
    filters work; ``timestamp`` is always a canonical instant.
    """

    service: str
    level: str
    message: str
    timestamp: str

    @classmethod
    def from_partial(cls, partial: PartialEntry) -> "LogEntry":
        """Fill defaults and canonicalize the timestamp of an extractor result."""
        message = partial.get("message")
        return cls(
            service=_label(partial.get("service"), DEFAULT_SERVICE),
            level=_label(partial.get("level"), DEFAULT_LEVEL),
            message="" if message is None else storable(as_text(message)),
            timestamp=normalize_timestamp(partial.get("timestamp")),
        )

    def as_dict(self) -> dict[str, str]:
        return asdict(self)


@dataclass(frozen=True)
class ParserRule:
    """A named log-line format: a shape matcher plus a field extractor.

    Attributes:
        name:             Unique format name, e.g. ``"apache"``.
        pattern:          Regex the whole line is matched against (anchored
                          with ``^``).
        extract:          Turns the match into a partial record.  May raise;
                          the registry degrades the failure to a minimal
                          record.
        default_service:  Service recorded when the extractor fails.
    """

    name: str
    pattern: re.Pattern[str]
    extract: Extractor
    default_service: str

    def matches(self, line: str) -> re.Match[str] | None:
        return self.pattern.match(line)

    def minimal(self, line: str) -> PartialEntry:
        """Fallback record used when ``extract`` fails on a matched line."""
        return {"service": self.default_service, "level": DEFAULT_LEVEL, "message": line}
