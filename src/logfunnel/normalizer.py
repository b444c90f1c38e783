"""Payload normalizer — the ingestion entry point.

Takes whatever a client POSTed and reduces it to one :class:`LogEntry`.

Decision tree for a JSON object body (first branch that applies wins):

  1. ``raw``        unwrap nested ``{"raw": ...}`` re-encodings, parse the line
  2. ``raw_b64``    base64-decode and parse; invalid base64 is rejected
  3. ``message``    without both service and level: parse message as a line
  4. ``service`` + ``level`` + ``message``: already structured, stored as-is
  5. otherwise      a lone unknown key's value, else the whole object, as a line

Non-JSON bodies and JSON strings are treated as text, which may itself be
base64-encoded.  Any other JSON value (array, number, boolean, null) carries
no log line and is parsed as an empty one.
"""
from __future__ import annotations

import base64
import binascii
import json
import logging
import re
from typing import Any

from .errors import InvalidBase64Error
from .parsers.base import LogEntry, as_text, stringify
from .parsers.registry import ParserRegistry, default_registry

logger = logging.getLogger(__name__)

MAX_UNWRAP_DEPTH = 5

_KNOWN_KEYS = frozenset({"raw_b64", "raw", "message", "service", "level"})

_BASE64_CHARS_RE = re.compile(r"^[A-Za-z0-9+/]*$")
_PRINTABLE_RE = re.compile(rb"^[\x09\x0A\x0D\x20-\x7E]+$")

_MISSING = object()


def decode_base64(text: str) -> bytes:
    """Forgiving base64 decode: whitespace ignored, padding optional.

    Raises ValueError when *text* is not base64.
    """
    data = re.sub(r"[\t\n\f\r ]", "", text)
    if len(data) % 4 == 0 and data.endswith("="):
        data = data[:-2] if data.endswith("==") else data[:-1]
    if len(data) % 4 == 1 or not _BASE64_CHARS_RE.match(data):
        raise ValueError("not valid base64")
    padded = data + "=" * (-len(data) % 4)
    try:
        return base64.b64decode(padded, validate=True)
    except binascii.Error as exc:
        raise ValueError(str(exc)) from exc


def _present(value: Any) -> bool:
    return value is not None and value is not _MISSING and value != ""


class PayloadNormalizer:
    """Resolve ingestion payloads to entries using a :class:`ParserRegistry`.

    Args:
        registry:          Format rules used for raw lines.
        max_unwrap_depth:  How many nested ``"raw"`` wrappers are followed
                           before the remaining string is parsed as-is.
    """

    def __init__(
        self,
        registry: ParserRegistry = default_registry,
        max_unwrap_depth: int = MAX_UNWRAP_DEPTH,
    ) -> None:
        if max_unwrap_depth < 0:
            raise ValueError("max_unwrap_depth must be >= 0")
        self._registry = registry
        self._max_depth = max_unwrap_depth

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def normalize(self, raw_body: Any) -> LogEntry:
        """Normalize a request body (text, bytes or an already-decoded value).

        Raises InvalidBase64Error when a ``raw_b64`` field does not decode.
        """
        if isinstance(raw_body, (bytes, bytearray)):
            raw_body = bytes(raw_body).decode("utf-8", errors="replace")

        if isinstance(raw_body, str):
            try:
                data = json.loads(raw_body)
            except (ValueError, RecursionError):
                logger.debug("Body is not JSON; treating it as text")
                return self._from_text(raw_body)
        else:
            data = raw_body

        if isinstance(data, dict):
            return self._from_object(data)
        if isinstance(data, str):
            return self._from_text(data)
        logger.debug("Body is a JSON %s; parsing an empty line", type(data).__name__)
        return self._registry.parse_line("")

    def unwrap_raw(self, value: Any) -> str:
        """Resolve a ``"raw"`` value to the innermost log line."""
        for _ in range(self._max_depth):
            if not isinstance(value, str):
                break
            try:
                inner = json.loads(value)
            except (ValueError, RecursionError):
                break
            if not isinstance(inner, dict) or "raw" not in inner:
                break
            value = inner["raw"]
        else:
            if isinstance(value, str):
                logger.debug("Stopped unwrapping \"raw\" after %d levels", self._max_depth)

        if value is None:
            return ""
        return as_text(value)

    # ------------------------------------------------------------------
    # Branches
    # ------------------------------------------------------------------

    def _from_object(self, data: dict[str, Any]) -> LogEntry:
        if "raw" in data:
            logger.debug("Payload has \"raw\"; unwrapping")
            return self._registry.parse_line(self.unwrap_raw(data["raw"]))

        raw_b64 = data.get("raw_b64")
        if isinstance(raw_b64, str):
            logger.debug("Payload has \"raw_b64\"; decoding")
            try:
                decoded = decode_base64(raw_b64)
            except ValueError as exc:
                raise InvalidBase64Error() from exc
            return self._registry.parse_line(decoded.decode("utf-8", errors="replace"))

        message = data.get("message", _MISSING)
        service = data.get("service", _MISSING)
        level = data.get("level", _MISSING)

        if _present(message) and not (_present(service) and _present(level)):
            logger.debug("Payload has \"message\" without service/level; parsing it as a line")
            return self._registry.parse_line(as_text(message))

        if _present(message) and _present(service) and _present(level):
            logger.debug("Payload is already structured")
            return LogEntry.from_partial(
                {
                    "service": service,
                    "level": level,
                    "message": message,
                    "timestamp": data.get("timestamp"),
                }
            )

        if len(data) == 1:
            (key, value), = data.items()
            if key not in _KNOWN_KEYS:
                logger.debug("Single-key payload %r; parsing its value", key)
                return self._registry.parse_line(as_text(value))

        logger.debug("Unrecognised payload shape; parsing the whole object")
        return self._registry.parse_line(stringify(data))

    def _from_text(self, text: str) -> LogEntry:
        try:
            decoded = decode_base64(text)
        except ValueError:
            return self._registry.parse_line(text)
        if _PRINTABLE_RE.match(decoded):
            logger.debug("Text body was base64; using the decoded line")
            return self._registry.parse_line(decoded.decode("ascii"))
        return self._registry.parse_line(text)


# Module-level default, shared across the application
default_normalizer = PayloadNormalizer()


def normalize(raw_body: Any) -> LogEntry:
    """Normalize *raw_body* with the default registry and unwrap depth."""
    return default_normalizer.normalize(raw_body)
