"""JSON-shaped log rules.

Container runtimes, orchestrators, edge networks and cloud log services all
ship one JSON object per line.  Each rule's matcher only sniffs the shape;
its extractor re-parses the full line and raises on malformed JSON, which
the registry turns into a minimal record.
"""
from __future__ import annotations

import json
import re
from typing import Any

from .access import request_summary
from .base import ParserRule, PartialEntry, stringify

_DOCKER_RE = re.compile(r'^\{.*"log":.*\}$')
_CLOUDFLARE_RE = re.compile(r'^\{.*("Event"\s*:\s*\{.*"RayID"|"RayID"\s*:).*')
_KUBERNETES_RE = re.compile(r'^\{.*"kubernetes":.*\}$')
_GENERIC_RE = re.compile(r"^\{.*\}$")
_CLOUDWATCH_RE = re.compile(r'^\{.*"logStream":.*\}$')


def _load_object(line: str) -> dict[str, Any]:
    obj = json.loads(line)
    if not isinstance(obj, dict):
        raise ValueError(f"expected a JSON object, got {type(obj).__name__}")
    return obj


def _trimmed(value: Any) -> str | None:
    return value.strip() if isinstance(value, str) else None


# ---------------------------------------------------------------------------
# Docker json-file driver: {"log": "...\n", "stream": "stdout", "time": "..."}
# ---------------------------------------------------------------------------

def _extract_docker(m: re.Match[str]) -> PartialEntry:
    obj = _load_object(m.string)
    return {
        "timestamp": obj.get("time"),
        "service": obj.get("stream") or "docker",
        "level": "info",
        "message": _trimmed(obj.get("log")) or m.string,
    }


# ---------------------------------------------------------------------------
# Cloudflare Logpush (Zero Trust): flat, or wrapped in {"Event": {...}}
# ---------------------------------------------------------------------------

def _edge_timestamp(value: Any) -> Any:
    # EdgeStartTimestamp is nanoseconds when numeric
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value / 1e6
    return value


def _extract_cloudflare(m: re.Match[str]) -> PartialEntry:
    obj = _load_object(m.string)
    event = obj.get("Event")
    if not isinstance(event, dict):
        event = obj

    uri = event.get("ClientRequestURI")
    if uri:
        status = event.get("EdgeResponseStatus") or event.get("OriginResponseStatus") or ""
        message = request_summary(event.get("ClientRequestMethod") or "GET", uri, status)
    else:
        message = stringify(event)

    return {
        "timestamp": _edge_timestamp(event.get("EdgeStartTimestamp")),
        "service": (
            event.get("Host")
            or event.get("ClientRequestHost")
            or event.get("ZoneID")
            or "cloudflare-logpush"
        ),
        "level": event.get("WAFAction") or event.get("Outcome") or "info",
        "message": message,
    }


# ---------------------------------------------------------------------------
# Kubernetes (fluentd/fluent-bit enriched container logs)
# ---------------------------------------------------------------------------

def _extract_kubernetes(m: re.Match[str]) -> PartialEntry:
    obj = _load_object(m.string)
    meta = obj.get("kubernetes")
    container = meta.get("container_name") if isinstance(meta, dict) else None
    return {
        "timestamp": obj.get("time"),
        "service": container or "kubernetes",
        "level": obj.get("level") or "info",
        "message": _trimmed(obj.get("log")) or m.string,
    }


# ---------------------------------------------------------------------------
# Any other JSON object
# ---------------------------------------------------------------------------

def _extract_generic(m: re.Match[str]) -> PartialEntry:
    obj = _load_object(m.string)
    return {
        "timestamp": obj.get("timestamp") or obj.get("time"),
        "service": obj.get("service") or "json",
        "level": obj.get("level") or "info",
        "message": obj.get("message") or m.string,
    }


# ---------------------------------------------------------------------------
# AWS CloudWatch Logs export
# ---------------------------------------------------------------------------

def _extract_cloudwatch(m: re.Match[str]) -> PartialEntry:
    obj = _load_object(m.string)
    return {
        "timestamp": obj.get("timestamp"),
        "service": obj.get("logStream") or "aws-cloudwatch",
        "level": obj.get("level") or "info",
        "message": obj.get("message") or m.string,
    }


DOCKER = ParserRule(
    name="docker-json",
    pattern=_DOCKER_RE,
    extract=_extract_docker,
    default_service="docker",
)

CLOUDFLARE = ParserRule(
    name="cloudflare-logpush",
    pattern=_CLOUDFLARE_RE,
    extract=_extract_cloudflare,
    default_service="cloudflare-logpush",
)

KUBERNETES = ParserRule(
    name="kubernetes-json",
    pattern=_KUBERNETES_RE,
    extract=_extract_kubernetes,
    default_service="kubernetes",
)

JSON_GENERIC = ParserRule(
    name="json-generic",
    pattern=_GENERIC_RE,
    extract=_extract_generic,
    default_service="json",
)

CLOUDWATCH = ParserRule(
    name="aws-cloudwatch",
    pattern=_CLOUDWATCH_RE,
    extract=_extract_cloudwatch,
    default_service="aws-cloudwatch",
)
