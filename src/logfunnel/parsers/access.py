"""Web-server access log rules (Apache and nginx).

Both share the Common Log Format prefix:  %h %l %u %t "%r" %>s %b
The message is synthesized as "METHOD URL STATUS".
"""
from __future__ import annotations

import re

from .base import ParserRule, PartialEntry

# Apache Common Log Format regex
_APACHE_RE = re.compile(
    r'^(?P<ip>\S+) \S+ \S+ '                          # client, ident, user
    r'\[(?P<timestamp>[^\]]+)\] '                     # [timestamp]
    r'"(?P<method>\S+) (?P<url>\S+) (?P<protocol>\S+)" '
    r'(?P<status>\d+) (?P<size>\d+)'
)

# nginx default "main" format prefix; ident is always "-"
_NGINX_RE = re.compile(
    r'^(?P<ip>\S+) - (?P<user>\S+) '
    r'\[(?P<timestamp>[^\]]+)\] '
    r'"(?P<method>\S+) (?P<url>\S+) (?P<protocol>\S+)" '
    r'(?P<status>\d+) (?P<size>\d+)'
)


def request_summary(method: str, url: str, status: object) -> str:
    return f"{method} {url} {status}".strip()


def _access_entry(service: str):
    def extract(m: re.Match[str]) -> PartialEntry:
        return {
            "timestamp": m.group("timestamp"),
            "service": service,
            "level": "info",
            "message": request_summary(m.group("method"), m.group("url"), m.group("status")),
        }

    return extract


APACHE = ParserRule(
    name="apache",
    pattern=_APACHE_RE,
    extract=_access_entry("apache"),
    default_service="apache",
)

NGINX = ParserRule(
    name="nginx",
    pattern=_NGINX_RE,
    extract=_access_entry("nginx"),
    default_service="nginx",
)
