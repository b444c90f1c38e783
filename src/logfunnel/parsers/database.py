"""Database server logs: PostgreSQL and MySQL (8.x error log)."""
from __future__ import annotations

import re

from .base import ParserRule, PartialEntry

# 2023-10-10 13:55:36.123 UTC [4242] ERROR:  relation "users" does not exist
_POSTGRES_RE = re.compile(
    r"^(?P<timestamp>\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\.\d+ [A-Z]+) "
    r"\[(?P<pid>\d+)\] "
    r"(?P<level>\w+):  "
    r"(?P<message>.+)$"
)

# 2023-10-10T13:55:36.123456Z 0 [Warning] [MY-010055] IP address could not be resolved
_MYSQL_RE = re.compile(
    r"^(?P<timestamp>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d+Z)\s+"
    r"\d+\s+"
    r"\[(?P<level>\w+)\]\s+"
    r"(?P<message>.+)$"
)


def _database_entry(service: str):
    def extract(m: re.Match[str]) -> PartialEntry:
        return {
            "timestamp": m.group("timestamp"),
            "service": service,
            "level": m.group("level").lower(),
            "message": m.group("message"),
        }

    return extract


POSTGRESQL = ParserRule(
    name="postgresql",
    pattern=_POSTGRES_RE,
    extract=_database_entry("postgresql"),
    default_service="postgresql",
)

MYSQL = ParserRule(
    name="mysql",
    pattern=_MYSQL_RE,
    extract=_database_entry("mysql"),
    default_service="mysql",
)
