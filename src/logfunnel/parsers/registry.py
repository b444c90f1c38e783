"""Ordered format registry — first matching rule wins.

Dispatch order (fixed; several JSON matchers overlap, so order decides):
  1. apache              8. keyvalue
  2. syslog              9. windows-eventlog
  3. nginx              10. postgresql
  4. docker-json        11. mysql
  5. cloudflare-logpush 12. aws-cloudwatch
  6. kubernetes-json    13. pfsense
  7. json-generic
Lines no rule accepts go to the keyword fallback classifier.
"""
from __future__ import annotations

import logging
from typing import Iterable, Iterator

from .access import APACHE, NGINX
from .base import LogEntry, ParserRule
from .database import MYSQL, POSTGRESQL
from .eventlog import WINDOWS_EVENTLOG
from .fallback import classify
from .json_formats import CLOUDFLARE, CLOUDWATCH, DOCKER, JSON_GENERIC, KUBERNETES
from .keyvalue import KEYVALUE
from .syslog import PFSENSE, SYSLOG

logger = logging.getLogger(__name__)

DEFAULT_RULES: tuple[ParserRule, ...] = (
    APACHE,
    SYSLOG,
    NGINX,
    DOCKER,
    CLOUDFLARE,
    KUBERNETES,
    JSON_GENERIC,
    KEYVALUE,
    WINDOWS_EVENTLOG,
    POSTGRESQL,
    MYSQL,
    CLOUDWATCH,
    PFSENSE,
)


class ParserRegistry:
    """Immutable, priority-ordered collection of format rules.

    Safe to share between threads: nothing is mutated after construction.

    Usage::

        registry = ParserRegistry()
        entry = registry.parse_line('127.0.0.1 - - [10/Oct/2023:13:55:36] "GET / HTTP/1.1" 200 12')
        entry.service   # "apache"
    """

    def __init__(self, rules: Iterable[ParserRule] = DEFAULT_RULES) -> None:
        self._rules = tuple(rules)
        names = [r.name for r in self._rules]
        if len(set(names)) != len(names):
            raise ValueError(f"duplicate rule names in {names}")

    @property
    def rules(self) -> tuple[ParserRule, ...]:
        return self._rules

    def names(self) -> list[str]:
        return [r.name for r in self._rules]

    def detect(self, line: str) -> str | None:
        """Return the name of the rule that would claim *line*, if any."""
        for rule in self._rules:
            if rule.matches(line):
                return rule.name
        return None

    def parse_line(self, line: str) -> LogEntry:
        """Normalize one raw log line.  Never raises."""
        for rule in self._rules:
            m = rule.matches(line)
            if m is None:
                continue
            try:
                partial = rule.extract(m)
            except Exception as exc:
                logger.warning("Rule %r matched but extraction failed: %s", rule.name, exc)
                partial = rule.minimal(line)
            return LogEntry.from_partial(partial)
        logger.debug("No format rule matched; using keyword classification")
        return classify(line)

    def parse_lines(self, lines: Iterable[str]) -> Iterator[LogEntry]:
        for line in lines:
            yield self.parse_line(line)

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"ParserRegistry({len(self._rules)} rules)"


# Module-level singleton, shared across the application
default_registry = ParserRegistry()


def parse_line(line: str) -> LogEntry:
    return default_registry.parse_line(line)
