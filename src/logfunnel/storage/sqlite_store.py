"""SQLite-backed storage for normalized log entries.

Schema::

    logs(id, service, level, message, timestamp)

Timestamps are canonical ISO-8601 UTC strings, so lexical order is
chronological order and ``ORDER BY timestamp DESC`` returns newest first.

Usage::

    from logfunnel.storage.sqlite_store import LogStore

    store = LogStore("logfunnel.db")
    store.insert(entry)
    recent = store.list(level="error", limit=50)
"""
from __future__ import annotations

import logging
import sqlite3
import threading
from dataclasses import dataclass
from typing import Any

from ..errors import StorageError
from ..parsers.base import LogEntry

logger = logging.getLogger(__name__)

_SCHEMA = [
    "CREATE TABLE IF NOT EXISTS logs ("
    "id INTEGER PRIMARY KEY AUTOINCREMENT, "
    "service TEXT NOT NULL, "
    "level TEXT NOT NULL, "
    "message TEXT NOT NULL, "
    "timestamp TEXT NOT NULL)",
    "CREATE INDEX IF NOT EXISTS idx_logs_timestamp ON logs (timestamp)",
    "CREATE INDEX IF NOT EXISTS idx_logs_service ON logs (service)",
    "CREATE INDEX IF NOT EXISTS idx_logs_level ON logs (level)",
]

_INSERT = "INSERT INTO logs (service, level, message, timestamp) VALUES (?, ?, ?, ?)"


@dataclass(frozen=True)
class StoredEntry(LogEntry):
    """A persisted entry together with its row id."""

    id: int = 0


class QueryBuilder:
    """Fluent parameterised SELECT builder for the ``logs`` table."""

    def __init__(self, table: str = "logs") -> None:
        self._table = table
        self._columns = ["*"]
        self._wheres: list[str] = []
        self._params: list[Any] = []
        self._order: str | None = None
        self._limit: int | None = None
        self._offset: int | None = None

    def select(self, *cols: str) -> "QueryBuilder":
        self._columns = list(cols)
        return self

    def where(self, clause: str, *params: Any) -> "QueryBuilder":
        self._wheres.append(clause)
        self._params.extend(params)
        return self

    def order_by(self, *terms: str) -> "QueryBuilder":
        self._order = ", ".join(terms)
        return self

    def limit(self, n: int, offset: int = 0) -> "QueryBuilder":
        self._limit = n
        self._offset = offset
        return self

    def build(self) -> tuple[str, tuple[Any, ...]]:
        sql = f"SELECT {', '.join(self._columns)} FROM {self._table}"
        params = list(self._params)
        if self._wheres:
            sql += " WHERE " + " AND ".join(self._wheres)
        if self._order:
            sql += " ORDER BY " + self._order
        if self._limit is not None:
            sql += " LIMIT ? OFFSET ?"
            params.extend([self._limit, self._offset or 0])
        return sql, tuple(params)


def _filtered(builder: QueryBuilder, service: str | None, level: str | None) -> QueryBuilder:
    if service:
        builder.where("service = ?", service.strip().lower())
    if level:
        builder.where("level = ?", level.strip().lower())
    return builder


class LogStore:
    """Single-connection SQLite store, safe to share between threads.

    Args:
        path:     Database file, or ``":memory:"``.
        timeout:  Seconds to wait on a locked database file.
    """

    def __init__(self, path: str = "logfunnel.db", timeout: float = 10.0) -> None:
        self._path = path
        self._lock = threading.Lock()
        try:
            self._conn = sqlite3.connect(path, timeout=timeout, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            with self._conn:
                for stmt in _SCHEMA:
                    self._conn.execute(stmt)
        except sqlite3.Error as exc:
            raise StorageError(f"cannot open log database {path!r}: {exc}") from exc
        logger.debug("Log store ready: %s", path)

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def insert(self, entry: LogEntry) -> int:
        """Persist *entry* and return its row id.  Raises StorageError."""
        try:
            with self._lock, self._conn:
                cur = self._conn.execute(
                    _INSERT, (entry.service, entry.level, entry.message, entry.timestamp)
                )
                return int(cur.lastrowid or 0)
        except (sqlite3.Error, UnicodeError) as exc:
            logger.warning("Insert failed: %s", exc)
            raise StorageError(f"insert failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def list(
        self,
        service: str | None = None,
        level: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[StoredEntry]:
        """Return entries matching the exact service/level filters, newest first."""
        sql, params = (
            _filtered(QueryBuilder(), service, level)
            .order_by("timestamp DESC", "id DESC")
            .limit(max(limit, 0), max(offset, 0))
            .build()
        )
        rows = self._fetch(sql, params)
        return [
            StoredEntry(
                id=row["id"],
                service=row["service"],
                level=row["level"],
                message=row["message"],
                timestamp=row["timestamp"],
            )
            for row in rows
        ]

    def count(self, service: str | None = None, level: str | None = None) -> int:
        sql, params = _filtered(QueryBuilder().select("COUNT(*) AS n"), service, level).build()
        return int(self._fetch(sql, params)[0]["n"])

    def _fetch(self, sql: str, params: tuple[Any, ...]) -> list[sqlite3.Row]:
        try:
            with self._lock:
                return self._conn.execute(sql, params).fetchall()
        except (sqlite3.Error, UnicodeError) as exc:
            logger.warning("Query failed: %s", exc)
            raise StorageError(f"query failed: {exc}") from exc

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    @property
    def path(self) -> str:
        return self._path

    def __enter__(self) -> "LogStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
