"""Shared pytest fixtures for logfunnel tests."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Iterator

import pytest

from logfunnel.config import Settings
from logfunnel.server import create_app
from logfunnel.storage.sqlite_store import LogStore


def _parse_canonical(ts: str) -> datetime:
    assert ts.endswith("Z"), ts
    return datetime.fromisoformat(ts[:-1] + "+00:00")


@pytest.fixture()
def recent() -> Callable[[str], bool]:
    """Return a checker: is a canonical timestamp within a few seconds of now?"""

    def _check(ts: str) -> bool:
        delta = abs(datetime.now(timezone.utc) - _parse_canonical(ts))
        return delta < timedelta(seconds=5)

    return _check


@pytest.fixture()
def store() -> Iterator[LogStore]:
    s = LogStore(":memory:")
    yield s
    s.close()


@pytest.fixture()
def db_file(tmp_path: Path) -> Path:
    return tmp_path / "logs.db"


@pytest.fixture()
def tmp_log_file(tmp_path: Path):
    """Return a factory that creates temporary log files."""

    def _make(lines: list[str], name: str = "test.log") -> Path:
        p = tmp_path / name
        p.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return p

    return _make


@pytest.fixture()
def app(store: LogStore):
    """Create a Flask test app backed by an in-memory store."""
    application = create_app(settings=Settings(db_path=":memory:", cors_origin="*"), store=store)
    application.config["TESTING"] = True
    return application


@pytest.fixture()
def client(app):
    return app.test_client()


# ---------------------------------------------------------------------------
# Sample lines, one per format
# ---------------------------------------------------------------------------

@pytest.fixture()
def apache_line() -> str:
    return '127.0.0.1 - - [10/Oct/2023:13:55:36] "GET /index.html HTTP/1.1" 200 1024'


@pytest.fixture()
def syslog_line() -> str:
    return "Oct 10 13:55:36 web01 sshd[1234]: Accepted publickey for admin"


@pytest.fixture()
def postgres_line() -> str:
    return '2023-10-10 13:55:36.123 UTC [4242] ERROR:  relation "users" does not exist'


@pytest.fixture()
def mysql_line() -> str:
    return "2023-10-10T13:55:36.123456Z 0 [Warning] [MY-010055] IP address could not be resolved"
