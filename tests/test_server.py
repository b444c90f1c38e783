"""Tests for the HTTP ingestion and query endpoints."""
from __future__ import annotations

import json
from unittest.mock import patch

from logfunnel.errors import StorageError

APACHE = '127.0.0.1 - - [10/Oct/2023:13:55:36] "GET /index.html HTTP/1.1" 200 1024'


class TestHealth:
    def test_health(self, client) -> None:
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.get_json() == {"status": "healthy"}


class TestIngest:
    def test_structured_payload_is_stored(self, client, store) -> None:
        resp = client.post("/logs", json={"service": "api", "level": "error", "message": "timeout"})
        assert resp.status_code == 200
        assert resp.get_data(as_text=True) == "OK"
        [entry] = store.list()
        assert (entry.service, entry.level, entry.message) == ("api", "error", "timeout")

    def test_plain_text_body(self, client, store) -> None:
        resp = client.post("/logs", data=APACHE, content_type="text/plain")
        assert resp.status_code == 200
        [entry] = store.list()
        assert entry.service == "apache"
        assert entry.message == "GET /index.html 200"
        assert entry.timestamp == "2023-10-10T13:55:36.000Z"

    def test_invalid_raw_b64_is_rejected(self, client, store) -> None:
        resp = client.post("/logs", data=json.dumps({"raw_b64": "!!!not-base64!!!"}))
        assert resp.status_code == 400
        assert resp.get_data(as_text=True) == "Invalid base64 in raw_b64"
        assert store.count() == 0

    def test_storage_failure_is_reported(self, client, store) -> None:
        with patch.object(store, "insert", side_effect=StorageError("disk I/O error")):
            resp = client.post("/logs", data="hello")
        assert resp.status_code == 500
        assert resp.get_data(as_text=True) == "Error: disk I/O error"

    def test_empty_body_is_stored_as_empty_message(self, client, store) -> None:
        resp = client.post("/logs", data="")
        assert resp.status_code == 200
        [entry] = store.list()
        assert (entry.service, entry.level, entry.message) == ("unknown", "info", "")

    def test_lone_surrogate_escape_is_stored(self, client, store) -> None:
        resp = client.post("/logs", data='{"message": "bad \\ud800 char"}')
        assert resp.status_code == 200
        assert resp.get_data(as_text=True) == "OK"
        [entry] = store.list()
        assert entry.message.startswith("bad \ufffd")
        assert entry.message.endswith(" char")


class TestQuery:
    def _seed(self, client) -> None:
        for i, (service, level) in enumerate([("api", "info"), ("api", "error"), ("db", "error")]):
            client.post("/logs", json={
                "service": service,
                "level": level,
                "message": f"m{i}",
                "timestamp": f"2023-10-10T1{i}:00:00Z",
            })

    def test_list_newest_first(self, client) -> None:
        self._seed(client)
        data = client.get("/logs").get_json()
        assert [d["message"] for d in data] == ["m2", "m1", "m0"]
        assert set(data[0]) == {"id", "service", "level", "message", "timestamp"}

    def test_filters(self, client) -> None:
        self._seed(client)
        data = client.get("/logs?level=ERROR&service=api").get_json()
        assert [d["message"] for d in data] == ["m1"]

    def test_limit_and_offset(self, client) -> None:
        self._seed(client)
        data = client.get("/logs?limit=1&offset=1").get_json()
        assert [d["message"] for d in data] == ["m1"]

    def test_invalid_numbers_fall_back_to_defaults(self, client) -> None:
        self._seed(client)
        data = client.get("/logs?limit=abc&offset=-4").get_json()
        assert len(data) == 3

    def test_limit_is_capped(self, client, app) -> None:
        self._seed(client)
        app.config["components"]["settings"].max_page_size = 2
        assert len(client.get("/logs?limit=100").get_json()) == 2

    def test_query_failure_is_reported(self, client, store) -> None:
        with patch.object(store, "list", side_effect=StorageError("locked")):
            resp = client.get("/logs")
        assert resp.status_code == 500


class TestCors:
    def test_preflight(self, client) -> None:
        resp = client.open("/logs", method="OPTIONS")
        assert resp.status_code == 204
        assert resp.headers["Access-Control-Allow-Origin"] == "*"
        assert resp.headers["Access-Control-Allow-Methods"] == "GET, POST, OPTIONS"
        assert resp.headers["Access-Control-Allow-Headers"] == "Content-Type"

    def test_headers_on_regular_responses(self, client) -> None:
        assert client.get("/logs").headers["Access-Control-Allow-Origin"] == "*"
        assert client.post("/logs", data="x").headers["Access-Control-Allow-Origin"] == "*"

    def test_unknown_path(self, client) -> None:
        resp = client.get("/nope")
        assert resp.status_code == 404
        assert resp.headers["Access-Control-Allow-Origin"] == "*"
