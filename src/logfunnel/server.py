"""HTTP ingestion and query endpoints.

    POST /logs     any payload shape; normalized and stored
    GET  /logs     ?service=&level=&limit=&offset=  newest first
    GET  /health

Run with ``logfunnel serve`` or ``flask --app 'logfunnel.server:create_app()' run``.
"""
from __future__ import annotations

import logging

from flask import Flask, Response, jsonify, request

from .config import Settings, settings as default_settings
from .errors import InvalidBase64Error, StorageError
from .normalizer import PayloadNormalizer
from .storage.sqlite_store import LogStore

logger = logging.getLogger(__name__)

_CORS_METHODS = "GET, POST, OPTIONS"
_CORS_HEADERS = "Content-Type"


def _int_arg(name: str, default: int) -> int:
    return request.args.get(name, default, type=int)


def create_app(settings: Settings | None = None, store: LogStore | None = None) -> Flask:
    """Flask application factory."""
    app = Flask(__name__)
    settings = settings or default_settings
    store = store or LogStore(settings.db_path)
    normalizer = PayloadNormalizer(max_unwrap_depth=settings.unwrap_depth)

    # Store components on app for access in tests
    app.config["components"] = {
        "settings": settings,
        "store": store,
        "normalizer": normalizer,
    }

    @app.after_request
    def add_cors_headers(response: Response) -> Response:
        response.headers["Access-Control-Allow-Origin"] = settings.cors_origin
        response.headers["Access-Control-Allow-Methods"] = _CORS_METHODS
        response.headers["Access-Control-Allow-Headers"] = _CORS_HEADERS
        return response

    @app.before_request
    def preflight():
        if request.method == "OPTIONS":
            return Response(status=204)
        return None

    # --- Routes ---

    @app.route("/health")
    def health():
        return jsonify({"status": "healthy"})

    @app.route("/logs", methods=["POST"])
    def ingest_log():
        body = request.get_data(as_text=True)
        try:
            entry = normalizer.normalize(body)
        except InvalidBase64Error as exc:
            logger.info("Rejected payload: %s", exc)
            return Response(str(exc), status=400, mimetype="text/plain")
        try:
            store.insert(entry)
        except StorageError as exc:
            return Response(f"Error: {exc}", status=500, mimetype="text/plain")
        return Response("OK", status=200, mimetype="text/plain")

    @app.route("/logs", methods=["GET"])
    def list_logs():
        limit = min(max(_int_arg("limit", settings.page_size), 0), settings.max_page_size)
        offset = max(_int_arg("offset", 0), 0)
        try:
            entries = store.list(
                service=request.args.get("service") or None,
                level=request.args.get("level") or None,
                limit=limit,
                offset=offset,
            )
        except StorageError as exc:
            return Response(f"Error: {exc}", status=500, mimetype="text/plain")
        return jsonify([e.as_dict() for e in entries])

    return app
