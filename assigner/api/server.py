"""HTTP server for the reviewer assignment API.

Each request runs in its own thread; the store serializes transactions.
Every response carries an X-Request-ID (taken from the request or generated)
and every request is logged with its status and duration.
"""

import json
import logging
import time
import uuid
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any
from urllib.parse import urlsplit

from assigner.api.handlers import ApiHandlers
from assigner.config import AppConfig
from assigner.logging import ACCESS_LOGGER
from assigner.services.engine import AssignmentEngine
from assigner.services.selector import EligibilitySelector
from assigner.store.sqlite import SQLiteStore

LOG = logging.getLogger("assigner.api.server")
ACCESS_LOG = logging.getLogger(ACCESS_LOGGER)

REQUEST_ID_HEADER = "X-Request-ID"
MAX_BODY_BYTES = 1024 * 1024


class ApiRequestHandler(BaseHTTPRequestHandler):
    """Reads the request, hands it to ApiHandlers and writes JSON back."""

    handlers: ApiHandlers

    def do_GET(self) -> None:
        self._dispatch()

    def do_POST(self) -> None:
        self._dispatch()

    def _read_body(self) -> bytes:
        length = int(self.headers.get("Content-Length", 0) or 0)
        if length <= 0:
            return b""
        return self.rfile.read(min(length, MAX_BODY_BYTES))

    def _dispatch(self) -> None:
        started = time.monotonic()
        request_id = self.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        url = urlsplit(self.path)
        try:
            body = self._read_body()
        except ValueError:
            body = b""
        status, payload = self.handlers.handle_request(self.command, url.path, url.query, body)
        raw = json.dumps(payload).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(raw)))
        self.send_header(REQUEST_ID_HEADER, request_id)
        self.end_headers()
        self.wfile.write(raw)
        ACCESS_LOG.info(
            "%s %s -> %s in %.1f ms [request_id=%s]",
            self.command,
            url.path,
            status,
            (time.monotonic() - started) * 1000,
            request_id,
        )

    def log_message(self, format: str, *args: Any) -> None:
        ACCESS_LOG.debug(format, *args)


def create_server(handlers: ApiHandlers, host: str, port: int) -> ThreadingHTTPServer:
    """Bind a threading HTTP server serving the given handlers."""
    handler_cls = type("BoundApiRequestHandler", (ApiRequestHandler,), {"handlers": handlers})
    server = ThreadingHTTPServer((host, port), handler_cls)
    server.daemon_threads = True
    return server


def build_engine(config: AppConfig) -> tuple[SQLiteStore, AssignmentEngine]:
    """Open the store from config and wire the engine on top of it."""
    store = SQLiteStore(config.database.path, busy_timeout=config.database.busy_timeout)
    engine = AssignmentEngine(
        store,
        selector=EligibilitySelector(),
        reviewers_per_pull_request=config.assignment.reviewers_per_pull_request,
    )
    return store, engine


def run_server(config: AppConfig) -> None:
    """Run the API server until interrupted."""
    store, engine = build_engine(config)
    handlers = ApiHandlers(engine, request_timeout=config.server.request_timeout)
    server = create_server(handlers, config.server.host, config.server.port)
    LOG.info(
        "API server listening on %s:%s (database=%s)",
        config.server.host,
        server.server_address[1],
        config.database.path,
    )
    try:
        server.serve_forever()
    finally:
        server.server_close()
        store.close()
        LOG.info("API server stopped")
