"""Background HTTP server for the Prometheus endpoint."""

import threading
from collections.abc import Callable
from typing import Any
from wsgiref.simple_server import WSGIRequestHandler, make_server

import structlog
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

log = structlog.get_logger()

_server_lock = threading.Lock()
_server_thread: threading.Thread | None = None

StartResponse = Callable[[str, list[tuple[str, str]]], Any]


class _QuietHandler(WSGIRequestHandler):
    def log_message(self, format: str, *args: object) -> None:
        pass


def metrics_app(environ: dict[str, Any], start_response: StartResponse) -> list[bytes]:
    """WSGI app serving /metrics and /health."""
    path = environ.get("PATH_INFO", "/")

    if path == "/metrics":
        body = generate_latest(REGISTRY)
        start_response("200 OK", [("Content-Type", CONTENT_TYPE_LATEST)])
    elif path == "/health":
        body = b"ok"
        start_response("200 OK", [("Content-Type", "text/plain")])
    else:
        body = b"Not Found"
        start_response("404 Not Found", [("Content-Type", "text/plain")])
    return [body]


def start_metrics_server(port: int, host: str = "127.0.0.1") -> threading.Thread:
    """Serve metrics from a daemon thread.

    Calling this again while the server runs returns the running thread.
    """
    global _server_thread
    with _server_lock:
        if _server_thread is not None and _server_thread.is_alive():
            return _server_thread

        server = make_server(host, port, metrics_app, handler_class=_QuietHandler)

        def serve() -> None:
            log.info("Metrics server listening", host=host, port=port)
            try:
                server.serve_forever()
            except Exception:
                log.exception("Metrics server stopped unexpectedly")

        _server_thread = threading.Thread(target=serve, name="chatbell-metrics", daemon=True)
        _server_thread.start()
        return _server_thread
