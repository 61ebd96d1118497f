"""Scrape server exposing a Prometheus registry over HTTP."""

import logging
import threading
from collections.abc import Callable
from typing import Any
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from prometheus_client.registry import CollectorRegistry

logger = logging.getLogger(__name__)

StartResponse = Callable[[str, list[tuple[str, str]]], Any]


class _QuietHandler(WSGIRequestHandler):
    """WSGI handler that doesn't log every request."""

    def log_message(self, format: str, *args: object) -> None:
        pass  # Suppress access logs


def make_metrics_app(
    registry: CollectorRegistry, metrics_path: str = "/metrics"
) -> Callable[[dict[str, Any], StartResponse], list[bytes]]:
    """Build a WSGI app serving ``registry`` at ``metrics_path`` and ``/health``."""

    def metrics_app(environ: dict[str, Any], start_response: StartResponse) -> list[bytes]:
        path = environ.get("PATH_INFO", "/")

        if path == metrics_path:
            try:
                output = generate_latest(registry)
            except Exception:
                logger.exception("Failed to collect metrics")
                start_response("500 Internal Server Error", [("Content-Type", "text/plain")])
                return [b"Internal Server Error"]
            status = "200 OK"
            headers = [("Content-Type", CONTENT_TYPE_LATEST)]
        elif path == "/health":
            output = b"ok"
            status = "200 OK"
            headers = [("Content-Type", "text/plain")]
        else:
            output = b"Not Found"
            status = "404 Not Found"
            headers = [("Content-Type", "text/plain")]

        start_response(status, headers)
        return [output]

    return metrics_app


class MetricsServer:
    """Serve a registry from a background thread until stopped.

    Requests are handled one at a time, so scrapes never overlap.
    """

    def __init__(
        self,
        registry: CollectorRegistry,
        host: str = "0.0.0.0",
        port: int = 9154,
        metrics_path: str = "/metrics",
    ):
        self.host = host
        self.metrics_path = metrics_path
        self._server: WSGIServer = make_server(
            host,
            port,
            make_metrics_app(registry, metrics_path),
            handler_class=_QuietHandler,
        )
        self._thread: threading.Thread | None = None

    @property
    def port(self) -> int:
        """Bound port (useful when constructed with port 0)."""
        return int(self._server.server_port)

    def start(self) -> threading.Thread:
        """Start serving in a daemon thread. Calling it twice returns the same thread."""
        if self._thread is not None and self._thread.is_alive():
            logger.debug("Metrics server already running")
            return self._thread

        def serve_forever() -> None:
            try:
                logger.info(
                    f"Metrics server listening on {self.host}:{self.port}{self.metrics_path}"
                )
                self._server.serve_forever()
            except Exception:
                logger.exception("Metrics server failed unexpectedly")

        self._thread = threading.Thread(target=serve_forever, daemon=True)
        self._thread.start()
        return self._thread

    def stop(self, grace_seconds: float = 5.0) -> bool:
        """Stop accepting requests and wait for the in-flight one to finish.

        Args:
            grace_seconds: Maximum time to wait for the serving thread

        Returns:
            True if the server stopped within the grace period
        """
        if self._thread is None:
            self._server.server_close()
            return True

        # shutdown() blocks until serve_forever returns, which includes the current request
        stopper = threading.Thread(target=self._server.shutdown, daemon=True)
        stopper.start()
        stopper.join(grace_seconds)
        stopped = not stopper.is_alive()
        if stopped:
            self._thread.join(grace_seconds)
            self._server.server_close()
        else:
            logger.warning(f"Metrics server did not stop within {grace_seconds}s")
        return stopped
