"""HTTP exposition: a threaded WSGI server serving one registry."""

from __future__ import annotations

import logging
import socket
import threading
from typing import TYPE_CHECKING, Any
from wsgiref.simple_server import WSGIRequestHandler, make_server

from prometheus_client import make_wsgi_app
from prometheus_client.exposition import ThreadingWSGIServer

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from prometheus_client import CollectorRegistry

logger = logging.getLogger(__name__)


def make_app(registry: CollectorRegistry, telemetry_path: str) -> Callable[..., Iterable[bytes]]:
    """WSGI app serving *registry* at *telemetry_path* and 404 elsewhere."""
    metrics_app = make_wsgi_app(registry)

    def app(environ: dict[str, Any], start_response: Callable[..., Any]) -> Iterable[bytes]:
        if environ.get("PATH_INFO", "/") == telemetry_path:
            return metrics_app(environ, start_response)
        start_response("404 Not Found", [("Content-Type", "text/plain; charset=utf-8")])
        return [b"404 page not found\n"]

    return app


class _LoggingHandler(WSGIRequestHandler):
    """Route request lines to the module logger instead of stderr."""

    def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
        logger.debug("%s - %s", self.address_string(), format % args)


class _IPv6Server(ThreadingWSGIServer):
    address_family = socket.AF_INET6


class _DualStackServer(_IPv6Server):
    """Listen on ``::`` and accept IPv4-mapped connections too."""

    def server_bind(self) -> None:
        self.socket.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_V6ONLY, 0)
        super().server_bind()


def _bind(host: str, port: int, app: Callable[..., Iterable[bytes]]) -> ThreadingWSGIServer:
    if host:
        server_class = _IPv6Server if ":" in host else ThreadingWSGIServer
        return make_server(
            host, port, app, server_class=server_class, handler_class=_LoggingHandler
        )

    # An empty host means every interface, IPv4 and IPv6.
    if socket.has_ipv6:
        try:
            return make_server(
                "::", port, app, server_class=_DualStackServer, handler_class=_LoggingHandler
            )
        except OSError:
            logger.debug("IPv6 unavailable, listening on IPv4 only", exc_info=True)
    return make_server(
        "0.0.0.0", port, app, server_class=ThreadingWSGIServer, handler_class=_LoggingHandler
    )


class MetricsServer:
    """Threaded HTTP server with a start/stop lifecycle.

    Each request is handled on its own daemon thread, so concurrent
    scrapes run independent collections.
    """

    def __init__(self, host: str, port: int, app: Callable[..., Iterable[bytes]]) -> None:
        self._httpd = _bind(host, port, app)
        self._thread: threading.Thread | None = None

    @property
    def address(self) -> tuple[str, int]:
        host, port = self._httpd.server_address[:2]
        return str(host), int(port)

    # -- lifecycle --

    def start(self) -> None:
        """Serve on a background daemon thread."""
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._httpd.serve_forever, name="metrics-server", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        """Stop serving and release the listening socket."""
        if self._thread is not None:
            self._httpd.shutdown()
            self._thread.join()
            self._thread = None
        self._httpd.server_close()
