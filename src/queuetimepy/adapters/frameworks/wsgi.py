"""WSGI adapter for queue time tracking.

The WSGI counterpart of the ASGI adapter, for thread-per-request servers
such as gunicorn or waitress. Bookkeeping runs on the recorder's thread pool.
"""

import asyncio
from collections.abc import Callable, Iterable
from typing import Any

from queuetimepy.adapters.frameworks.encoding import CONTENT_TYPE, render_metrics
from queuetimepy.core.aggregator import MetricsAggregator
from queuetimepy.core.recorder import QueueTimeRecorder

# WSGI type aliases
Environ = dict[str, Any]
StartResponse = Callable[..., Any]
WSGIApp = Callable[[Environ, StartResponse], Iterable[bytes]]


class QueueTimeWSGIMiddleware:
    """WSGI middleware that records queue time for each request.

    The environ carries the start header as HTTP_X_REQUEST_START.
    """

    def __init__(self, app: WSGIApp, recorder: QueueTimeRecorder) -> None:
        self.app = app
        self.recorder = recorder

    def __call__(self, environ: Environ, start_response: StartResponse) -> Iterable[bytes]:
        return self.recorder.call_sync(
            environ, lambda: self.app(environ, start_response)
        )


def create_wsgi_app(aggregator: MetricsAggregator, path: str = "/metrics") -> WSGIApp:
    """Create a WSGI app that serves the metrics snapshot as JSON.

    Args:
        aggregator: Aggregator reading the shared store.
        path: Path of the metrics endpoint.

    Returns:
        WSGI application callable.
    """

    def app(environ: Environ, start_response: StartResponse) -> Iterable[bytes]:
        if environ.get("PATH_INFO") != path:
            start_response("404 Not Found", [("Content-Type", "text/plain")])
            return [b"Not Found"]
        body = asyncio.run(render_metrics(aggregator))
        start_response("200 OK", [("Content-Type", CONTENT_TYPE)])
        return [body.encode()]

    return app
