"""ASGI adapter for queue time tracking.

Provides a middleware that records queue time for every HTTP request and
a framework-agnostic ASGI application serving the metrics snapshot. Works
with any ASGI server (uvicorn, hypercorn, daphne).
"""

from collections.abc import Callable, Coroutine
from typing import Any

from queuetimepy.adapters.frameworks.encoding import CONTENT_TYPE, render_metrics
from queuetimepy.core.aggregator import MetricsAggregator
from queuetimepy.core.recorder import QueueTimeRecorder

# ASGI type aliases
Scope = dict[str, Any]
Receive = Callable[[], Coroutine[Any, Any, dict[str, Any]]]
Send = Callable[[dict[str, Any]], Coroutine[Any, Any, None]]
ASGIApp = Callable[[Scope, Receive, Send], Coroutine[Any, Any, None]]


def _scope_headers(scope: Scope) -> dict[str, str]:
    """Decode ASGI scope headers into a lowercase-keyed dict.

    Args:
        scope: ASGI scope dictionary containing request metadata.

    Returns:
        Header names mapped to values. Repeated headers keep the first value.
    """
    headers: dict[str, str] = {}
    for name, value in scope.get("headers", []):
        key = name.decode("latin-1").lower()
        headers.setdefault(key, value.decode("latin-1"))
    return headers


async def _send_response(send: Send, status: int, content_type: str, body: str) -> None:
    """Send an HTTP response with headers and body.

    Args:
        send: ASGI send callable for writing response.
        status: HTTP status code.
        content_type: Content-Type header value.
        body: Response body as string (will be encoded to bytes).
    """
    headers = [(b"content-type", content_type.encode())]
    await send({"type": "http.response.start", "status": status, "headers": headers})
    await send({"type": "http.response.body", "body": body.encode()})


class QueueTimeMiddleware:
    """ASGI middleware that records queue time for each HTTP request.

    Non-HTTP scopes (websocket, lifespan) pass through untouched. Exceptions
    from the wrapped app propagate and are not recorded.
    """

    def __init__(self, app: ASGIApp, recorder: QueueTimeRecorder) -> None:
        """Initialize the middleware.

        Args:
            app: The ASGI application to wrap.
            recorder: Recorder that writes to the shared store.
        """
        self.app = app
        self.recorder = recorder

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI callable interface that processes requests through the wrapped app."""
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def call_app() -> None:
            await self.app(scope, receive, send)

        await self.recorder(_scope_headers(scope), call_app)


def create_asgi_app(aggregator: MetricsAggregator, path: str = "/metrics") -> ASGIApp:
    """Create an ASGI app that serves the metrics snapshot as JSON.

    The endpoint answers 200 even when sections of the snapshot failed;
    those sections carry an "error" field instead. If the snapshot cannot
    be built or encoded at all, the body is a JSON error document.

    Args:
        aggregator: Aggregator reading the shared store.
        path: Path of the metrics endpoint.

    Returns:
        ASGI application callable.
    """

    async def app(scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            return

        if scope["path"] == path:
            body = await render_metrics(aggregator)
            await _send_response(send, 200, CONTENT_TYPE, body)
        else:
            await _send_response(send, 404, "text/plain", "Not Found")

    return app
