"""Shared test fixtures for all test modules."""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from queuetimepy.adapters.storage import InMemoryTimeSeriesStorage, reset_default_storage
from queuetimepy.config import QueueTimeConfig
from queuetimepy.core.retention import RetentionSweeper
from tests.helpers import FailingStorage, FakeClock

try:
    import httpx
except ImportError:
    httpx = None


@pytest.fixture(autouse=True)
def _reset_default_storage():
    """Keep the process-wide storage from leaking between tests."""
    reset_default_storage()
    yield
    reset_default_storage()


@pytest.fixture
def clock() -> FakeClock:
    """Clock frozen at a fixed Unix time."""
    return FakeClock()


@pytest.fixture
def config() -> QueueTimeConfig:
    """Default configuration."""
    return QueueTimeConfig()


@pytest.fixture
def storage() -> InMemoryTimeSeriesStorage:
    """Empty in-memory time series storage."""
    return InMemoryTimeSeriesStorage()


@pytest.fixture
def failing_storage() -> FailingStorage:
    """Storage that fails every operation."""
    return FailingStorage()


@pytest.fixture
def series_db_path(tmp_path: Path) -> str:
    """Provide a temporary database path for SQLite storage tests."""
    return str(tmp_path / "series.db")


@pytest.fixture
def never_sweep(config: QueueTimeConfig, clock: FakeClock) -> RetentionSweeper:
    """Sweeper whose random draw never triggers a sweep."""
    return RetentionSweeper(config, clock=clock, rand=lambda: 0.99)


@pytest.fixture
def always_sweep(config: QueueTimeConfig, clock: FakeClock) -> RetentionSweeper:
    """Sweeper whose random draw always triggers a sweep."""
    return RetentionSweeper(config, clock=clock, rand=lambda: 0.0)


# === ASGI Test Fixtures ===


@pytest.fixture
def basic_asgi_app():
    """Basic ASGI app fixture that returns 200 OK."""
    from queuetimepy.adapters.frameworks.asgi import Receive, Scope, Send

    async def app(scope: Scope, receive: Receive, send: Send) -> None:
        """Simple ASGI app that returns 200 OK."""
        await send({"type": "http.response.start", "status": 200, "headers": []})
        await send({"type": "http.response.body", "body": b"OK"})

    return app


@pytest.fixture
def asgi_scope() -> Callable[..., dict[str, Any]]:
    """Factory fixture for creating ASGI scope dicts with optional headers."""

    def _scope(
        method: str = "GET",
        path: str = "/test",
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        return {
            "type": "http",
            "method": method,
            "path": path,
            "query_string": b"",
            "headers": [
                (name.lower().encode(), value.encode())
                for name, value in (headers or {}).items()
            ],
        }

    return _scope


@pytest.fixture
def asgi_send_capture():
    """Fixture that returns a send callable and a responses list for capture."""
    responses: list[dict[str, object]] = []

    async def send(message: dict[str, object]) -> None:
        """Capture ASGI messages."""
        responses.append(message)

    return send, responses


@pytest.fixture
def asgi_test_client():
    """Factory fixture that creates an httpx.AsyncClient for ASGI testing.

    Usage:
        async def test_something(asgi_test_client):
            async with asgi_test_client(app) as client:
                response = await client.get("/metrics")
    """
    if httpx is None:
        pytest.skip("httpx not installed")

    def _get_client(app):
        """Return an AsyncClient context manager for the given app."""
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        )

    return _get_client


@pytest.fixture
def wsgi_test_client():
    """Factory fixture that creates an httpx.Client for WSGI testing."""
    if httpx is None:
        pytest.skip("httpx not installed")

    def _get_client(app):
        """Return a Client context manager for the given app."""
        return httpx.Client(
            transport=httpx.WSGITransport(app=app), base_url="http://test"
        )

    return _get_client
