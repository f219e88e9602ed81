"""Storage adapters implementing TimeSeriesStoragePort."""

import threading
from urllib.parse import urlparse

from queuetimepy.adapters.storage.in_memory import InMemoryTimeSeriesStorage
from queuetimepy.adapters.storage.redis_storage import RedisTimeSeriesStorage
from queuetimepy.adapters.storage.sqlite import SQLiteTimeSeriesStorage
from queuetimepy.config import QueueTimeConfig
from queuetimepy.core.errors import ConfigurationError
from queuetimepy.core.ports import TimeSeriesStoragePort

_REDIS_SCHEMES = {"redis", "rediss", "unix"}

_default_storage: TimeSeriesStoragePort | None = None
_default_lock = threading.Lock()


def create_storage(url: str) -> TimeSeriesStoragePort:
    """Build a storage adapter from a store URL.

    Supported forms:
        redis://host:port/db, rediss://..., unix:///path.sock -> Redis
        sqlite:///relative.db, sqlite:////absolute.db, sqlite://:memory: -> SQLite
        memory:// -> in-process memory

    Raises:
        ConfigurationError: If the scheme is not supported.
    """
    scheme = urlparse(url).scheme
    if scheme in _REDIS_SCHEMES:
        return RedisTimeSeriesStorage(url)
    if scheme == "sqlite":
        path = url[len("sqlite://") :]
        if path in ("", ":memory:", "/:memory:"):
            return SQLiteTimeSeriesStorage(":memory:")
        return SQLiteTimeSeriesStorage(path[1:] if path.startswith("/") else path)
    if scheme == "memory":
        return InMemoryTimeSeriesStorage()
    raise ConfigurationError(f"Unsupported store URL scheme: {scheme!r}")


def get_default_storage(config: QueueTimeConfig | None = None) -> TimeSeriesStoragePort:
    """Return the process-wide storage, creating it on first call.

    Later calls return the same adapter regardless of the config passed.
    """
    global _default_storage
    if _default_storage is None:
        with _default_lock:
            if _default_storage is None:
                _default_storage = create_storage((config or QueueTimeConfig.from_env()).store_url)
    return _default_storage


def reset_default_storage() -> None:
    """Forget the process-wide storage (after fork, or between tests)."""
    global _default_storage
    with _default_lock:
        _default_storage = None


__all__ = [
    "InMemoryTimeSeriesStorage",
    "RedisTimeSeriesStorage",
    "SQLiteTimeSeriesStorage",
    "create_storage",
    "get_default_storage",
    "reset_default_storage",
]
