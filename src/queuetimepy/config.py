"""Runtime configuration for queue time tracking."""

from __future__ import annotations

import os
from dataclasses import dataclass

from queuetimepy.core.errors import ConfigurationError

DEFAULT_STORE_URL = "redis://localhost:6379/1"
QUEUE_TIMES_KEY = "puma:queue_times"
REQUESTS_KEY = "puma:request_timestamps"
TTL_SECONDS = 300
CLEANUP_PROBABILITY = 0.1
MAX_QUEUE_TIME_MS = 3_600_000


def _env_number(name: str, default: float, cast: type) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e


@dataclass(frozen=True)
class QueueTimeConfig:
    """Configuration shared by the recorder, sweeper and aggregator.

    Attributes:
        store_url: Location of the shared time series store.
        queue_times_key: Series key for queue time samples.
        requests_key: Series key for request arrival timestamps.
        ttl_seconds: Retention window for both series.
        cleanup_probability: Chance that a write triggers a retention sweep.
        max_queue_time_ms: Queue times at or above this are rejected.
        windows: Sliding window widths in seconds.
        requests_window_seconds: Window for the requests-per-minute count.
        environment: Deployment environment name, reported in basic stats.
    """

    store_url: str = DEFAULT_STORE_URL
    queue_times_key: str = QUEUE_TIMES_KEY
    requests_key: str = REQUESTS_KEY
    ttl_seconds: int = TTL_SECONDS
    cleanup_probability: float = CLEANUP_PROBABILITY
    max_queue_time_ms: float = MAX_QUEUE_TIME_MS
    windows: tuple[int, ...] = (10, 20, 30)
    requests_window_seconds: int = 60
    environment: str = "development"

    def __post_init__(self) -> None:
        if self.ttl_seconds <= 0:
            raise ConfigurationError("ttl_seconds must be positive")
        if not 0.0 <= self.cleanup_probability <= 1.0:
            raise ConfigurationError("cleanup_probability must be within [0, 1]")
        if self.max_queue_time_ms <= 0:
            raise ConfigurationError("max_queue_time_ms must be positive")
        if any(w <= 0 for w in self.windows):
            raise ConfigurationError("windows must be positive")

    @classmethod
    def from_env(cls) -> QueueTimeConfig:
        """Create a config from environment variables.

        Reads REDIS_URL, QUEUETIME_QUEUE_TIMES_KEY, QUEUETIME_REQUESTS_KEY,
        QUEUETIME_TTL_SECONDS, QUEUETIME_CLEANUP_PROBABILITY and APP_ENV.
        Unset variables fall back to the defaults.
        """
        return cls(
            store_url=os.environ.get("REDIS_URL", DEFAULT_STORE_URL),
            queue_times_key=os.environ.get("QUEUETIME_QUEUE_TIMES_KEY", QUEUE_TIMES_KEY),
            requests_key=os.environ.get("QUEUETIME_REQUESTS_KEY", REQUESTS_KEY),
            ttl_seconds=int(_env_number("QUEUETIME_TTL_SECONDS", TTL_SECONDS, int)),
            cleanup_probability=_env_number(
                "QUEUETIME_CLEANUP_PROBABILITY", CLEANUP_PROBABILITY, float
            ),
            environment=os.environ.get("APP_ENV", "development"),
        )
