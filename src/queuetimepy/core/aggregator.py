"""Aggregation path: build the metrics snapshot from the shared store."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any

from queuetimepy.config import QueueTimeConfig
from queuetimepy.core import stats
from queuetimepy.core.ports import TimeSeriesStoragePort, WorkerStatsPort

logger = logging.getLogger(__name__)


class MetricsAggregator:
    """Computes queue time and throughput statistics on demand.

    Each section of the snapshot is computed independently. A failing
    section is replaced by an error payload with safe defaults, so
    snapshot() itself always succeeds.
    """

    def __init__(
        self,
        storage: TimeSeriesStoragePort,
        worker_stats: WorkerStatsPort,
        config: QueueTimeConfig | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the aggregator.

        Args:
            storage: Shared time series store.
            worker_stats: Host runtime statistics source, e.g.
                RichWorkerStats or BasicWorkerStats.
            config: Series keys and window widths.
            clock: Returns the current Unix time in seconds.
        """
        self.storage = storage
        self.config = config or QueueTimeConfig()
        self.worker_stats = worker_stats
        self._clock = clock

    async def snapshot(self) -> dict[str, Any]:
        """Return the full metrics payload served by the endpoint."""
        worker, aggregate, windows, throughput = await asyncio.gather(
            self.worker_section(),
            self.queue_time_stats(),
            self.queue_time_windows(),
            self.requests_per_minute(),
        )
        return {
            "timestamp": datetime.fromtimestamp(self._clock(), tz=timezone.utc).isoformat(),
            "queue_time_ms": aggregate,
            "queue_time_windows": windows,
            "requests_per_minute": throughput,
            "puma": worker,
        }

    async def queue_time_stats(self) -> dict[str, Any]:
        """Aggregate statistics over every retained queue time sample."""
        return await self._guarded(
            self._queue_time_stats,
            "Failed to fetch queue time data",
            {"sample_count": 0},
        )

    async def queue_time_windows(self) -> dict[str, Any]:
        """Average queue time over each sliding window."""
        fallback: dict[str, Any] = {
            stats.window_label(w): {"avg": 0, "sample_count": 0}
            for w in self.config.windows
        }
        return await self._guarded(
            self._queue_time_windows,
            "Failed to calculate queue time windows",
            fallback,
        )

    async def requests_per_minute(self) -> dict[str, Any]:
        """Count requests that arrived within the throughput window."""
        return await self._guarded(
            self._requests_per_minute,
            "Failed to calculate requests per minute",
            {"count": 0, "window_seconds": self.config.requests_window_seconds},
        )

    async def worker_section(self) -> dict[str, Any]:
        """Worker pool statistics, read off the event loop."""
        try:
            return await asyncio.to_thread(self.worker_stats.snapshot)
        except Exception as e:
            logger.exception("Failed to fetch worker stats")
            return {"error": f"Failed to fetch Puma stats: {e}"}

    async def _queue_time_stats(self) -> dict[str, Any]:
        values = await self.storage.range_by_score(self.config.queue_times_key)
        return stats.aggregate(values)

    async def _queue_time_windows(self) -> dict[str, Any]:
        now = self._clock()
        result: dict[str, Any] = {}
        for width in self.config.windows:
            values = await self.storage.range_by_score(
                self.config.queue_times_key, now - width, now
            )
            result[stats.window_label(width)] = stats.window_summary(values)
        return result

    async def _requests_per_minute(self) -> dict[str, Any]:
        now = self._clock()
        window = self.config.requests_window_seconds
        count = await self.storage.count_by_score(
            self.config.requests_key, now - window, now
        )
        return {"count": count, "window_seconds": window}

    async def _guarded(
        self,
        compute: Callable[[], Awaitable[dict[str, Any]]],
        message: str,
        defaults: dict[str, Any],
    ) -> dict[str, Any]:
        try:
            return await compute()
        except Exception as e:
            logger.exception(message)
            return {"error": f"{message}: {e}", **defaults}
