"""Worker pool statistics providers.

RichWorkerStats reshapes the stats payload a clustered server exposes
(Puma-style: workers, backlog, pool capacity, per-worker status).
BasicWorkerStats reports what any single process can see about itself.
"""

import json
import os
import threading
from collections.abc import Callable, Mapping
from typing import Any

WORKER_FIELDS = (
    "workers",
    "phase",
    "booted_workers",
    "old_workers",
    "backlog",
    "running",
    "pool_capacity",
    "max_threads",
)
WORKER_STATUS_FIELDS = ("pid", "index", "phase", "booted", "last_status")

StatsSource = Callable[[], str | bytes | Mapping[str, Any]]


def format_worker_stats(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Reshape a raw stats payload into the endpoint's worker section.

    Missing counters default to 0. worker_status is included only when
    the payload lists at least one worker.
    """
    formatted: dict[str, Any] = {name: raw.get(name) or 0 for name in WORKER_FIELDS}
    workers = raw.get("worker_status")
    if workers:
        formatted["worker_status"] = [
            {name: worker.get(name) for name in WORKER_STATUS_FIELDS}
            for worker in workers
        ]
    return formatted


class RichWorkerStats:
    """WorkerStatsPort backed by the host server's stats callable.

    Args:
        source: Returns the current stats, either as a JSON document or an
            already decoded mapping.
    """

    def __init__(self, source: StatsSource) -> None:
        self._source = source

    def snapshot(self) -> dict[str, Any]:
        """Fetch and reshape the current worker pool statistics."""
        raw = self._source()
        if isinstance(raw, (str, bytes)):
            raw = json.loads(raw)
        return format_worker_stats(raw)


class BasicWorkerStats:
    """WorkerStatsPort fallback when the server exposes no pool statistics."""

    def __init__(self, environment: str = "development") -> None:
        self._environment = environment

    def snapshot(self) -> dict[str, Any]:
        """Report thread count and process id for this process only."""
        return {
            "threads": threading.active_count(),
            "process_id": os.getpid(),
            "environment": self._environment,
            "note": "Worker pool stats unavailable; reporting this process only",
        }
