"""queuetimepy - request queue time tracking for multi-process server fleets."""

from queuetimepy.adapters.storage import (
    InMemoryTimeSeriesStorage,
    RedisTimeSeriesStorage,
    SQLiteTimeSeriesStorage,
    create_storage,
    get_default_storage,
)
from queuetimepy.adapters.worker_stats import BasicWorkerStats, RichWorkerStats
from queuetimepy.config import QueueTimeConfig
from queuetimepy.core.aggregator import MetricsAggregator
from queuetimepy.core.errors import ConfigurationError, QueueTimeError, StorageError
from queuetimepy.core.models import QueueTimeSample, RequestArrival
from queuetimepy.core.ports import TimeSeriesStoragePort, WorkerStatsPort
from queuetimepy.core.recorder import QueueTimeRecorder
from queuetimepy.core.retention import RetentionSweeper
from queuetimepy.core.timestamps import extract_request_start

__all__ = [
    "BasicWorkerStats",
    "ConfigurationError",
    "InMemoryTimeSeriesStorage",
    "MetricsAggregator",
    "QueueTimeConfig",
    "QueueTimeError",
    "QueueTimeRecorder",
    "QueueTimeSample",
    "RedisTimeSeriesStorage",
    "RequestArrival",
    "RetentionSweeper",
    "RichWorkerStats",
    "SQLiteTimeSeriesStorage",
    "StorageError",
    "TimeSeriesStoragePort",
    "WorkerStatsPort",
    "create_storage",
    "extract_request_start",
    "get_default_storage",
]
