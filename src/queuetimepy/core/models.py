"""Core domain models for queue time data."""

from dataclasses import dataclass


@dataclass(frozen=True)
class QueueTimeSample:
    """A single queue time measurement.

    Attributes:
        timestamp: Unix timestamp in seconds when processing started.
            Used as the score in the queue time series.
        queue_time_ms: Time the request spent queued, in milliseconds.
    """

    timestamp: float
    queue_time_ms: float


@dataclass(frozen=True)
class RequestArrival:
    """A request that passed through the recorder.

    Attributes:
        timestamp: Unix timestamp in seconds. Stored as both score and member.
    """

    timestamp: float
