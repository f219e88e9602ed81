"""Port interfaces for storage and worker statistics adapters.

These protocols define the contracts that adapters must implement.
The core domain depends only on these interfaces, not concrete implementations.
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class TimeSeriesStoragePort(Protocol):
    """Port for score-ordered time series storage.

    Each series is addressed by a key and holds (score, member) pairs.
    Scores are Unix timestamps. Implementations must be safe to share
    between concurrent requests; every operation is atomic on its own.
    Examples: InMemoryTimeSeriesStorage, SQLiteTimeSeriesStorage,
    RedisTimeSeriesStorage.
    """

    async def insert(self, key: str, score: float, member: float) -> None:
        """Add a member to the series under the given score."""
        ...

    async def range_by_score(
        self,
        key: str,
        min_score: float = float("-inf"),
        max_score: float = float("inf"),
    ) -> list[float]:
        """Return members with min_score <= score <= max_score.

        Returns:
            Members ordered by score ascending.
        """
        ...

    async def count_by_score(
        self, key: str, min_score: float, max_score: float
    ) -> int:
        """Count members with min_score <= score <= max_score."""
        ...

    async def remove_below(self, key: str, cutoff: float) -> int:
        """Delete members with score < cutoff.

        Returns:
            Number of members removed.
        """
        ...


@runtime_checkable
class WorkerStatsPort(Protocol):
    """Port for the host runtime's process and worker pool statistics."""

    def snapshot(self) -> dict[str, Any]:
        """Return the current statistics as a JSON-serializable dict."""
        ...
