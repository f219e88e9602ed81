"""In-memory storage adapter for queue time series."""

import bisect
import threading
from collections import defaultdict


class InMemoryTimeSeriesStorage:
    """In-memory implementation of TimeSeriesStoragePort.

    Keeps each series as a list of (score, member) pairs sorted by score.
    Visible to a single process only, so it suits tests and single-worker
    development servers. Duplicate pairs are kept.
    """

    def __init__(self) -> None:
        self._series: dict[str, list[tuple[float, float]]] = defaultdict(list)
        self._lock = threading.Lock()

    async def insert(self, key: str, score: float, member: float) -> None:
        """Add a member to the series under the given score."""
        with self._lock:
            bisect.insort(self._series[key], (score, member), key=lambda e: e[0])

    async def range_by_score(
        self,
        key: str,
        min_score: float = float("-inf"),
        max_score: float = float("inf"),
    ) -> list[float]:
        """Return members with min_score <= score <= max_score, by score."""
        with self._lock:
            entries = self._series.get(key, [])
            lo, hi = self._bounds(entries, min_score, max_score)
            return [member for _score, member in entries[lo:hi]]

    async def count_by_score(
        self, key: str, min_score: float, max_score: float
    ) -> int:
        """Count members with min_score <= score <= max_score."""
        with self._lock:
            entries = self._series.get(key, [])
            lo, hi = self._bounds(entries, min_score, max_score)
            return max(hi - lo, 0)

    async def remove_below(self, key: str, cutoff: float) -> int:
        """Delete members with score < cutoff."""
        with self._lock:
            entries = self._series.get(key, [])
            index = bisect.bisect_left(entries, cutoff, key=lambda e: e[0])
            del entries[:index]
            return index

    def clear(self) -> None:
        """Remove every series."""
        with self._lock:
            self._series.clear()

    @staticmethod
    def _bounds(
        entries: list[tuple[float, float]], min_score: float, max_score: float
    ) -> tuple[int, int]:
        lo = bisect.bisect_left(entries, min_score, key=lambda e: e[0])
        hi = bisect.bisect_right(entries, max_score, key=lambda e: e[0])
        return lo, hi
