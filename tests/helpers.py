"""Test doubles shared across test modules."""

from queuetimepy.core.errors import StorageError

NOW = 1_700_000_000.0


class FakeClock:
    """Callable clock frozen at a settable Unix time."""

    def __init__(self, now: float = NOW) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FailingStorage:
    """Storage whose every operation raises StorageError."""

    def __init__(self, message: str = "Connection refused") -> None:
        self.message = message

    async def insert(self, key: str, score: float, member: float) -> None:
        raise StorageError(self.message)

    async def range_by_score(
        self, key: str, min_score: float = float("-inf"), max_score: float = float("inf")
    ) -> list[float]:
        raise StorageError(self.message)

    async def count_by_score(self, key: str, min_score: float, max_score: float) -> int:
        raise StorageError(self.message)

    async def remove_below(self, key: str, cutoff: float) -> int:
        raise StorageError(self.message)
