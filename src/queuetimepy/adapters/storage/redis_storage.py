"""Redis storage adapter for queue time series.

Each series is a sorted set with the Unix timestamp as score, so every
worker on every host writes to and reads from the same data.
"""

import asyncio
import math
import threading
import uuid
from typing import Any

import redis

from queuetimepy.config import DEFAULT_STORE_URL
from queuetimepy.core.errors import StorageError


def _score_bound(value: float, exclusive: bool = False) -> str:
    """Format a score for ZRANGEBYSCORE-style commands."""
    if math.isinf(value):
        return "+inf" if value > 0 else "-inf"
    return f"({value!r}" if exclusive else repr(value)


def encode_member(score: float, value: float) -> str:
    """Build a sorted set member that is unique per insert."""
    return f"{float(score)!r}:{float(value)!r}:{uuid.uuid4().hex[:12]}"


def decode_member(member: str) -> float:
    """Recover the stored value from an encoded member."""
    return float(member.split(":")[1])


class RedisTimeSeriesStorage:
    """Redis implementation of TimeSeriesStoragePort.

    The client is created on first use and reused for the life of the
    adapter. redis-py's blocking client runs in a worker thread, which lets
    the same adapter serve both event-loop and thread-per-request servers.

    Sorted set members are unique, so each member is encoded as
    "<score>:<value>:<nonce>". Equal values recorded by different requests
    stay separate entries.
    """

    def __init__(
        self,
        url: str = DEFAULT_STORE_URL,
        client: "redis.Redis[Any] | None" = None,
        **client_kwargs: Any,
    ) -> None:
        """Initialize the adapter.

        Args:
            url: Redis connection URL.
            client: Pre-built client. Skips lazy creation when given.
            **client_kwargs: Extra arguments for redis.Redis.from_url.
        """
        self._url = url
        self._client = client
        self._client_kwargs = {"decode_responses": True, **client_kwargs}
        self._client_lock = threading.Lock()

    def _get_client(self) -> "redis.Redis[Any]":
        """Get or create the Redis client."""
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    self._client = redis.Redis.from_url(self._url, **self._client_kwargs)
        return self._client

    async def _call(self, command: str, *args: Any) -> Any:
        method = getattr(self._get_client(), command)
        try:
            return await asyncio.to_thread(method, *args)
        except redis.RedisError as e:
            raise StorageError(f"Redis {command} failed: {e}") from e

    async def insert(self, key: str, score: float, member: float) -> None:
        """Add a member to the sorted set under the given score."""
        await self._call("zadd", key, {encode_member(score, member): score})

    async def range_by_score(
        self,
        key: str,
        min_score: float = float("-inf"),
        max_score: float = float("inf"),
    ) -> list[float]:
        """Return members with min_score <= score <= max_score, by score."""
        members = await self._call(
            "zrangebyscore", key, _score_bound(min_score), _score_bound(max_score)
        )
        return [decode_member(m) for m in members]

    async def count_by_score(
        self, key: str, min_score: float, max_score: float
    ) -> int:
        """Count members with min_score <= score <= max_score."""
        count = await self._call(
            "zcount", key, _score_bound(min_score), _score_bound(max_score)
        )
        return int(count)

    async def remove_below(self, key: str, cutoff: float) -> int:
        """Delete members with score < cutoff."""
        removed = await self._call(
            "zremrangebyscore", key, "-inf", _score_bound(cutoff, exclusive=True)
        )
        return int(removed)

    async def close(self) -> None:
        """Release the connection pool."""
        if self._client is not None:
            await asyncio.to_thread(self._client.close)
            self._client = None
