"""Probabilistic pruning of both series below the retention cutoff."""

import logging
import random
import time
from collections.abc import Callable

from queuetimepy.config import QueueTimeConfig
from queuetimepy.core.ports import TimeSeriesStoragePort

logger = logging.getLogger(__name__)


class RetentionSweeper:
    """Deletes entries older than the retention window.

    Sweeping on every write would double the store traffic, so each call
    to maybe_sweep() only prunes with probability cleanup_probability.
    Between sweeps the store may hold entries older than the window.
    """

    def __init__(
        self,
        config: QueueTimeConfig | None = None,
        clock: Callable[[], float] = time.time,
        rand: Callable[[], float] = random.random,
    ) -> None:
        """Initialize the sweeper.

        Args:
            config: Series keys, retention window and probability.
            clock: Returns the current Unix time in seconds.
            rand: Returns a uniform draw in [0, 1). Inject for deterministic tests.
        """
        self.config = config or QueueTimeConfig()
        self._clock = clock
        self._rand = rand

    def should_sweep(self) -> bool:
        """Draw once and decide whether this invocation prunes."""
        return self._rand() < self.config.cleanup_probability

    async def sweep(self, storage: TimeSeriesStoragePort) -> int:
        """Remove entries below the cutoff from both series.

        Returns:
            Total number of entries removed.
        """
        cutoff = self._clock() - self.config.ttl_seconds
        removed = await storage.remove_below(self.config.queue_times_key, cutoff)
        removed += await storage.remove_below(self.config.requests_key, cutoff)
        logger.debug("Retention sweep removed %d entries below %.3f", removed, cutoff)
        return removed

    async def maybe_sweep(self, storage: TimeSeriesStoragePort) -> bool:
        """Sweep with the configured probability.

        Returns:
            True if a sweep ran.
        """
        if not self.should_sweep():
            return False
        await self.sweep(storage)
        return True
