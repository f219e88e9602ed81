"""Ingestion path: measure queue time around a request handler.

The recorder reads the load balancer's start time before the handler runs,
lets the handler produce its response, then hands the bookkeeping writes to
a background task. The response is never delayed by, or exposed to, the
store.
"""

import asyncio
import logging
import threading
import time
from collections.abc import Awaitable, Callable, Mapping
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from typing import TypeVar

from queuetimepy.config import QueueTimeConfig
from queuetimepy.core.models import QueueTimeSample, RequestArrival
from queuetimepy.core.ports import TimeSeriesStoragePort
from queuetimepy.core.retention import RetentionSweeper
from queuetimepy.core.timestamps import extract_request_start

logger = logging.getLogger(__name__)

T = TypeVar("T")


class QueueTimeRecorder:
    """Records queue time samples and request arrivals for each request.

    Use ``await recorder(headers, handler)`` from async frameworks and
    ``recorder.call_sync(headers, handler)`` from sync ones. Handler
    exceptions propagate untouched and skip the bookkeeping; bookkeeping
    failures are logged and dropped.
    """

    def __init__(
        self,
        storage: TimeSeriesStoragePort,
        config: QueueTimeConfig | None = None,
        sweeper: RetentionSweeper | None = None,
        clock: Callable[[], float] = time.time,
        executor: ThreadPoolExecutor | None = None,
    ) -> None:
        """Initialize the recorder.

        Args:
            storage: Shared time series store.
            config: Series keys and validation limits.
            sweeper: Retention sweeper run after each write. Defaults to one
                built from the same config and clock.
            clock: Returns the current Unix time in seconds.
            executor: Pool for sync-mode bookkeeping. Created on first use
                when omitted.
        """
        self.storage = storage
        self.config = config or QueueTimeConfig()
        self.sweeper = sweeper or RetentionSweeper(self.config, clock=clock)
        self._clock = clock
        self._executor = executor
        self._executor_lock = threading.Lock()
        # Strong references keep fire-and-forget tasks alive until done.
        self._background_tasks: set[asyncio.Task[None]] = set()
        self._futures: set[Future[None]] = set()
        self._futures_lock = threading.Lock()

    async def __call__(
        self, headers: Mapping[str, str], handler: Callable[[], Awaitable[T]]
    ) -> T:
        """Run an async handler and record its queue time in the background."""
        request_start, process_start = self._begin(headers)
        result = await handler()
        self._finish(request_start, process_start, self._dispatch_task)
        return result

    def call_sync(self, headers: Mapping[str, str], handler: Callable[[], T]) -> T:
        """Run a sync handler and record its queue time on a worker thread."""
        request_start, process_start = self._begin(headers)
        result = handler()
        self._finish(request_start, process_start, self._dispatch_thread)
        return result

    def plan(
        self, request_start: float | None, process_start: float
    ) -> tuple[QueueTimeSample | None, RequestArrival]:
        """Decide what to store for one request.

        The arrival is always stored. The sample is only stored when a start
        time was found and the queue time is within [0, max_queue_time_ms);
        negative values mean clock skew between the proxy and this host.
        """
        arrival = RequestArrival(timestamp=process_start)
        if request_start is None:
            return None, arrival
        queue_time_ms = round((process_start - request_start) * 1000, 2)
        if 0 <= queue_time_ms < self.config.max_queue_time_ms:
            return QueueTimeSample(process_start, queue_time_ms), arrival
        logger.warning("Invalid queue time: %sms (rejected)", queue_time_ms)
        return None, arrival

    async def store(self, sample: QueueTimeSample | None, arrival: RequestArrival) -> None:
        """Write one request's sample and arrival, then maybe sweep.

        Never raises.
        """
        try:
            if sample is not None:
                await self.storage.insert(
                    self.config.queue_times_key, sample.timestamp, sample.queue_time_ms
                )
                logger.debug("Stored queue time: %sms", sample.queue_time_ms)
            await self.storage.insert(
                self.config.requests_key, arrival.timestamp, arrival.timestamp
            )
            await self.sweeper.maybe_sweep(self.storage)
        except Exception:
            logger.exception("Failed to store queue time metrics")

    async def flush(self) -> None:
        """Wait for outstanding background writes.

        For shutdown hooks and tests; the request path never calls this.
        """
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks)
        pending = self._pending_futures()
        if pending:
            await asyncio.to_thread(wait_futures, pending)

    def flush_sync(self) -> None:
        """Wait for outstanding sync-mode background writes."""
        pending = self._pending_futures()
        if pending:
            wait_futures(pending)

    def shutdown(self) -> None:
        """Finish pending sync-mode writes and release the thread pool."""
        with self._executor_lock:
            if self._executor is not None:
                self._executor.shutdown(wait=True)
                self._executor = None

    def _begin(self, headers: Mapping[str, str]) -> tuple[float | None, float]:
        request_start = extract_request_start(headers)
        if request_start is None:
            logger.debug("No X-Request-Start header found")
        else:
            logger.debug("X-Request-Start resolved to %s", request_start)
        return request_start, self._clock()

    def _finish(
        self,
        request_start: float | None,
        process_start: float,
        dispatch: Callable[[QueueTimeSample | None, RequestArrival], None],
    ) -> None:
        try:
            sample, arrival = self.plan(request_start, process_start)
            dispatch(sample, arrival)
        except Exception:
            logger.exception("Queue time bookkeeping failed")

    def _dispatch_task(
        self, sample: QueueTimeSample | None, arrival: RequestArrival
    ) -> None:
        task = asyncio.get_running_loop().create_task(self.store(sample, arrival))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    def _dispatch_thread(
        self, sample: QueueTimeSample | None, arrival: RequestArrival
    ) -> None:
        future = self._get_executor().submit(self._store_in_thread, sample, arrival)
        with self._futures_lock:
            self._futures.add(future)
        future.add_done_callback(self._forget_future)

    def _forget_future(self, future: Future[None]) -> None:
        with self._futures_lock:
            self._futures.discard(future)

    def _pending_futures(self) -> list[Future[None]]:
        with self._futures_lock:
            return list(self._futures)

    def _store_in_thread(
        self, sample: QueueTimeSample | None, arrival: RequestArrival
    ) -> None:
        asyncio.run(self.store(sample, arrival))

    def _get_executor(self) -> ThreadPoolExecutor:
        """Get or create the bookkeeping pool (lazy so async-only use never starts one)."""
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=4, thread_name_prefix="queuetime"
                )
            return self._executor
