"""Example FastAPI application with queue time tracking.

Run with:
    REDIS_URL=memory:// uvicorn examples.fastapi_example:app --reload

Endpoints:
    /          - Hello endpoint (recorded by the middleware)
    /slow      - Endpoint that holds the worker for a while
    /metrics   - Queue time, throughput and worker stats as JSON

Try it:
    curl -H "X-Request-Start: t=$(date +%s.%N)" localhost:8000/
    curl localhost:8000/metrics

Point REDIS_URL at a Redis server to share data across workers and hosts.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from queuetimepy import (
    BasicWorkerStats,
    MetricsAggregator,
    QueueTimeConfig,
    QueueTimeRecorder,
)
from queuetimepy.adapters.frameworks.asgi import QueueTimeMiddleware
from queuetimepy.adapters.frameworks.fastapi import create_queue_time_router
from queuetimepy.adapters.storage import get_default_storage

logging.basicConfig(level=logging.INFO)

config = QueueTimeConfig.from_env()
storage = get_default_storage(config)
recorder = QueueTimeRecorder(storage, config)
aggregator = MetricsAggregator(storage, BasicWorkerStats(config.environment), config=config)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Let in-flight bookkeeping writes finish before exit."""
    yield
    await recorder.flush()


# Create FastAPI app
app = FastAPI(title="Queue Time Example", lifespan=lifespan)

# Mount the metrics endpoint and record every request
app.include_router(create_queue_time_router(aggregator))
app.add_middleware(QueueTimeMiddleware, recorder=recorder)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Hello! Check the /metrics endpoint."}


@app.get("/slow")
async def slow() -> dict[str, str]:
    """Slow endpoint; concurrent requests to it build up queue time upstream."""
    await asyncio.sleep(0.5)
    return {"message": "done"}
