"""FastAPI adapter for the queue time metrics endpoint."""

from fastapi import APIRouter, Response

from queuetimepy.adapters.frameworks.encoding import CONTENT_TYPE, render_metrics
from queuetimepy.core.aggregator import MetricsAggregator


def create_queue_time_router(
    aggregator: MetricsAggregator, path: str = "/metrics"
) -> APIRouter:
    """Create a FastAPI router exposing the metrics snapshot.

    Args:
        aggregator: Aggregator reading the shared store.
        path: Path of the metrics endpoint within the router.

    Returns:
        APIRouter with a single GET endpoint.
    """
    router = APIRouter()

    @router.get(path)
    async def get_queue_time_metrics() -> Response:
        """Return queue time, throughput and worker statistics."""
        return Response(content=await render_metrics(aggregator), media_type=CONTENT_TYPE)

    return router
