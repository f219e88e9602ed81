"""JSON rendering of the metrics snapshot shared by the framework adapters."""

import json
import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from queuetimepy.core.aggregator import MetricsAggregator

logger = logging.getLogger(__name__)

CONTENT_TYPE = "application/json"


def encode_snapshot(snapshot: Mapping[str, Any]) -> str:
    """Serialize a snapshot to JSON.

    The worker section is an opaque host payload, so values the json module
    cannot encode (datetimes, decimals) are rendered with str().
    """
    return json.dumps(snapshot, default=str)


async def render_metrics(aggregator: MetricsAggregator) -> str:
    """Build and encode the snapshot. Never raises.

    Returns:
        The encoded snapshot, or a JSON error document when building or
        encoding it failed.
    """
    try:
        return encode_snapshot(await aggregator.snapshot())
    except Exception as e:
        logger.exception("Failed to render metrics snapshot")
        return json.dumps(
            {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "error": f"Failed to render metrics: {e}",
            }
        )
