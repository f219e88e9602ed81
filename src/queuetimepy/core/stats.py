"""Statistics over queue time samples.

Pure functions: callers fetch the samples, these shape them into the
payloads served by the metrics endpoint.
"""

import math
from collections.abc import Sequence
from typing import Any

NO_DATA_MESSAGE = "No queue time data available"
PERCENTILES = (50, 95, 99)


def percentile(sorted_values: Sequence[float], pct: float) -> float:
    """Return the nearest-rank percentile of an ascending sequence.

    No interpolation: the result is always one of the inputs. For ten
    values, p50 is the 5th smallest and p95 the largest.

    Args:
        sorted_values: Values sorted ascending.
        pct: Percentile in [0, 100].

    Returns:
        The selected value, or 0 for an empty sequence.
    """
    if not sorted_values:
        return 0
    index = math.ceil(pct / 100.0 * len(sorted_values)) - 1
    return sorted_values[max(index, 0)]


def aggregate(values: Sequence[float]) -> dict[str, Any]:
    """Summarize queue times into avg, p50, p95, p99, max, min and count.

    Numeric values are rounded to 2 decimals. An empty input yields an
    error payload with a zero sample count.
    """
    if not values:
        return {"error": NO_DATA_MESSAGE, "sample_count": 0}
    ordered = sorted(values)
    stats: dict[str, Any] = {"avg": sum(ordered) / len(ordered)}
    for pct in PERCENTILES:
        stats[f"p{pct}"] = percentile(ordered, pct)
    stats["max"] = ordered[-1]
    stats["min"] = ordered[0]
    stats["sample_count"] = len(ordered)
    return {key: round(value, 2) for key, value in stats.items()}


def window_summary(values: Sequence[float]) -> dict[str, Any]:
    """Average and count for one sliding window."""
    if not values:
        return {"avg": 0, "sample_count": 0}
    return {
        "avg": round(sum(values) / len(values), 2),
        "sample_count": len(values),
    }


def window_label(seconds: int) -> str:
    """Response key for a window width, e.g. 10 -> "10s"."""
    return f"{seconds}s"
