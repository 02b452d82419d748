"""
In-process counters and latency samples for the progress core.

Counters come from the cache layer (hit/miss/stale/invalidated) and the
overview service; latencies come from `track_duration` around every entity
store call. Both are served as-is by /metrics.
"""

import time
from collections import defaultdict, deque
from contextlib import asynccontextmanager
from typing import Any, Deque, Dict

from careeros.utils.logger import get_logger

logger = get_logger()

# Latest samples kept per histogram
MAX_HISTOGRAM_SAMPLES = 500

_counters: Dict[str, int] = defaultdict(int)
_histograms: Dict[str, Deque[float]] = defaultdict(lambda: deque(maxlen=MAX_HISTOGRAM_SAMPLES))


def inc(name: str, value: int = 1) -> None:
    _counters[name] += value


@asynccontextmanager
async def track_duration(service: str, operation: str):
    """
    Record the duration of the wrapped block under
    `{service}.{operation}.duration_ms` and count success/error.

    Usage:
        async with track_duration("store.enrollments", "get"):
            rows = await ...
    """
    name = f"{service}.{operation}"
    start = time.monotonic()
    outcome = "success"
    try:
        yield
    except Exception:
        outcome = "error"
        raise
    finally:
        duration_ms = (time.monotonic() - start) * 1000
        _histograms[f"{name}.duration_ms"].append(duration_ms)
        inc(f"{name}.{outcome}")
        if outcome == "error":
            logger.warning(
                "store.call_failed",
                extra={"service": service, "operation": operation, "duration_ms": round(duration_ms, 1)},
            )


def _percentile(ordered: list, fraction: float) -> float:
    return ordered[min(int(len(ordered) * fraction), len(ordered) - 1)]


def get_snapshot() -> Dict[str, Any]:
    """Counters plus count/p50/p95/max per histogram."""
    histograms = {}
    for name, samples in _histograms.items():
        if not samples:
            continue
        ordered = sorted(samples)
        histograms[name] = {
            "count": len(ordered),
            "p50": round(_percentile(ordered, 0.5), 1),
            "p95": round(_percentile(ordered, 0.95), 1),
            "max": round(ordered[-1], 1),
        }
    return {"counters": dict(_counters), "histograms": histograms}


def reset() -> None:
    _counters.clear()
    _histograms.clear()
