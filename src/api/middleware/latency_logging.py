"""Request latency logging middleware with in-memory stats."""

import logging
import re
import time
from collections import defaultdict
from typing import Callable

from fastapi import Request, Response

logger = logging.getLogger(__name__)

# Thresholds for log levels (in milliseconds)
SLOW_REQUEST_THRESHOLD_MS = 1000
VERY_SLOW_REQUEST_THRESHOLD_MS = 3000

# Probed constantly; kept out of stats and info logs
QUIET_PATHS = frozenset({"/health", "/health/ready", "/health/stats"})

_UUID_PATTERN = re.compile(r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE)


def _percentile(sorted_values: list[float], fraction: float) -> float:
    return sorted_values[min(int(len(sorted_values) * fraction), len(sorted_values) - 1)]


class LatencyStats:
    """Rolling window of request latencies, reported on /health/stats."""

    def __init__(self, max_samples: int = 1000) -> None:
        self._samples: list[tuple[str, float]] = []
        self._max_samples = max_samples

    def record(self, path: str, latency_ms: float) -> None:
        """Record a latency sample."""
        self._samples.append((self.normalize_path(path), latency_ms))
        if len(self._samples) > self._max_samples:
            self._samples = self._samples[-self._max_samples:]

    def get_stats(self) -> dict:
        """Aggregate stats over all recorded requests."""
        if not self._samples:
            return {
                "total_requests": 0,
                "avg_latency_ms": 0,
                "p50_latency_ms": 0,
                "p95_latency_ms": 0,
                "p99_latency_ms": 0,
            }

        latencies = sorted(latency for _, latency in self._samples)
        total = len(latencies)
        return {
            "total_requests": total,
            "avg_latency_ms": round(sum(latencies) / total, 2),
            "p50_latency_ms": round(_percentile(latencies, 0.5), 2),
            "p95_latency_ms": round(_percentile(latencies, 0.95), 2),
            "p99_latency_ms": round(_percentile(latencies, 0.99), 2),
        }

    def get_stats_by_path(self) -> dict:
        """Count, mean and p95 per normalized path."""
        by_path: dict[str, list[float]] = defaultdict(list)
        for path, latency in self._samples:
            by_path[path].append(latency)

        result = {}
        for path, latencies in by_path.items():
            latencies.sort()
            result[path] = {
                "count": len(latencies),
                "avg_ms": round(sum(latencies) / len(latencies), 2),
                "p95_ms": round(_percentile(latencies, 0.95), 2),
            }
        return result

    def reset(self) -> None:
        self._samples = []

    @staticmethod
    def normalize_path(path: str) -> str:
        """Replace UUID segments so per-user paths aggregate together."""
        return _UUID_PATTERN.sub("{id}", path)


_latency_stats: LatencyStats | None = None


def get_latency_stats() -> LatencyStats:
    """Get or create the global latency stats instance."""
    global _latency_stats
    if _latency_stats is None:
        _latency_stats = LatencyStats()
    return _latency_stats


def _log_request(method: str, path: str, status_code: int, latency_ms: float, failed: bool) -> None:
    if path in QUIET_PATHS:
        logger.debug("%s %s - %d - %.2fms", method, path, status_code, latency_ms)
    elif failed or status_code >= 500:
        logger.error("%s %s - %d - %.2fms", method, path, status_code, latency_ms)
    elif latency_ms > VERY_SLOW_REQUEST_THRESHOLD_MS:
        logger.error("VERY SLOW REQUEST: %s %s - %d - %.2fms", method, path, status_code, latency_ms)
    elif latency_ms > SLOW_REQUEST_THRESHOLD_MS:
        logger.warning("SLOW REQUEST: %s %s - %d - %.2fms", method, path, status_code, latency_ms)
    elif status_code >= 400:
        logger.warning("%s %s - %d - %.2fms", method, path, status_code, latency_ms)
    else:
        logger.info("%s %s - %d - %.2fms", method, path, status_code, latency_ms)


async def latency_logging_middleware(request: Request, call_next: Callable) -> Response:
    """Log every request with its latency and record it in the stats.

    Args:
        request: The incoming request.
        call_next: The next middleware/handler in the chain.

    Returns:
        Response: The response from the handler.
    """
    start_time = time.perf_counter()
    path = request.url.path
    response = None
    failed = False

    try:
        response = await call_next(request)
        return response
    except Exception:
        failed = True
        raise
    finally:
        latency_ms = (time.perf_counter() - start_time) * 1000
        if path not in QUIET_PATHS:
            get_latency_stats().record(path, latency_ms)
        status_code = response.status_code if response is not None else 500
        _log_request(request.method, path, status_code, latency_ms, failed)
