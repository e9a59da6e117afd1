"""
In-memory metrics for /metrics endpoint (rough p50/p95, cache and quota).
Why: see cache effectiveness and remaining OpenAQ quota without Prometheus.
"""

import threading
from typing import Any, Dict, List, Optional


def _percentile(values: List[int], p: float) -> int:
    if not values:
        return 0
    idx = max(0, min(len(values) - 1, int(len(values) * p)))
    return sorted(values)[idx]


class _Metrics:
    def __init__(self, max_samples: int = 1000) -> None:
        self.total_requests = 0
        self.total_errors = 0
        self.cache_hits = 0
        self.cache_misses = 0
        self.upstream_errors = 0
        self.rate_limit: Dict[str, Optional[str]] = {
            "used": None,
            "remaining": None,
            "reset": None,
        }
        self._latencies: List[int] = []
        self._max_samples = max_samples
        self._lock = threading.Lock()

    def increment_requests(self) -> None:
        with self._lock:
            self.total_requests += 1

    def increment_errors(self) -> None:
        with self._lock:
            self.total_errors += 1

    def increment_cache_hits(self) -> None:
        with self._lock:
            self.cache_hits += 1

    def increment_cache_misses(self) -> None:
        with self._lock:
            self.cache_misses += 1

    def increment_upstream_errors(self) -> None:
        with self._lock:
            self.upstream_errors += 1

    def record_rate_limit(self, headers: Any) -> None:
        """Keep the last quota headers seen; absent headers don't erase old values."""
        with self._lock:
            for name in self.rate_limit:
                value = getattr(headers, name, None)
                if value is not None:
                    self.rate_limit[name] = value

    def record_latency(self, ms: int) -> None:
        with self._lock:
            self._latencies.append(ms)
            if len(self._latencies) > self._max_samples:
                del self._latencies[: -self._max_samples]

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            lat = list(self._latencies)
            return {
                "total_requests": self.total_requests,
                "total_errors": self.total_errors,
                "p50_ms": _percentile(lat, 0.50),
                "p95_ms": _percentile(lat, 0.95),
                "cache_hits": self.cache_hits,
                "cache_misses": self.cache_misses,
                "upstream_errors": self.upstream_errors,
                "rate_limit": dict(self.rate_limit),
            }


metrics = _Metrics()
