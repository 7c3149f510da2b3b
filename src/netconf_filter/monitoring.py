"""Performance monitoring for the filter service.

Other components (REST endpoints, the registry cache, the filter builder)
record lightweight events here without embedding aggregation logic. All
statistics live in process; no external backend is required.

Collected domains:
        * Registry cache performance (hits, misses, evictions)
        * Endpoint latency & error rates
        * Filter builds (per filter type, produced expressions, errors by tag)

Example (recording a filter build)::

        from netconf_filter.monitoring import get_monitor
        monitor = get_monitor()
        monitor.record_filter_build("subtree", produced=3, build_time=0.0004)
        print(monitor.get_performance_summary()["filters"]["builds"])  # -> 1

Thread safety comes from a shared re-entrant lock; summaries are plain
dictionaries ready for JSON encoding.
"""

from __future__ import annotations

import threading
from collections import defaultdict, deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass
class CacheMetrics:
    """Aggregate registry cache metrics.

    Attributes:
        hits: Lookups served from the cache.
        misses: Lookups that required loading the registry file.
        evictions: Entries dropped because of TTL expiry.
        total_requests: Aggregate hits + misses.
        hit_rate: Hit ratio (0..1).
        cache_size: Current number of entries.
    """

    hits: int = 0
    misses: int = 0
    evictions: int = 0
    total_requests: int = 0
    hit_rate: float = 0.0
    cache_size: int = 0


@dataclass
class EndpointMetrics:
    """Aggregated metrics for a single endpoint.

    Attributes:
        total_requests: Count of invocations.
        total_response_time: Cumulative latency (seconds).
        average_response_time: Mean latency (seconds).
        error_count: Requests answered with HTTP >= 400.
        error_rate: error_count / total_requests (0..1).
        last_accessed: Datetime of the most recent invocation.
    """

    total_requests: int = 0
    total_response_time: float = 0.0
    average_response_time: float = 0.0
    error_count: int = 0
    error_rate: float = 0.0
    last_accessed: Optional[datetime] = None


@dataclass
class FilterMetrics:
    """Counters for filter builds.

    Attributes:
        builds: Successful builds.
        expressions: Total XPath expressions produced.
        total_build_time: Cumulative build time (seconds).
        by_type: Successful builds per filter type (``xpath``/``subtree``).
        errors: Failed builds per NETCONF error-tag.
    """

    builds: int = 0
    expressions: int = 0
    total_build_time: float = 0.0
    by_type: Dict[str, int] = field(default_factory=lambda: defaultdict(int))
    errors: Dict[str, int] = field(default_factory=lambda: defaultdict(int))


class PerformanceMonitor:
    """Central coordinator for recording and querying metrics.

    Intended to be shared as a singleton within a process (see
    :func:`get_monitor`).
    """

    def __init__(self):
        self.start_time = datetime.now()
        self._lock = threading.RLock()
        self.cache_metrics = CacheMetrics()
        self.endpoint_metrics: Dict[str, EndpointMetrics] = defaultdict(EndpointMetrics)
        self.filter_metrics = FilterMetrics()
        self.recent_errors: deque = deque(maxlen=100)

    def record_cache_hit(self) -> None:
        with self._lock:
            self.cache_metrics.hits += 1
            self._update_cache_metrics()

    def record_cache_miss(self) -> None:
        with self._lock:
            self.cache_metrics.misses += 1
            self._update_cache_metrics()

    def record_cache_eviction(self) -> None:
        with self._lock:
            self.cache_metrics.evictions += 1

    def update_cache_size(self, cache_size: int) -> None:
        with self._lock:
            self.cache_metrics.cache_size = cache_size

    def _update_cache_metrics(self) -> None:
        metrics = self.cache_metrics
        metrics.total_requests = metrics.hits + metrics.misses
        metrics.hit_rate = metrics.hits / metrics.total_requests

    def record_endpoint_request(
        self, endpoint: str, response_time: float, status_code: int = 200
    ) -> None:
        """Record an API endpoint invocation.

        Args:
            endpoint: Logical endpoint name or path.
            response_time: Time in seconds for handling the request.
            status_code: HTTP status (>= 400 counts as an error).
        """
        with self._lock:
            metrics = self.endpoint_metrics[endpoint]
            metrics.total_requests += 1
            metrics.total_response_time += response_time
            metrics.average_response_time = (
                metrics.total_response_time / metrics.total_requests
            )
            metrics.last_accessed = datetime.now()
            if status_code >= 400:
                metrics.error_count += 1
                self.recent_errors.append(
                    {
                        "endpoint": endpoint,
                        "status_code": status_code,
                        "timestamp": datetime.now().isoformat(),
                    }
                )
            metrics.error_rate = metrics.error_count / metrics.total_requests

    def record_filter_build(
        self, filter_type: str, produced: int, build_time: float = 0.0
    ) -> None:
        """Record a successful filter build producing ``produced`` expressions."""
        with self._lock:
            self.filter_metrics.builds += 1
            self.filter_metrics.expressions += produced
            self.filter_metrics.total_build_time += build_time
            self.filter_metrics.by_type[filter_type] += 1

    def record_filter_error(self, error_tag: str) -> None:
        with self._lock:
            self.filter_metrics.errors[error_tag] += 1

    def get_performance_summary(self) -> Dict[str, Any]:
        """Return a consolidated, JSON-ready performance snapshot."""
        with self._lock:
            filters = self.filter_metrics
            top_endpoints = sorted(
                self.endpoint_metrics.items(),
                key=lambda x: x[1].total_requests,
                reverse=True,
            )[:10]
            return {
                "timestamp": datetime.now().isoformat(),
                "uptime_seconds": round(
                    (datetime.now() - self.start_time).total_seconds(), 2
                ),
                "cache": {
                    "hit_rate": round(self.cache_metrics.hit_rate * 100, 2),
                    "total_requests": self.cache_metrics.total_requests,
                    "hits": self.cache_metrics.hits,
                    "misses": self.cache_metrics.misses,
                    "evictions": self.cache_metrics.evictions,
                    "cache_size": self.cache_metrics.cache_size,
                },
                "api": {
                    "top_endpoints": [
                        {
                            "endpoint": endpoint,
                            "requests": metrics.total_requests,
                            "avg_response_time_ms": round(
                                metrics.average_response_time * 1000, 2
                            ),
                            "error_rate": round(metrics.error_rate * 100, 2),
                        }
                        for endpoint, metrics in top_endpoints
                    ],
                    "total_recent_errors": len(self.recent_errors),
                },
                "filters": {
                    "builds": filters.builds,
                    "expressions": filters.expressions,
                    "average_build_time_ms": round(
                        filters.total_build_time * 1000 / max(filters.builds, 1), 3
                    ),
                    "by_type": dict(filters.by_type),
                    "errors": dict(filters.errors),
                },
            }

    def reset_metrics(self) -> None:
        """Reset all counters (primarily for tests)."""
        with self._lock:
            self.cache_metrics = CacheMetrics()
            self.endpoint_metrics.clear()
            self.filter_metrics = FilterMetrics()
            self.recent_errors.clear()
            self.start_time = datetime.now()


_monitor: Optional[PerformanceMonitor] = None


def get_monitor() -> PerformanceMonitor:
    """Return (and lazily initialize) the process-wide monitor."""
    global _monitor
    if _monitor is None:
        _monitor = PerformanceMonitor()
    return _monitor
