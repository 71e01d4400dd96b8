"""
Shared metrics configuration for the catalog service.
"""

from typing import Dict, Any, Optional, Tuple
import time
from contextlib import contextmanager

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    GCCollector,
    Histogram,
    Info,
    PlatformCollector,
    ProcessCollector,
    generate_latest,
)

HTTP_DURATION_BUCKETS = (0.01, 0.05, 0.1, 0.5, 1, 2, 5)
CACHE_DURATION_BUCKETS = (0.001, 0.005, 0.01, 0.05, 0.1)


class MetricsCollector:
    """Process-wide metrics registry for a service.

    Owns its own ``CollectorRegistry`` so that several service instances
    (for example in tests) never collide on metric registration. Default
    process, platform and GC collectors are registered alongside the
    service metrics and exported together by :meth:`export`.
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry or CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_default_collectors()
        self._setup_metrics()

    def _setup_default_collectors(self):
        ProcessCollector(registry=self.registry)
        PlatformCollector(registry=self.registry)
        GCCollector(registry=self.registry)

    def _setup_metrics(self):
        """Set up common metrics for the service."""

        # Service info
        self._metrics["service_info"] = Info(
            "service",
            "Service information",
            registry=self.registry
        )
        self._metrics["service_info"].info({
            "service": self.service_name,
            "version": "1.0.0"
        })

        # HTTP metrics
        self._metrics["http_requests_total"] = Counter(
            "http_requests_total",
            "Total number of HTTP requests",
            ["method", "route", "status_code"],
            registry=self.registry
        )

        self._metrics["http_request_duration_seconds"] = Histogram(
            "http_request_duration_seconds",
            "Duration of HTTP requests in seconds",
            ["method", "route", "status_code"],
            buckets=HTTP_DURATION_BUCKETS,
            registry=self.registry
        )

        # Cache metrics
        self._metrics["cache_hits_total"] = Counter(
            "cache_hits_total",
            "Total number of cache hits",
            ["key_type"],
            registry=self.registry
        )

        self._metrics["cache_misses_total"] = Counter(
            "cache_misses_total",
            "Total number of cache misses",
            ["key_type"],
            registry=self.registry
        )

        self._metrics["cache_errors_total"] = Counter(
            "cache_errors_total",
            "Total number of failed cache operations",
            ["operation"],
            registry=self.registry
        )

        self._metrics["cache_operation_duration_seconds"] = Histogram(
            "cache_operation_duration_seconds",
            "Duration of cache operations in seconds",
            ["operation"],
            buckets=CACHE_DURATION_BUCKETS,
            registry=self.registry
        )

    def record_http_request(self, method: str, route: str, status_code: int, duration: float):
        """Record HTTP request metrics."""
        labels = {"method": method, "route": route, "status_code": str(status_code)}
        self._metrics["http_requests_total"].labels(**labels).inc()
        self._metrics["http_request_duration_seconds"].labels(**labels).observe(duration)

    def record_cache_hit(self, key_type: str):
        self._metrics["cache_hits_total"].labels(key_type=key_type).inc()

    def record_cache_miss(self, key_type: str):
        self._metrics["cache_misses_total"].labels(key_type=key_type).inc()

    def record_cache_error(self, operation: str):
        self._metrics["cache_errors_total"].labels(operation=operation).inc()

    @contextmanager
    def time_operation(self, operation_name: str, **labels):
        """Context manager to time an operation."""
        start_time = time.perf_counter()
        try:
            yield
        finally:
            duration = time.perf_counter() - start_time
            if operation_name in self._metrics:
                self._metrics[operation_name].labels(**labels).observe(duration)

    def time_cache_operation(self, operation: str):
        """Time a cache operation (``get``, ``set``, ``del`` or ``ping``)."""
        return self.time_operation("cache_operation_duration_seconds", operation=operation)

    def sample(self, name: str, **labels) -> float:
        """Current value of a sample in this registry (0.0 if absent)."""
        value = self.registry.get_sample_value(name, labels)
        return value or 0.0

    def export(self) -> Tuple[bytes, str]:
        """Serialize the registry in the Prometheus text exposition format."""
        return generate_latest(self.registry), CONTENT_TYPE_LATEST


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
