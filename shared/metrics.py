"""
Shared metrics configuration for the cache client.
"""

from typing import Dict, Any, Optional
import threading

from prometheus_client import Counter, Histogram, CollectorRegistry, REGISTRY


class MetricsCollector:
    """Prometheus metrics recorded around cache client calls."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry if registry is not None else REGISTRY
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up cache client metrics."""
        self._metrics["cache_client_requests_total"] = Counter(
            "cache_client_requests_total",
            "Total cache client calls",
            ["operation", "outcome"],
            registry=self.registry
        )

        self._metrics["cache_client_request_duration_seconds"] = Histogram(
            "cache_client_request_duration_seconds",
            "Cache client call duration in seconds",
            ["operation"],
            registry=self.registry
        )

        self._metrics["cache_client_errors_total"] = Counter(
            "cache_client_errors_total",
            "Total cache client errors",
            ["operation", "error_code"],
            registry=self.registry
        )

    def record_request(self, operation: str, outcome: str, duration: float):
        """Record one finished client call."""
        self._metrics["cache_client_requests_total"].labels(
            operation=operation,
            outcome=outcome
        ).inc()

        self._metrics["cache_client_request_duration_seconds"].labels(
            operation=operation
        ).observe(duration)

    def record_error(self, operation: str, error_code: str):
        """Record error metrics."""
        self._metrics["cache_client_errors_total"].labels(
            operation=operation,
            error_code=error_code
        ).inc()


_default_collector: Optional[MetricsCollector] = None
_default_lock = threading.Lock()


def get_metrics_collector() -> MetricsCollector:
    """Get the process-wide collector bound to the default Prometheus registry.

    Metric names can only be registered there once, so clients share it.
    """
    global _default_collector
    with _default_lock:
        if _default_collector is None:
            _default_collector = MetricsCollector()
        return _default_collector
