"""
Prometheus metrics for the alert engine.

Defines and exposes metrics for:
- Alerts generated per severity and failed writes
- Lifecycle transitions per action, origin, and outcome
- Monitor passes and their duration
- Backend availability

Metrics are exposed via HTTP endpoint for Prometheus scraping.
"""

import logging

from prometheus_client import (
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

from src.config.settings import get_settings

logger = logging.getLogger(__name__)

# Buckets for latency histograms (in seconds)
LATENCY_BUCKETS = (0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)


class MetricsCollector:
    """
    Prometheus metrics collector for the alert engine.

    Usage:
        metrics = get_metrics()
        metrics.start_server()

        metrics.record_generated("CRITICAL")
        metrics.record_transition("resolve", "local", "success")
    """

    def __init__(self):
        """Initialize Prometheus metrics."""

        # Generation counters
        self.alerts_generated = Counter(
            "driver_alerts_generated_total",
            "Total alerts created from driver scores",
            ["severity"],
        )

        self.alerts_persist_failed = Counter(
            "driver_alerts_persist_failed_total",
            "Total generated alerts that could not be stored",
        )

        # Lifecycle
        self.transitions = Counter(
            "driver_alerts_transitions_total",
            "Total lifecycle actions attempted",
            ["action", "origin", "outcome"],  # outcome: success, invalid, validation, error
        )

        # Monitor
        self.monitor_passes = Counter(
            "driver_alerts_monitor_passes_total",
            "Total monitoring passes",
            ["outcome"],  # outcome: ok, skipped, degraded, discarded, error
        )

        self.monitor_pass_latency = Histogram(
            "driver_alerts_monitor_pass_seconds",
            "Time to run one monitoring pass",
            buckets=LATENCY_BUCKETS,
        )

        # Backend health
        self.backend_available = Gauge(
            "driver_alerts_backend_available",
            "Sentiment backend availability (1=reachable, 0=unreachable)",
        )

        logger.info("Prometheus metrics initialized")

    def start_server(self, port: int | None = None) -> None:
        """
        Start Prometheus metrics HTTP server.

        Args:
            port: Port to expose metrics on (default from settings)
        """
        settings = get_settings()
        port = port or settings.metrics_port

        start_http_server(port, registry=REGISTRY)
        logger.info(f"Prometheus metrics server started on port {port}")

    # Convenience methods

    def record_generated(self, severity: str, count: int = 1) -> None:
        self.alerts_generated.labels(severity=severity).inc(count)

    def record_persist_failed(self, count: int = 1) -> None:
        self.alerts_persist_failed.inc(count)

    def record_transition(self, action: str, origin: str, outcome: str) -> None:
        """
        Record a lifecycle action.

        Args:
            action: acknowledge, assign, resolve, dismiss, or escalate
            origin: remote or local (unknown when the alert was not found)
            outcome: success, invalid, validation, not_found, or error
        """
        self.transitions.labels(action=action, origin=origin, outcome=outcome).inc()

    def record_monitor_pass(self, outcome: str, latency: float | None = None) -> None:
        self.monitor_passes.labels(outcome=outcome).inc()
        if latency is not None:
            self.monitor_pass_latency.observe(latency)

    def set_backend_available(self, available: bool) -> None:
        self.backend_available.set(1 if available else 0)


# Global metrics instance
_metrics: MetricsCollector | None = None


def get_metrics() -> MetricsCollector:
    """Get global metrics collector instance."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
