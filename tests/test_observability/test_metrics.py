"""Tests for the Prometheus metrics collector."""

from prometheus_client import REGISTRY

from src.observability.metrics import get_metrics


def _sample(name: str, labels: dict[str, str] | None = None) -> float:
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


class TestMetricsCollector:
    def test_singleton(self):
        assert get_metrics() is get_metrics()

    def test_record_generated(self):
        metrics = get_metrics()
        before = _sample("driver_alerts_generated_total", {"severity": "CRITICAL"})

        metrics.record_generated("CRITICAL")
        metrics.record_generated("CRITICAL", count=2)

        after = _sample("driver_alerts_generated_total", {"severity": "CRITICAL"})
        assert after - before == 3

    def test_record_transition(self):
        metrics = get_metrics()
        labels = {"action": "resolve", "origin": "local", "outcome": "success"}
        before = _sample("driver_alerts_transitions_total", labels)

        metrics.record_transition("resolve", "local", "success")

        assert _sample("driver_alerts_transitions_total", labels) - before == 1

    def test_record_monitor_pass_with_latency(self):
        metrics = get_metrics()
        count_before = _sample("driver_alerts_monitor_pass_seconds_count")
        skipped_before = _sample("driver_alerts_monitor_passes_total", {"outcome": "skipped"})

        metrics.record_monitor_pass("ok", 0.2)
        metrics.record_monitor_pass("skipped")

        assert _sample("driver_alerts_monitor_pass_seconds_count") - count_before == 1
        assert _sample("driver_alerts_monitor_passes_total", {"outcome": "skipped"}) - skipped_before == 1

    def test_backend_available_gauge(self):
        metrics = get_metrics()

        metrics.set_backend_available(False)
        assert _sample("driver_alerts_backend_available") == 0
        metrics.set_backend_available(True)
        assert _sample("driver_alerts_backend_available") == 1
