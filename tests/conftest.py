"""Pytest fixtures for driver alert engine tests."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from src.alerts.config import AlertConfig
from src.config.settings import Settings
from src.observability.metrics import MetricsCollector


@pytest.fixture
def test_settings() -> Settings:
    """Settings configured for testing."""
    return Settings(
        environment="development",
        log_level="DEBUG",
        backend_base_url="http://backend.test/api",
        backend_api_token="test-token",
        redis_url="redis://localhost:6379/1",  # Use DB 1 for tests
        max_http_retries=2,
    )


@pytest.fixture
def alert_config() -> AlertConfig:
    """Alert config with the default thresholds (-0.6 / -0.3)."""
    return AlertConfig(critical_threshold=-0.6, warning_threshold=-0.3)


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 2, 9, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def mock_metrics() -> MagicMock:
    """Stand-in for the Prometheus collector (avoids global registry state)."""
    return MagicMock(spec=MetricsCollector)
