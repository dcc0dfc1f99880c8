"""Shared fixtures for API tests."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from src.admin.service import AdminConfigService
from src.alerts.errors import NotFoundError
from src.alerts.monitor import AlertMonitor
from src.alerts.repository import InMemoryAlertRepository
from src.alerts.schemas import Alert, BackendAlertStatistics
from src.alerts.service import AlertService
from src.api.app import create_app
from src.api.auth import verify_api_key
from src.api.dependencies import (
    get_admin_service,
    get_alert_monitor,
    get_alert_service,
    get_backend_client,
    get_local_repository,
)
from src.drivers.provider import StaticScoreProvider


def _make_remote_alert(
    alert_id: int = 101,
    severity: str = "HIGH",
    status: str = "ACTIVE",
    **kwargs,
) -> Alert:
    """Helper to create a backend alert with sensible defaults."""
    return Alert(
        id=alert_id,
        driver_id=kwargs.pop("driver_id", 12),
        driver_name=kwargs.pop("driver_name", "Mei"),
        severity=severity,
        status=status,
        origin="remote",
        message=kwargs.pop(
            "message",
            "WARNING: Mei has low sentiment score (-0.42). Management review recommended.",
        ),
        current_ema_score=kwargs.pop("current_ema_score", -0.42),
        threshold_value=kwargs.pop("threshold_value", -0.3),
        created_at=kwargs.pop(
            "created_at", datetime(2026, 3, 1, 8, 0, 0, tzinfo=timezone.utc)
        ),
        **kwargs,
    )


@pytest.fixture
def remote_alert() -> Alert:
    return _make_remote_alert()


@pytest.fixture
def mock_backend():
    """Mock SentimentBackendClient with no remote alerts."""
    backend = AsyncMock()
    backend.get_active_alerts = AsyncMock(return_value=[])
    backend.get_my_alerts = AsyncMock(return_value=[])
    backend.get_alert = AsyncMock(side_effect=NotFoundError("?", store="backend"))
    backend.get_admin_config = AsyncMock(return_value={})
    backend.save_admin_config = AsyncMock(side_effect=lambda payload: payload)
    backend.get_driver_stats = AsyncMock(return_value=[])
    backend.get_alert_statistics = AsyncMock(
        return_value=BackendAlertStatistics(total_active=4, critical=1, high=3, unassigned=2)
    )
    return backend


@pytest.fixture
def local_repo():
    return InMemoryAlertRepository()


@pytest.fixture
def alert_service(alert_config, local_repo, mock_backend, mock_metrics):
    return AlertService(
        config=alert_config,
        local_repo=local_repo,
        backend=mock_backend,
        metrics=mock_metrics,
    )


@pytest.fixture
def admin_service(alert_service, mock_backend):
    return AdminConfigService(
        backend=mock_backend,
        initial=alert_service.config,
        on_change=alert_service.update_config,
    )


@pytest.fixture
def alert_monitor(alert_service, mock_metrics):
    return AlertMonitor(
        alert_service,
        StaticScoreProvider([
            {"driverId": 1, "driverName": "Ana", "emaScore": -0.75},
            {"driverId": 2, "driverName": "Ben", "emaScore": 0.3},
        ]),
        metrics=mock_metrics,
    )


@pytest.fixture
def app(alert_service, admin_service, alert_monitor, mock_backend, local_repo):
    """App with every dependency overridden."""
    app = create_app()

    app.dependency_overrides[verify_api_key] = lambda: "test-key"
    app.dependency_overrides[get_alert_service] = lambda: alert_service
    app.dependency_overrides[get_admin_service] = lambda: admin_service
    app.dependency_overrides[get_alert_monitor] = lambda: alert_monitor
    app.dependency_overrides[get_backend_client] = lambda: mock_backend
    app.dependency_overrides[get_local_repository] = lambda: local_repo

    yield app

    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """FastAPI TestClient with dependency overrides."""
    with TestClient(app) as c:
        yield c
