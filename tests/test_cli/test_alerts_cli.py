"""Tests for the driver-alerts CLI commands."""

import json
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from src.alerts.errors import UpstreamUnavailableError
from src.alerts.repository import InMemoryAlertRepository
from src.alerts.service import AlertService
from src.cli import main


# ── Fixtures ──────────────────────────────────────────────


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def quiet_logging():
    with patch("src.cli.setup_logging"):
        yield


@pytest.fixture
def backend():
    mock = AsyncMock()
    mock.get_active_alerts.return_value = []
    mock.get_my_alerts.return_value = []
    mock.get_driver_stats.return_value = [
        {"driverId": 3, "driverName": "Kofi", "emaScore": -0.65},
        {"driverId": 4, "driverName": "Lena", "emaScore": -0.1},
    ]
    return mock


@pytest.fixture
def service(alert_config, backend, mock_metrics):
    return AlertService(
        config=alert_config,
        local_repo=InMemoryAlertRepository(),
        backend=backend,
        metrics=mock_metrics,
    )


@pytest.fixture
def patched_service(service, backend, mock_metrics):
    """Route open_alert_service() to the in-memory service."""

    @asynccontextmanager
    async def fake_open():
        yield service, backend

    with patch("src.cli.open_alert_service", fake_open), \
            patch("src.alerts.monitor.get_metrics", return_value=mock_metrics):
        yield service


@pytest.fixture
def snapshot_file(tmp_path):
    path = tmp_path / "drivers.json"
    path.write_text(json.dumps([
        {"driverId": "d1", "driverName": "Dana", "emaScore": -0.7},
        {"driverId": "d2", "driverName": "Eli", "emaScore": -0.35},
        {"driverId": "d3", "driverName": "Fay", "emaScore": 0.2},
    ]))
    return path


# ── check ────────────────────────────────────────────────


class TestCheck:
    def test_check_from_backend(self, runner, patched_service):
        result = runner.invoke(main, ["check"])

        assert result.exit_code == 0, result.output
        assert "Created 1 alerts" in result.output
        assert "Kofi" in result.output
        assert "CRITICAL" in result.output

    def test_check_from_file(self, runner, patched_service, snapshot_file):
        result = runner.invoke(main, ["check", "--file", str(snapshot_file)])

        assert result.exit_code == 0, result.output
        assert "Created 2 alerts" in result.output
        assert "Dana" in result.output
        assert "Eli" in result.output

    def test_check_json_output(self, runner, patched_service, snapshot_file):
        result = runner.invoke(main, ["check", "--file", str(snapshot_file), "--json"])

        assert result.exit_code == 0, result.output
        assert '"severity": "CRITICAL"' in result.output
        assert '"severity": "HIGH"' in result.output

    def test_check_file_with_wrapper_object(self, runner, patched_service, tmp_path):
        path = tmp_path / "wrapped.json"
        path.write_text(json.dumps({"content": [{"driverId": 9, "emaScore": -0.9}]}))

        result = runner.invoke(main, ["check", "--file", str(path)])

        assert result.exit_code == 0, result.output
        assert "Created 1 alerts" in result.output

    def test_check_backend_down_creates_nothing(self, runner, patched_service, backend):
        backend.get_driver_stats.side_effect = UpstreamUnavailableError("down")

        result = runner.invoke(main, ["check"])

        assert result.exit_code == 0, result.output
        assert "Created 0 alerts" in result.output

    def test_check_without_backend_requires_file(self, runner, service, mock_metrics):
        @asynccontextmanager
        async def no_backend():
            yield service, None

        with patch("src.cli.open_alert_service", no_backend):
            result = runner.invoke(main, ["check"])

        assert result.exit_code != 0
        assert "--file" in result.output


# ── list ─────────────────────────────────────────────────


class TestList:
    def test_list_shows_stats(self, runner, patched_service, snapshot_file):
        runner.invoke(main, ["check", "--file", str(snapshot_file)])

        result = runner.invoke(main, ["list"])

        assert result.exit_code == 0, result.output
        assert "Alerts: 2 total, 2 active (1 critical, 1 high" in result.output
        assert result.output.index("Dana") < result.output.index("Eli")

    def test_list_severity_filter(self, runner, patched_service, snapshot_file):
        runner.invoke(main, ["check", "--file", str(snapshot_file)])

        result = runner.invoke(main, ["list", "--severity", "HIGH"])

        assert "Eli" in result.output
        assert "Dana" not in result.output

    def test_list_invalid_filter(self, runner, patched_service):
        result = runner.invoke(main, ["list", "--status", "OPEN"])
        assert result.exit_code != 0

    def test_list_backend_down_warns(self, runner, patched_service, backend):
        backend.get_active_alerts.side_effect = UpstreamUnavailableError("down")

        result = runner.invoke(main, ["list"])

        assert result.exit_code == 0, result.output
        assert "Backend unavailable" in result.output

    def test_list_mine(self, runner, patched_service, backend):
        result = runner.invoke(main, ["list", "--mine"])

        assert result.exit_code == 0, result.output
        backend.get_my_alerts.assert_awaited()


# ── clear-generated ──────────────────────────────────────


class TestClearGenerated:
    def test_clear_with_yes(self, runner, patched_service, snapshot_file):
        runner.invoke(main, ["check", "--file", str(snapshot_file)])

        result = runner.invoke(main, ["clear-generated", "--yes"])

        assert result.exit_code == 0, result.output
        assert "Removed 2 generated alerts" in result.output

    def test_clear_aborted(self, runner, patched_service):
        result = runner.invoke(main, ["clear-generated"], input="n\n")

        assert result.exit_code == 1
        assert "Removed" not in result.output
