"""Tests for AdminConfigService load/save behavior."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.admin.service import AdminConfigService
from src.alerts.config import AlertConfig
from src.alerts.errors import ConfigInvalidError, UpstreamUnavailableError


@pytest.fixture
def backend():
    mock = AsyncMock()
    mock.get_admin_config.return_value = {}
    mock.save_admin_config.side_effect = lambda payload: payload
    return mock


class TestGet:
    @pytest.mark.asyncio
    async def test_without_backend_returns_current(self):
        initial = AlertConfig(critical_threshold=-0.8)
        service = AdminConfigService(initial=initial)
        assert await service.get() is initial

    @pytest.mark.asyncio
    async def test_loads_backend_config_and_notifies(self, backend):
        backend.get_admin_config.return_value = {
            "criticalThreshold": -0.7,
            "warningThreshold": -0.4,
        }
        listener = MagicMock()
        service = AdminConfigService(backend=backend, on_change=listener)

        config = await service.get()

        assert config.critical_threshold == -0.7
        assert service.current is config
        listener.assert_called_once_with(config)

    @pytest.mark.asyncio
    async def test_unchanged_config_does_not_notify(self, backend):
        listener = MagicMock()
        service = AdminConfigService(backend=backend, on_change=listener)

        await service.get()
        listener.assert_not_called()

    @pytest.mark.asyncio
    async def test_outage_keeps_cached_config(self, backend):
        backend.get_admin_config.side_effect = UpstreamUnavailableError("down")
        initial = AlertConfig(warning_threshold=-0.2)
        service = AdminConfigService(backend=backend, initial=initial)

        assert await service.get() is initial

    @pytest.mark.asyncio
    async def test_invalid_stored_config_ignored(self, backend):
        backend.get_admin_config.return_value = {
            "criticalThreshold": -0.1,
            "warningThreshold": -0.5,
        }
        service = AdminConfigService(backend=backend)

        config = await service.get()
        assert config.critical_threshold == -0.6

    @pytest.mark.asyncio
    async def test_unreadable_stored_config_ignored(self, backend):
        backend.get_admin_config.return_value = {"cooldownPeriod": "often"}
        service = AdminConfigService(backend=backend)

        config = await service.get()
        assert config.cooldown_period == 120


class TestSave:
    @pytest.mark.asyncio
    async def test_save_partial_payload(self, backend):
        listener = MagicMock()
        service = AdminConfigService(backend=backend, on_change=listener)

        config = await service.save({"criticalThreshold": -0.7})

        assert config.critical_threshold == -0.7
        assert config.warning_threshold == -0.3
        sent = backend.save_admin_config.call_args.args[0]
        assert sent["criticalThreshold"] == -0.7
        assert sent["warningThreshold"] == -0.3
        listener.assert_called_once_with(config)

    @pytest.mark.asyncio
    async def test_invalid_thresholds_rejected_before_write(self, backend):
        service = AdminConfigService(backend=backend)

        with pytest.raises(ConfigInvalidError) as exc_info:
            await service.save({"criticalThreshold": -0.2, "warningThreshold": -0.3})

        assert "Critical threshold must be less than warning threshold" in exc_info.value.problems
        backend.save_admin_config.assert_not_awaited()
        assert service.current.critical_threshold == -0.6

    @pytest.mark.asyncio
    async def test_failed_write_keeps_current(self, backend):
        backend.save_admin_config.side_effect = UpstreamUnavailableError("down")
        listener = MagicMock()
        service = AdminConfigService(backend=backend, on_change=listener)

        with pytest.raises(UpstreamUnavailableError):
            await service.save({"cooldownPeriod": 30})

        assert service.current.cooldown_period == 120
        listener.assert_not_called()

    @pytest.mark.asyncio
    async def test_save_without_backend(self):
        service = AdminConfigService()
        config = await service.save(AlertConfig(critical_threshold=-0.9, warning_threshold=-0.5))
        assert service.current is config

    @pytest.mark.asyncio
    async def test_reset_restores_defaults(self, backend):
        service = AdminConfigService(
            backend=backend,
            initial=AlertConfig(critical_threshold=-0.9),
        )
        config = await service.reset()
        assert config.critical_threshold == -0.6

    @pytest.mark.asyncio
    async def test_add_listener(self, backend):
        service = AdminConfigService(backend=backend)
        listener = MagicMock()
        service.add_listener(listener)

        await service.save({"smsNotificationsEnabled": True})
        assert listener.call_args.args[0].sms_notifications_enabled is True
