"""Tests for driver score providers."""

from unittest.mock import AsyncMock

import pytest

from src.alerts.errors import UpstreamUnavailableError
from src.alerts.schemas import DriverSnapshot
from src.drivers.provider import BackendScoreProvider, StaticScoreProvider, parse_snapshots


class TestParseSnapshots:
    def test_camel_case_records(self):
        snapshots = parse_snapshots([
            {"driverId": 7, "driverName": "Ravi", "emaScore": -0.45},
        ])
        assert snapshots == [DriverSnapshot(driver_id=7, driver_name="Ravi", ema_score=-0.45)]

    def test_missing_score_defaults_to_neutral(self):
        snapshots = parse_snapshots([{"driverId": 7}])
        assert snapshots[0].ema_score == 0.0
        assert snapshots[0].driver_name == "Driver #7"

    def test_malformed_records_skipped(self):
        snapshots = parse_snapshots([
            {"driverName": "no id", "emaScore": -0.9},
            {"driverId": 3, "emaScore": "not a number"},
            {"driverId": 4, "emaScore": "-0.2"},
        ])
        assert [s.driver_id for s in snapshots] == [4]
        assert snapshots[0].ema_score == -0.2


class TestBackendScoreProvider:
    @pytest.mark.asyncio
    async def test_fetch(self):
        backend = AsyncMock()
        backend.get_driver_stats.return_value = [
            {"driverId": 1, "emaScore": -0.7},
            {"driverId": 2, "emaScore": 0.4},
        ]

        snapshots = await BackendScoreProvider(backend).fetch()
        assert [s.driver_id for s in snapshots] == [1, 2]

    @pytest.mark.asyncio
    async def test_fetch_propagates_outage(self):
        backend = AsyncMock()
        backend.get_driver_stats.side_effect = UpstreamUnavailableError("down")

        with pytest.raises(UpstreamUnavailableError):
            await BackendScoreProvider(backend).fetch()


class TestStaticScoreProvider:
    @pytest.mark.asyncio
    async def test_mixed_inputs_keep_order(self):
        provider = StaticScoreProvider([
            {"driverId": "a", "emaScore": -0.1},
            DriverSnapshot("b", ema_score=-0.8),
            {"emaScore": -0.9},
        ])

        snapshots = await provider.fetch()
        assert [s.driver_id for s in snapshots] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_fetch_returns_copy(self):
        provider = StaticScoreProvider([DriverSnapshot("a", ema_score=0.0)])
        first = await provider.fetch()
        first.clear()
        assert len(await provider.fetch()) == 1
