"""Tests for the health endpoint."""

from unittest.mock import AsyncMock

from src.alerts.errors import UpstreamUnavailableError
from src.api.dependencies import get_backend_client, get_local_repository


class TestHealth:
    def test_healthy(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["components"]["backend"]["status"] == "healthy"
        assert data["components"]["local_store"]["details"]["alerts"] == 0
        assert data["monitor"]["running"] is False

    def test_backend_down_is_degraded(self, client, mock_backend):
        mock_backend.get_admin_config.side_effect = UpstreamUnavailableError("refused")

        data = client.get("/health").json()
        assert data["status"] == "degraded"
        assert data["components"]["backend"]["status"] == "unhealthy"
        assert "refused" in data["components"]["backend"]["details"]["error"]

    def test_no_backend_configured(self, app, client):
        app.dependency_overrides[get_backend_client] = lambda: None

        data = client.get("/health").json()
        assert data["status"] == "healthy"
        assert data["components"]["backend"]["status"] == "disabled"

    def test_local_store_down_is_unhealthy(self, app, client):
        broken = AsyncMock()
        broken.list_all.side_effect = ConnectionError("redis down")
        app.dependency_overrides[get_local_repository] = lambda: broken

        data = client.get("/health").json()
        assert data["status"] == "unhealthy"

    def test_root(self, client):
        resp = client.get("/")
        assert resp.json()["service"] == "Driver Sentiment Alert API"
