"""
Dependency injection for FastAPI endpoints.
"""

import redis.asyncio as redis

from src.admin.service import AdminConfigService
from src.alerts.config import AlertConfig
from src.alerts.monitor import AlertMonitor
from src.alerts.repository import (
    InMemoryAlertRepository,
    LocalAlertRepository,
    RedisAlertRepository,
)
from src.alerts.service import AlertService
from src.backend.client import SentimentBackendClient
from src.config.settings import get_settings
from src.drivers.provider import BackendScoreProvider, StaticScoreProvider

# Global service instances (initialized on first request)
_redis_client: redis.Redis | None = None
_backend_client: SentimentBackendClient | None = None
_local_repo: LocalAlertRepository | None = None
_alert_service: AlertService | None = None
_admin_service: AdminConfigService | None = None
_alert_monitor: AlertMonitor | None = None


async def get_redis_client() -> redis.Redis:
    """Get the shared Redis client."""
    global _redis_client

    if _redis_client is None:
        settings = get_settings()
        _redis_client = redis.from_url(
            str(settings.redis_url),
            encoding="utf-8",
            decode_responses=True,
        )

    return _redis_client


async def get_backend_client() -> SentimentBackendClient | None:
    """Get the sentiment backend client, or None when no backend is configured."""
    global _backend_client

    settings = get_settings()
    if not settings.backend_base_url:
        return None

    if _backend_client is None:
        _backend_client = SentimentBackendClient.from_settings(settings)

    return _backend_client


async def get_local_repository() -> LocalAlertRepository:
    """Get the local bucket for generated alerts (memory or Redis)."""
    global _local_repo

    if _local_repo is None:
        settings = get_settings()
        if settings.uses_redis_store:
            _local_repo = RedisAlertRepository(
                await get_redis_client(),
                key=settings.redis_alerts_key,
            )
        else:
            _local_repo = InMemoryAlertRepository()

    return _local_repo


async def get_alert_service() -> AlertService:
    """
    Get alert service instance.

    Creates a singleton wired to the local bucket and the backend client.
    """
    global _alert_service

    if _alert_service is None:
        _alert_service = AlertService(
            config=AlertConfig(),
            local_repo=await get_local_repository(),
            backend=await get_backend_client(),
        )

    return _alert_service


async def get_admin_service() -> AdminConfigService:
    """
    Get admin config service instance.

    Accepted configurations are pushed into the alert service.
    """
    global _admin_service

    if _admin_service is None:
        alert_service = await get_alert_service()
        _admin_service = AdminConfigService(
            backend=await get_backend_client(),
            initial=alert_service.config,
            on_change=alert_service.update_config,
        )

    return _admin_service


async def get_alert_monitor() -> AlertMonitor:
    """Get the alert monitor (not started; the app lifespan starts it)."""
    global _alert_monitor

    if _alert_monitor is None:
        settings = get_settings()
        backend = await get_backend_client()
        provider = BackendScoreProvider(backend) if backend else StaticScoreProvider([])
        _alert_monitor = AlertMonitor(
            service=await get_alert_service(),
            provider=provider,
            interval_seconds=settings.monitor_interval_seconds,
        )

    return _alert_monitor


async def cleanup_dependencies() -> None:
    """Stop the monitor and close clients on shutdown."""
    global _redis_client, _backend_client, _local_repo
    global _alert_service, _admin_service, _alert_monitor

    if _alert_monitor is not None:
        await _alert_monitor.stop()
        _alert_monitor = None

    if _backend_client is not None:
        await _backend_client.close()
        _backend_client = None

    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None

    _local_repo = None
    _alert_service = None
    _admin_service = None
