"""
Health endpoint for the alert API.

The local alert store is required; the sentiment backend is optional in the
sense that listings fall back to local alerts while it is down.
"""

import time
from typing import Any, Awaitable, Callable

import structlog
from fastapi import APIRouter, Depends

from src.alerts.monitor import AlertMonitor
from src.alerts.repository import LocalAlertRepository
from src.api.dependencies import get_alert_monitor, get_backend_client, get_local_repository
from src.api.models import ComponentHealth, HealthResponse

router = APIRouter()
logger = structlog.get_logger(__name__)


async def _probe(
    name: str,
    check: Callable[[], Awaitable[dict[str, Any] | None]],
) -> ComponentHealth:
    """Run ``check`` and report it as healthy unless it raises."""
    started = time.perf_counter()
    try:
        details = await check()
        status, extra = "healthy", details or {}
    except Exception as e:
        logger.warning("Health probe failed", component=name, error=str(e))
        status, extra = "unhealthy", {"error": str(e)}
    return ComponentHealth(
        status=status,
        latency_ms=round((time.perf_counter() - started) * 1000, 2),
        details=extra,
    )


def _overall_status(components: dict[str, ComponentHealth]) -> str:
    if components["local_store"].status == "unhealthy":
        return "unhealthy"
    if components["backend"].status == "unhealthy":
        return "degraded"
    return "healthy"


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description=(
        "unhealthy when the local alert store fails, degraded when only the "
        "sentiment backend is unreachable."
    ),
)
async def health_check(
    backend=Depends(get_backend_client),
    repo: LocalAlertRepository = Depends(get_local_repository),
    monitor: AlertMonitor = Depends(get_alert_monitor),
) -> HealthResponse:
    async def check_backend() -> None:
        await backend.get_admin_config()

    async def check_local_store() -> dict[str, Any]:
        alerts = await repo.list_all()
        return {"alerts": len(alerts), "store": type(repo).__name__}

    components = {
        "backend": (
            await _probe("backend", check_backend)
            if backend is not None
            else ComponentHealth(status="disabled")
        ),
        "local_store": await _probe("local_store", check_local_store),
    }

    return HealthResponse(
        status=_overall_status(components),
        components=components,
        monitor=await monitor.health_check(),
        version="0.1.0",
    )
