"""Alert endpoints: listing, on-demand checks, and lifecycle actions."""

import time

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
import structlog

from src.alerts.errors import AlertEngineError
from src.alerts.monitor import AlertMonitor
from src.alerts.schemas import AlertFilters, DriverSnapshot
from src.alerts.service import AlertService
from src.api.auth import verify_api_key
from src.api.dependencies import get_alert_monitor, get_alert_service
from src.api.models import (
    AcknowledgeRequest,
    AlertCheckRequest,
    AlertCheckResponse,
    AlertItem,
    AlertResponse,
    AlertsResponse,
    AlertStatisticsResponse,
    AlertStatsItem,
    BackendStatisticsItem,
    AssignRequest,
    ClearGeneratedResponse,
    DismissRequest,
    ErrorResponse,
    EscalateRequest,
    ResolveRequest,
)

logger = structlog.get_logger(__name__)
router = APIRouter()

_ACTION_RESPONSES = {
    401: {"model": ErrorResponse, "description": "Invalid API key"},
    404: {"model": ErrorResponse, "description": "Alert not found"},
    409: {"model": ErrorResponse, "description": "Action not allowed in the current status"},
    422: {"model": ErrorResponse, "description": "Missing required input"},
    503: {"model": ErrorResponse, "description": "Sentiment backend unavailable"},
}


def _elapsed_ms(start_time: float) -> float:
    return round((time.perf_counter() - start_time) * 1000, 2)


# ── GET /alerts ──────────────────────────────────────────


@router.get(
    "/alerts",
    response_model=AlertsResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid API key"},
        422: {"model": ErrorResponse, "description": "Invalid filter parameter"},
        500: {"model": ErrorResponse, "description": "Server error"},
    },
    summary="List alerts",
    description=(
        "List backend and locally generated alerts, CRITICAL first and newest "
        "first within a severity. Stats cover all alerts regardless of filters. "
        "When the backend is unreachable only local alerts are returned."
    ),
)
async def list_alerts(
    severity: str = Query(
        default="ALL",
        description="Filter by severity: ALL, CRITICAL, HIGH, MEDIUM, LOW",
    ),
    alert_status: str = Query(
        default="ALL",
        alias="status",
        description=(
            "Filter by status: ALL, ACTIVE, ACKNOWLEDGED, ASSIGNED, IN_PROGRESS, "
            "RESOLVED, DISMISSED, ESCALATED"
        ),
    ),
    mine: bool = Query(default=False, description="Only alerts assigned to the caller"),
    api_key: str = Depends(verify_api_key),
    service: AlertService = Depends(get_alert_service),
) -> AlertsResponse:
    start_time = time.perf_counter()

    try:
        try:
            filters = AlertFilters(severity=severity, status=alert_status)
        except ValueError as e:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=str(e),
            )

        listing = await service.list_alerts(filters, mine=mine)
        items = [AlertItem.from_alert(a) for a in listing.alerts]

        logger.info(
            "Alerts listed",
            total=len(items),
            severity=filters.severity,
            status=filters.status,
            remote_available=listing.remote_available,
            latency_ms=_elapsed_ms(start_time),
        )

        return AlertsResponse(
            alerts=items,
            stats=AlertStatsItem.from_stats(listing.stats),
            total=len(items),
            remote_available=listing.remote_available,
            latency_ms=_elapsed_ms(start_time),
        )

    except (HTTPException, AlertEngineError):
        raise
    except Exception as e:
        logger.error(f"Failed to list alerts: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to list alerts: {str(e)}",
        )


# ── POST /alerts/check ───────────────────────────────────


@router.post(
    "/alerts/check",
    response_model=AlertCheckResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid API key"}},
    summary="Run an alert check",
    description=(
        "Classify driver scores and create alerts for new threshold crossings. "
        "Without a body the current scores are fetched from the backend. A check "
        "requested while another is running returns no alerts."
    ),
)
async def check_alerts(
    request: AlertCheckRequest | None = Body(default=None),
    api_key: str = Depends(verify_api_key),
    monitor: AlertMonitor = Depends(get_alert_monitor),
) -> AlertCheckResponse:
    start_time = time.perf_counter()

    snapshots = None
    if request is not None and request.drivers is not None:
        snapshots = [
            DriverSnapshot(
                driver_id=d.driver_id,
                driver_name=d.driver_name,
                ema_score=d.ema_score,
            )
            for d in request.drivers
        ]

    created = await monitor.trigger(snapshots)
    logger.info("Alert check requested", created=len(created))

    return AlertCheckResponse(
        created=[AlertItem.from_alert(a) for a in created],
        total=len(created),
        latency_ms=_elapsed_ms(start_time),
    )


# ── DELETE /alerts/generated ─────────────────────────────


@router.delete(
    "/alerts/generated",
    response_model=ClearGeneratedResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid API key"}},
    summary="Clear generated alerts",
    description="Remove every locally generated alert. Backend alerts are untouched.",
)
async def clear_generated_alerts(
    api_key: str = Depends(verify_api_key),
    service: AlertService = Depends(get_alert_service),
) -> ClearGeneratedResponse:
    start_time = time.perf_counter()
    removed = await service.clear_generated_alerts()
    return ClearGeneratedResponse(removed=removed, latency_ms=_elapsed_ms(start_time))


# ── GET /alerts/statistics ───────────────────────────────


@router.get(
    "/alerts/statistics",
    response_model=AlertStatisticsResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid API key"}},
    summary="Alert statistics",
    description=(
        "Counts over locally generated alerts, plus the backend's own counts over "
        "its open alerts. Backend counts are null while the backend is unreachable."
    ),
)
async def alert_statistics(
    api_key: str = Depends(verify_api_key),
    service: AlertService = Depends(get_alert_service),
) -> AlertStatisticsResponse:
    start_time = time.perf_counter()

    local = await service.get_local_statistics()
    backend = await service.get_backend_statistics()

    return AlertStatisticsResponse(
        local=AlertStatsItem.from_stats(local),
        backend=BackendStatisticsItem(**backend.to_dict()) if backend is not None else None,
        remote_available=backend is not None,
        latency_ms=_elapsed_ms(start_time),
    )


# ── GET /alerts/{alert_id} ───────────────────────────────


@router.get(
    "/alerts/{alert_id}",
    response_model=AlertResponse,
    responses=_ACTION_RESPONSES,
    summary="Get alert",
)
async def get_alert(
    alert_id: str,
    api_key: str = Depends(verify_api_key),
    service: AlertService = Depends(get_alert_service),
) -> AlertResponse:
    start_time = time.perf_counter()
    alert = await service.get_alert(alert_id)
    return AlertResponse(alert=AlertItem.from_alert(alert), latency_ms=_elapsed_ms(start_time))


# ── Lifecycle actions ────────────────────────────────────


@router.post(
    "/alerts/{alert_id}/acknowledge",
    response_model=AlertResponse,
    responses=_ACTION_RESPONSES,
    summary="Acknowledge alert",
    description="ACTIVE -> ACKNOWLEDGED. Requires actor_id.",
)
async def acknowledge_alert(
    alert_id: str,
    request: AcknowledgeRequest,
    api_key: str = Depends(verify_api_key),
    service: AlertService = Depends(get_alert_service),
) -> AlertResponse:
    start_time = time.perf_counter()
    alert = await service.acknowledge(alert_id, request.actor_id)
    return AlertResponse(alert=AlertItem.from_alert(alert), latency_ms=_elapsed_ms(start_time))


@router.post(
    "/alerts/{alert_id}/assign",
    response_model=AlertResponse,
    responses=_ACTION_RESPONSES,
    summary="Assign alert",
    description="ACTIVE or ACKNOWLEDGED -> ASSIGNED. Requires manager_id.",
)
async def assign_alert(
    alert_id: str,
    request: AssignRequest,
    api_key: str = Depends(verify_api_key),
    service: AlertService = Depends(get_alert_service),
) -> AlertResponse:
    start_time = time.perf_counter()
    alert = await service.assign(alert_id, request.manager_id)
    return AlertResponse(alert=AlertItem.from_alert(alert), latency_ms=_elapsed_ms(start_time))


@router.post(
    "/alerts/{alert_id}/resolve",
    response_model=AlertResponse,
    responses=_ACTION_RESPONSES,
    summary="Resolve alert",
    description="Any open status -> RESOLVED. Requires notes.",
)
async def resolve_alert(
    alert_id: str,
    request: ResolveRequest,
    api_key: str = Depends(verify_api_key),
    service: AlertService = Depends(get_alert_service),
) -> AlertResponse:
    start_time = time.perf_counter()
    alert = await service.resolve(alert_id, request.notes, actor_id=request.actor_id)
    return AlertResponse(alert=AlertItem.from_alert(alert), latency_ms=_elapsed_ms(start_time))


@router.post(
    "/alerts/{alert_id}/dismiss",
    response_model=AlertResponse,
    responses=_ACTION_RESPONSES,
    summary="Dismiss alert",
    description="Any open status -> DISMISSED. Requires reason.",
)
async def dismiss_alert(
    alert_id: str,
    request: DismissRequest,
    api_key: str = Depends(verify_api_key),
    service: AlertService = Depends(get_alert_service),
) -> AlertResponse:
    start_time = time.perf_counter()
    alert = await service.dismiss(alert_id, request.reason, actor_id=request.actor_id)
    return AlertResponse(alert=AlertItem.from_alert(alert), latency_ms=_elapsed_ms(start_time))


@router.post(
    "/alerts/{alert_id}/escalate",
    response_model=AlertResponse,
    responses=_ACTION_RESPONSES,
    summary="Escalate alert",
    description="ACTIVE non-CRITICAL -> ESCALATED with severity CRITICAL. Requires reason.",
)
async def escalate_alert(
    alert_id: str,
    request: EscalateRequest,
    api_key: str = Depends(verify_api_key),
    service: AlertService = Depends(get_alert_service),
) -> AlertResponse:
    start_time = time.perf_counter()
    alert = await service.escalate(alert_id, request.reason)
    return AlertResponse(alert=AlertItem.from_alert(alert), latency_ms=_elapsed_ms(start_time))
