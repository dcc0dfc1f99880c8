"""Admin endpoints for the alert configuration."""

import time
from typing import Any

from fastapi import APIRouter, Body, Depends
import structlog

from src.admin.service import AdminConfigService
from src.api.auth import verify_api_key
from src.api.dependencies import get_admin_service
from src.api.models import AdminConfigResponse, ErrorResponse

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.get(
    "/admin/config",
    response_model=AdminConfigResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid API key"}},
    summary="Get alert configuration",
    description=(
        "Thresholds, housekeeping settings, and feature flags. Falls back to the "
        "last known configuration when the backend is unreachable."
    ),
)
async def get_admin_config(
    api_key: str = Depends(verify_api_key),
    admin: AdminConfigService = Depends(get_admin_service),
) -> AdminConfigResponse:
    start_time = time.perf_counter()
    config = await admin.get()
    return AdminConfigResponse(
        config=config.to_admin_payload(),
        latency_ms=round((time.perf_counter() - start_time) * 1000, 2),
    )


@router.put(
    "/admin/config",
    response_model=AdminConfigResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid API key"},
        422: {"model": ErrorResponse, "description": "Configuration rejected"},
        503: {"model": ErrorResponse, "description": "Sentiment backend unavailable"},
    },
    summary="Save alert configuration",
    description=(
        "Partial camelCase payload, e.g. {\"criticalThreshold\": -0.7}. Rejected "
        "when criticalThreshold >= warningThreshold or a count is below 1."
    ),
)
async def save_admin_config(
    payload: dict[str, Any] = Body(...),
    api_key: str = Depends(verify_api_key),
    admin: AdminConfigService = Depends(get_admin_service),
) -> AdminConfigResponse:
    start_time = time.perf_counter()
    config = await admin.save(payload)
    logger.info("Admin config updated", keys=sorted(payload))
    return AdminConfigResponse(
        config=config.to_admin_payload(),
        latency_ms=round((time.perf_counter() - start_time) * 1000, 2),
    )
