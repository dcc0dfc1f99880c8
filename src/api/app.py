"""
Application factory for the driver alert API.
"""

import time
import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.alerts.errors import (
    AlertEngineError,
    ConfigInvalidError,
    InvalidTransitionError,
    NotFoundError,
    UpstreamUnavailableError,
    ValidationError,
)
from src.api.dependencies import cleanup_dependencies, get_alert_monitor
from src.api.routes import admin, alerts, health
from src.config.settings import get_settings

logger = structlog.get_logger(__name__)

API_VERSION = "0.1.0"

# Most specific first; subclasses are matched before AlertEngineError
ERROR_STATUS_CODES: list[tuple[type[AlertEngineError], int]] = [
    (ValidationError, 422),
    (ConfigInvalidError, 422),
    (InvalidTransitionError, 409),
    (NotFoundError, 404),
    (UpstreamUnavailableError, 503),
]

API_DESCRIPTION = """
Alert generation and lifecycle engine for driver sentiment scores.

## Alerts

- Alerts come from the sentiment backend (numeric ids) or are generated
  locally from EMA scores (`alert-...` ids)
- Lifecycle: acknowledge, assign, resolve, dismiss, escalate

## Authentication

Send an `X-API-KEY` header on every request except `/health` when
`API_KEYS` is set.
"""


def status_code_for(exc: AlertEngineError) -> int:
    for error_cls, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_cls):
            return status_code
    return 400


def _request_id(request: Request) -> str:
    """Reuse the caller's correlation id, or mint a new one."""
    for header in ("X-Request-ID", "X-Correlation-ID"):
        value = request.headers.get(header)
        if value:
            return value
    return str(uuid.uuid4())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the periodic monitor if enabled; release clients on shutdown."""
    logger.info("Alert API starting up")

    if get_settings().monitor_enabled:
        (await get_alert_monitor()).start()

    yield

    logger.info("Alert API shutting down")
    await cleanup_dependencies()


async def correlate_and_log(request: Request, call_next):
    """Tag every log line and response with the request id."""
    request_id = _request_id(request)
    structlog.contextvars.bind_contextvars(request_id=request_id)

    started = time.perf_counter()
    try:
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        logger.info(
            "HTTP request",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return response
    finally:
        structlog.contextvars.clear_contextvars()


async def handle_alert_engine_error(request: Request, exc: AlertEngineError) -> JSONResponse:
    status_code = status_code_for(exc)
    detail = str(exc)
    if isinstance(exc, UpstreamUnavailableError):
        detail = f"{detail}. The sentiment backend is unavailable, retry shortly."

    logger.warning(
        "Alert request rejected",
        path=request.url.path,
        status_code=status_code,
        error_type=exc.error_type,
    )
    return JSONResponse(
        status_code=status_code,
        content={"detail": detail, "error_type": exc.error_type},
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled exception", path=request.url.path, error=str(exc), exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "error_type": "internal"},
    )


def create_app() -> FastAPI:
    """Build the API with CORS, request correlation, and error mapping."""
    settings = get_settings()

    app = FastAPI(
        title="Driver Sentiment Alert API",
        description=API_DESCRIPTION,
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
        openapi_tags=[
            {"name": "health", "description": "Dependency checks"},
            {"name": "alerts", "description": "Driver alert listing and lifecycle actions"},
            {"name": "admin", "description": "Alert thresholds and feature flags"},
        ],
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )
    app.middleware("http")(correlate_and_log)

    app.add_exception_handler(AlertEngineError, handle_alert_engine_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    for router, tag in ((health.router, "health"), (alerts.router, "alerts"), (admin.router, "admin")):
        app.include_router(router, tags=[tag])

    @app.get("/", include_in_schema=False)
    async def root():
        return {"service": "Driver Sentiment Alert API", "version": API_VERSION, "docs": "/docs"}

    return app
