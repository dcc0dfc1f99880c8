"""
Request and response models for the alert API.
"""

from typing import Any

from pydantic import BaseModel, Field

from src.alerts.lifecycle import allowed_actions
from src.alerts.schemas import Alert, AlertStats


class ErrorResponse(BaseModel):
    """Response model for errors."""

    detail: str = Field(
        ...,
        description="Error message",
    )
    error_type: str = Field(
        default="error",
        description="Error type",
    )


class ComponentHealth(BaseModel):
    """Health of a single dependency."""

    status: str = Field(..., description="healthy, unhealthy, or disabled")
    latency_ms: float | None = Field(default=None, description="Check latency in milliseconds")
    details: dict[str, Any] = Field(default_factory=dict, description="Extra diagnostics")


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(
        ...,
        description="Overall service status: healthy, degraded, or unhealthy",
    )
    components: dict[str, ComponentHealth] = Field(
        default_factory=dict,
        description="Per-dependency health",
    )
    monitor: dict[str, Any] = Field(
        default_factory=dict,
        description="Alert monitor state",
    )
    version: str = Field(default="0.1.0", description="Service version")


# Alert models


class AlertItem(BaseModel):
    """Single alert record."""

    id: str | int = Field(..., description="Backend id (number) or local id (alert-...)")
    origin: str = Field(..., description="Owning store: remote or local")
    driver_id: str | int = Field(..., description="Driver the alert is about")
    driver_name: str | None = Field(default=None, description="Driver display name")
    alert_type: str = Field(..., description="Alert category tag")
    severity: str = Field(..., description="CRITICAL, HIGH, MEDIUM, or LOW")
    status: str = Field(..., description="Lifecycle status")
    message: str = Field(..., description="Human-readable description")
    current_ema_score: float | None = Field(default=None, description="Score that triggered the alert")
    threshold_value: float | None = Field(default=None, description="Threshold that was crossed")
    created_at: str = Field(..., description="Creation timestamp (ISO format)")
    acknowledged_by: str | int | None = None
    acknowledged_at: str | None = None
    assigned_to: str | int | None = None
    resolved_by: str | int | None = None
    resolved_at: str | None = None
    resolution_notes: str | None = None
    allowed_actions: list[str] = Field(
        default_factory=list,
        description="Lifecycle actions the current status permits",
    )

    @classmethod
    def from_alert(cls, alert: Alert) -> "AlertItem":
        return cls(
            id=alert.id,
            origin=alert.origin,
            driver_id=alert.driver_id,
            driver_name=alert.driver_name,
            alert_type=alert.alert_type,
            severity=alert.severity,
            status=alert.status,
            message=alert.message,
            current_ema_score=alert.current_ema_score,
            threshold_value=alert.threshold_value,
            created_at=alert.created_at.isoformat(),
            acknowledged_by=alert.acknowledged_by,
            acknowledged_at=alert.acknowledged_at.isoformat() if alert.acknowledged_at else None,
            assigned_to=alert.assigned_to,
            resolved_by=alert.resolved_by,
            resolved_at=alert.resolved_at.isoformat() if alert.resolved_at else None,
            resolution_notes=alert.resolution_notes,
            allowed_actions=allowed_actions(alert),
        )


class AlertStatsItem(BaseModel):
    """Summary counts over both origins."""

    total: int = 0
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    active: int = 0

    @classmethod
    def from_stats(cls, stats: AlertStats) -> "AlertStatsItem":
        return cls(**stats.to_dict())


class AlertsResponse(BaseModel):
    """Response model for listing alerts."""

    alerts: list[AlertItem] = Field(..., description="Filtered and sorted alerts")
    stats: AlertStatsItem = Field(..., description="Counts over all alerts, unfiltered")
    total: int = Field(..., description="Number of alerts returned")
    remote_available: bool = Field(..., description="Whether backend alerts were included")
    latency_ms: float = Field(..., description="Processing latency in milliseconds")


class BackendStatisticsItem(BaseModel):
    """Counts computed by the backend over its open alerts."""

    total_active: int = 0
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    unacknowledged: int = 0
    unassigned: int = 0


class AlertStatisticsResponse(BaseModel):
    """Response model for alert statistics from both stores."""

    local: AlertStatsItem = Field(..., description="Counts over locally generated alerts")
    backend: BackendStatisticsItem | None = Field(
        default=None,
        description="Backend counts; null when the backend is unavailable",
    )
    remote_available: bool = Field(..., description="Whether backend counts were included")
    latency_ms: float = Field(..., description="Processing latency in milliseconds")


class AlertResponse(BaseModel):
    """Response model for a single alert or lifecycle action."""

    alert: AlertItem
    latency_ms: float = Field(..., description="Processing latency in milliseconds")


class DriverScoreItem(BaseModel):
    """Driver score reading submitted for an on-demand check."""

    driver_id: str | int = Field(..., description="Driver identifier")
    driver_name: str | None = Field(default=None, description="Driver display name")
    ema_score: float | None = Field(default=None, description="EMA sentiment score in [-1, 1]")


class AlertCheckRequest(BaseModel):
    """Request model for an on-demand alert check."""

    drivers: list[DriverScoreItem] | None = Field(
        default=None,
        description="Scores to check; omit to fetch current scores from the backend",
    )


class AlertCheckResponse(BaseModel):
    """Response model for an on-demand alert check."""

    created: list[AlertItem] = Field(..., description="Alerts created by this check")
    total: int = Field(..., description="Number of alerts created")
    latency_ms: float = Field(..., description="Processing latency in milliseconds")


# Blank action inputs are accepted here and rejected by the lifecycle rules,
# so a terminal alert reports 409 before a missing field reports 422.


class AcknowledgeRequest(BaseModel):
    actor_id: str | int | None = Field(default=None, description="User acknowledging the alert")


class AssignRequest(BaseModel):
    manager_id: str | int | None = Field(default=None, description="Manager taking the alert")


class ResolveRequest(BaseModel):
    notes: str | None = Field(default=None, description="Resolution notes")
    actor_id: str | int | None = Field(default=None, description="User resolving the alert")


class DismissRequest(BaseModel):
    reason: str | None = Field(default=None, description="Why the alert is dismissed")
    actor_id: str | int | None = Field(default=None, description="User dismissing the alert")


class EscalateRequest(BaseModel):
    reason: str | None = Field(default=None, description="Why the alert is escalated")


class ClearGeneratedResponse(BaseModel):
    """Response model for clearing locally generated alerts."""

    removed: int = Field(..., description="Number of local alerts removed")
    latency_ms: float = Field(..., description="Processing latency in milliseconds")


# Admin models


class AdminConfigResponse(BaseModel):
    """Alert configuration in the admin panel's camelCase shape."""

    config: dict[str, Any] = Field(..., description="Thresholds, housekeeping, and feature flags")
    latency_ms: float = Field(..., description="Processing latency in milliseconds")
