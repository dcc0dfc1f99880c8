"""Schema definitions for driver alerts.

An ``Alert`` is raised when a driver's EMA sentiment score crosses a risk
threshold and then moves through the operator lifecycle (acknowledge,
assign, resolve, dismiss, escalate). Alerts come from two origins: the
sentiment backend (numeric ids) and the local generator (``alert-...`` ids).
The ``origin`` field records which store owns a record.

Wire format is the backend's camelCase JSON; Python attributes are
snake_case.
"""

import random
import string
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

AlertSeverity = Literal["CRITICAL", "HIGH", "MEDIUM", "LOW"]

VALID_SEVERITIES: frozenset[str] = frozenset({
    "CRITICAL",
    "HIGH",
    "MEDIUM",
    "LOW",
})

# Lower rank sorts first
SEVERITY_RANK: dict[str, int] = {
    "CRITICAL": 0,
    "HIGH": 1,
    "MEDIUM": 2,
    "LOW": 3,
}

AlertStatus = Literal[
    "ACTIVE",
    "ACKNOWLEDGED",
    "ASSIGNED",
    "RESOLVED",
    "DISMISSED",
    "ESCALATED",
    "IN_PROGRESS",
]

VALID_STATUSES: frozenset[str] = frozenset({
    "ACTIVE",
    "ACKNOWLEDGED",
    "ASSIGNED",
    "RESOLVED",
    "DISMISSED",
    "ESCALATED",
    "IN_PROGRESS",
})

TERMINAL_STATUSES: frozenset[str] = frozenset({"RESOLVED", "DISMISSED"})

AlertOrigin = Literal["remote", "local"]

VALID_ORIGINS: frozenset[str] = frozenset({"remote", "local"})

LOW_SENTIMENT_SCORE = "LOW_SENTIMENT_SCORE"

FILTER_ALL = "ALL"

_ID_ALPHABET = string.digits + string.ascii_lowercase


def new_local_alert_id(now: datetime | None = None) -> str:
    """Generate a local alert id: ``alert-<epoch-millis>-<9 base36 chars>``."""
    millis = int((now.timestamp() if now else time.time()) * 1000)
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"alert-{millis}-{suffix}"


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO string or datetime, treating naive values as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


@dataclass
class DriverSnapshot:
    """Per-driver score reading consumed once per monitoring pass.

    Attributes:
        driver_id: Opaque driver identifier (string or number).
        driver_name: Display name; a placeholder is derived when absent.
        ema_score: Exponentially-weighted sentiment score in [-1, 1].
    """

    driver_id: str | int
    driver_name: str | None = None
    ema_score: float | None = None

    def __post_init__(self) -> None:
        if not self.driver_name:
            self.driver_name = f"Driver #{self.driver_id}"
        if self.ema_score is None:
            self.ema_score = 0.0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DriverSnapshot":
        """Create a snapshot from a backend driver-stats record."""
        driver_id = data.get("driverId", data.get("driver_id", data.get("id")))
        if driver_id is None:
            raise ValueError("Driver record has no driverId")

        ema = data.get("emaScore", data.get("ema_score"))
        return cls(
            driver_id=driver_id,
            driver_name=data.get("driverName") or data.get("driver_name") or data.get("name"),
            ema_score=float(ema) if ema is not None else None,
        )


@dataclass
class Alert:
    """A driver alert record from either origin.

    Attributes:
        id: Server-issued number (remote) or ``alert-...`` string (local).
        driver_id: Driver the alert is about.
        driver_name: Driver display name at creation time.
        severity: CRITICAL, HIGH, MEDIUM or LOW.
        message: Human-readable description, fixed at creation.
        alert_type: Category tag, ``LOW_SENTIMENT_SCORE`` for score alerts.
        status: Lifecycle status, ACTIVE when created. IN_PROGRESS is only
            set by the backend and is open like ACKNOWLEDGED.
        origin: Which store owns the record (remote or local).
        current_ema_score: Score that triggered the alert.
        threshold_value: Threshold that was crossed.
        created_at: Creation time, never changed afterwards.
    """

    id: str | int
    driver_id: str | int
    severity: str
    message: str
    driver_name: str | None = None
    alert_type: str = LOW_SENTIMENT_SCORE
    status: str = "ACTIVE"
    origin: str = "local"
    current_ema_score: float | None = None
    threshold_value: float | None = None
    created_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    acknowledged_by: str | int | None = None
    acknowledged_at: datetime | None = None
    assigned_to: str | int | None = None
    resolved_by: str | int | None = None
    resolved_at: datetime | None = None
    resolution_notes: str | None = None

    def __post_init__(self) -> None:
        if not self.status:
            self.status = "ACTIVE"
        if self.severity not in VALID_SEVERITIES:
            raise ValueError(
                f"Invalid severity {self.severity!r}. "
                f"Must be one of: {sorted(VALID_SEVERITIES)}"
            )
        if self.status not in VALID_STATUSES:
            raise ValueError(
                f"Invalid status {self.status!r}. "
                f"Must be one of: {sorted(VALID_STATUSES)}"
            )
        if self.origin not in VALID_ORIGINS:
            raise ValueError(
                f"Invalid origin {self.origin!r}. "
                f"Must be one of: {sorted(VALID_ORIGINS)}"
            )

    @property
    def is_active(self) -> bool:
        return self.status == "ACTIVE"

    @property
    def is_local(self) -> bool:
        return self.origin == "local"

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase JSON shape used by the backend and UI."""
        return {
            "id": self.id,
            "driverId": self.driver_id,
            "driverName": self.driver_name,
            "alertType": self.alert_type,
            "severity": self.severity,
            "status": self.status,
            "message": self.message,
            "currentEmaScore": self.current_ema_score,
            "thresholdValue": self.threshold_value,
            "createdAt": _isoformat(self.created_at),
            "acknowledgedBy": self.acknowledged_by,
            "acknowledgedAt": _isoformat(self.acknowledged_at),
            "assignedTo": self.assigned_to,
            "resolvedBy": self.resolved_by,
            "resolvedAt": _isoformat(self.resolved_at),
            "resolutionNotes": self.resolution_notes,
            "origin": self.origin,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], origin: str | None = None) -> "Alert":
        """Create an Alert from a camelCase (or snake_case) dictionary.

        Args:
            data: Alert record.
            origin: Owning store. Overrides any ``origin`` key in ``data``;
                defaults to ``remote`` when neither is given.

        Returns:
            Alert instance.
        """

        def pick(camel: str, snake: str, default: Any = None) -> Any:
            if camel in data:
                return data[camel]
            return data.get(snake, default)

        created_at = parse_timestamp(pick("createdAt", "created_at"))
        if created_at is None:
            created_at = datetime.now(timezone.utc)

        return cls(
            id=data["id"],
            driver_id=pick("driverId", "driver_id"),
            driver_name=pick("driverName", "driver_name"),
            alert_type=pick("alertType", "alert_type") or LOW_SENTIMENT_SCORE,
            severity=data["severity"],
            status=data.get("status") or "ACTIVE",
            origin=origin or data.get("origin") or "remote",
            message=data.get("message") or "",
            current_ema_score=pick("currentEmaScore", "current_ema_score"),
            threshold_value=pick("thresholdValue", "threshold_value"),
            created_at=created_at,
            acknowledged_by=pick("acknowledgedBy", "acknowledged_by"),
            acknowledged_at=parse_timestamp(pick("acknowledgedAt", "acknowledged_at")),
            assigned_to=pick("assignedTo", "assigned_to"),
            resolved_by=pick("resolvedBy", "resolved_by"),
            resolved_at=parse_timestamp(pick("resolvedAt", "resolved_at")),
            resolution_notes=pick("resolutionNotes", "resolution_notes"),
        )


@dataclass
class AlertFilters:
    """Display filters; ``ALL`` disables a filter."""

    severity: str = FILTER_ALL
    status: str = FILTER_ALL

    def __post_init__(self) -> None:
        self.severity = (self.severity or FILTER_ALL).upper()
        self.status = (self.status or FILTER_ALL).upper()
        if self.severity != FILTER_ALL and self.severity not in VALID_SEVERITIES:
            raise ValueError(
                f"Invalid severity filter {self.severity!r}. "
                f"Must be ALL or one of: {sorted(VALID_SEVERITIES)}"
            )
        if self.status != FILTER_ALL and self.status not in VALID_STATUSES:
            raise ValueError(
                f"Invalid status filter {self.status!r}. "
                f"Must be ALL or one of: {sorted(VALID_STATUSES)}"
            )


@dataclass
class AlertStats:
    """Summary counts shown above the alert list."""

    total: int = 0
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    active: int = 0

    def __add__(self, other: "AlertStats") -> "AlertStats":
        return AlertStats(
            total=self.total + other.total,
            critical=self.critical + other.critical,
            high=self.high + other.high,
            medium=self.medium + other.medium,
            low=self.low + other.low,
            active=self.active + other.active,
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "critical": self.critical,
            "high": self.high,
            "medium": self.medium,
            "low": self.low,
            "active": self.active,
        }


@dataclass
class BackendAlertStatistics:
    """Aggregate counts computed by the backend over its open alerts.

    Covers backend alerts only; local alerts are counted by ``AlertStats``.
    """

    total_active: int = 0
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    unacknowledged: int = 0
    unassigned: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BackendAlertStatistics":
        def count(key: str) -> int:
            return int(data.get(key) or 0)

        return cls(
            total_active=count("totalActive"),
            critical=count("criticalCount"),
            high=count("highCount"),
            medium=count("mediumCount"),
            low=count("lowCount"),
            unacknowledged=count("unacknowledgedCount"),
            unassigned=count("unassignedCount"),
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "total_active": self.total_active,
            "critical": self.critical,
            "high": self.high,
            "medium": self.medium,
            "low": self.low,
            "unacknowledged": self.unacknowledged,
            "unassigned": self.unassigned,
        }


@dataclass
class AlertListing:
    """Result of a list call: sorted alerts plus stats over both origins."""

    alerts: list[Alert]
    stats: AlertStats
    remote_available: bool = True
