"""Alert engine for driver sentiment scores.

Components:
- Alert / DriverSnapshot: Dataclasses for alert records and score readings
- AlertConfig: Pydantic settings for thresholds and admin flags
- classify_score / generate_alerts: Pure threshold policy and dedup
- lifecycle: Acknowledge/assign/resolve/dismiss/escalate state machine
- aggregator: Merge, filter, sort, and count alerts for display
- LocalAlertRepository: In-memory and Redis stores for generated alerts
- AlertService: Orchestrator for generation, listing, and actions
- AlertMonitor: Periodic and on-demand alert passes
- AlertSeverity / AlertStatus: Literal types for type safety
- VALID_SEVERITIES / VALID_STATUSES: Frozensets for runtime validation
"""

from src.alerts.config import AlertConfig
from src.alerts.errors import (
    AlertEngineError,
    ConfigInvalidError,
    InvalidTransitionError,
    NotFoundError,
    UpstreamUnavailableError,
    ValidationError,
)
from src.alerts.generator import generate_alerts
from src.alerts.monitor import AlertMonitor
from src.alerts.repository import (
    InMemoryAlertRepository,
    LocalAlertRepository,
    RedisAlertRepository,
)
from src.alerts.schemas import (
    VALID_SEVERITIES,
    VALID_STATUSES,
    Alert,
    AlertFilters,
    AlertListing,
    AlertSeverity,
    AlertStats,
    AlertStatus,
    BackendAlertStatistics,
    DriverSnapshot,
)
from src.alerts.service import AlertService
from src.alerts.triggers import classify_score

__all__ = [
    "Alert",
    "AlertConfig",
    "AlertEngineError",
    "AlertFilters",
    "AlertListing",
    "AlertMonitor",
    "AlertService",
    "AlertSeverity",
    "AlertStats",
    "AlertStatus",
    "BackendAlertStatistics",
    "ConfigInvalidError",
    "DriverSnapshot",
    "InMemoryAlertRepository",
    "InvalidTransitionError",
    "LocalAlertRepository",
    "NotFoundError",
    "RedisAlertRepository",
    "UpstreamUnavailableError",
    "VALID_SEVERITIES",
    "VALID_STATUSES",
    "ValidationError",
    "classify_score",
    "generate_alerts",
]
