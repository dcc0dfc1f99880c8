"""Alert engine configuration.

Holds the score thresholds, alert housekeeping settings, and the feature and
notification flags managed from the admin panel. All settings can be
overridden via ``ALERTS_*`` environment variables; the admin panel exchanges
them as a camelCase payload.
"""

from typing import Any

from pydantic import Field, ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.alerts.errors import ConfigInvalidError

# Admin payload key -> AlertConfig field
ADMIN_FIELD_MAP: dict[str, str] = {
    "criticalThreshold": "critical_threshold",
    "warningThreshold": "warning_threshold",
    "cooldownPeriod": "cooldown_period",
    "maxAlertsPerDriver": "max_alerts_per_driver",
    "alertRetentionDays": "alert_retention_days",
    "autoEscalationEnabled": "auto_escalation_enabled",
    "driverFeedbackEnabled": "driver_feedback_enabled",
    "tripFeedbackEnabled": "trip_feedback_enabled",
    "appFeedbackEnabled": "app_feedback_enabled",
    "marshalFeedbackEnabled": "marshal_feedback_enabled",
    "emailNotificationsEnabled": "email_notifications_enabled",
    "smsNotificationsEnabled": "sms_notifications_enabled",
}


class AlertConfig(BaseSettings):
    """Configuration for driver alert generation."""

    model_config = SettingsConfigDict(
        env_prefix="ALERTS_",
        case_sensitive=False,
        extra="ignore",
    )

    # Score thresholds (EMA in [-1, 1], higher is better)
    critical_threshold: float = Field(
        default=-0.6,
        description="EMA score at or below which a CRITICAL alert fires",
    )
    warning_threshold: float = Field(
        default=-0.3,
        description="EMA score at or below which a HIGH alert fires",
    )

    # Alert housekeeping. Admin-managed and enforced by the sentiment backend;
    # local generation only dedups on (driver, severity) and reads none of these.
    cooldown_period: int = Field(
        default=120,
        description="Minutes between alerts for the same driver (enforced by the backend)",
    )
    max_alerts_per_driver: int = Field(
        default=5,
        description="Maximum active alerts per driver (enforced by the backend)",
    )
    alert_retention_days: int = Field(
        default=30,
        description="Days the backend keeps resolved alerts",
    )
    auto_escalation_enabled: bool = Field(
        default=True,
        description="Let the backend escalate unresolved alerts automatically",
    )

    # Feedback feature flags
    driver_feedback_enabled: bool = True
    trip_feedback_enabled: bool = False
    app_feedback_enabled: bool = False
    marshal_feedback_enabled: bool = False

    # Notification flags (delivery happens outside this service)
    email_notifications_enabled: bool = True
    sms_notifications_enabled: bool = False

    def validation_problems(self) -> list[str]:
        """List the reasons this config may not be saved (empty if valid)."""
        problems: list[str] = []
        if self.critical_threshold >= self.warning_threshold:
            problems.append("Critical threshold must be less than warning threshold")
        if self.cooldown_period < 1:
            problems.append("Cooldown period must be at least 1 minute")
        if self.max_alerts_per_driver < 1:
            problems.append("Max alerts per driver must be at least 1")
        if self.alert_retention_days < 1:
            problems.append("Alert retention days must be at least 1")
        return problems

    def ensure_valid(self) -> "AlertConfig":
        """Raise ConfigInvalidError unless the config may be saved."""
        problems = self.validation_problems()
        if problems:
            raise ConfigInvalidError(problems)
        return self

    def to_admin_payload(self) -> dict[str, Any]:
        """Convert to the camelCase payload used by ``/admin/config``."""
        return {key: getattr(self, name) for key, name in ADMIN_FIELD_MAP.items()}

    @classmethod
    def from_admin_payload(
        cls,
        payload: dict[str, Any],
        base: "AlertConfig | None" = None,
    ) -> "AlertConfig":
        """Build a config from an admin payload.

        Keys missing from ``payload`` keep their value from ``base`` (or the
        defaults). Unknown keys are ignored.

        Raises:
            ConfigInvalidError: If a value has the wrong type.
        """
        values = base.model_dump() if base is not None else {}
        for key, value in payload.items():
            name = ADMIN_FIELD_MAP.get(key, key)
            if name in cls.model_fields and value is not None:
                values[name] = value

        try:
            return cls(**values)
        except PydanticValidationError as e:
            problems = [
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in e.errors()
            ]
            raise ConfigInvalidError(problems) from e
