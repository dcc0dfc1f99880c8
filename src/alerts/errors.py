"""Typed errors raised by the alert engine.

Lifecycle and configuration errors are per-call and always reach the caller.
Read paths catch ``UpstreamUnavailableError`` and degrade to local data.
"""


class AlertEngineError(Exception):
    """Base class for all alert engine errors."""

    error_type = "alert_error"


class ValidationError(AlertEngineError):
    """A required transition input is missing or blank."""

    error_type = "validation"

    def __init__(self, action: str, field_name: str, message: str | None = None) -> None:
        super().__init__(message or f"{action} requires a non-empty {field_name}")
        self.action = action
        self.field_name = field_name


class InvalidTransitionError(AlertEngineError):
    """The alert's current status (or severity) forbids the action.

    ``status`` is None when the backend rejected the action without
    reporting the status it saw.
    """

    error_type = "invalid_transition"

    def __init__(
        self,
        action: str,
        alert_id: str | int,
        status: str | None,
        reason: str | None = None,
    ) -> None:
        message = f"Cannot {action} alert {alert_id}"
        if status:
            message = f"{message} with status {status}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.action = action
        self.alert_id = alert_id
        self.status = status


class NotFoundError(AlertEngineError):
    """The alert id does not exist in the addressed store."""

    error_type = "not_found"

    def __init__(self, alert_id: str | int, store: str = "alert store") -> None:
        super().__init__(f"Alert {alert_id} not found in {store}")
        self.alert_id = alert_id
        self.store = store


class UpstreamUnavailableError(AlertEngineError):
    """The sentiment backend could not be reached, kept failing, or sent an
    unreadable payload."""

    error_type = "upstream_unavailable"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ConfigInvalidError(AlertEngineError):
    """An admin configuration was rejected before persistence."""

    error_type = "config_invalid"

    def __init__(self, problems: list[str]) -> None:
        super().__init__("; ".join(problems))
        self.problems = problems
