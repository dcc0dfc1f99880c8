"""Alert lifecycle state machine.

Each action checks the alert's status, then its required input, and returns
an updated copy. The input alert is never mutated, so a failed action leaves
the caller's record untouched.

    acknowledge: ACTIVE -> ACKNOWLEDGED
    assign:      ACTIVE | ACKNOWLEDGED -> ASSIGNED
    escalate:    ACTIVE (non-CRITICAL) -> ESCALATED, severity CRITICAL
    resolve:     any non-terminal -> RESOLVED
    dismiss:     any non-terminal -> DISMISSED

RESOLVED and DISMISSED are terminal. IN_PROGRESS (set by the backend) can
only be resolved or dismissed.
"""

from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable

from src.alerts.errors import InvalidTransitionError, ValidationError
from src.alerts.schemas import TERMINAL_STATUSES, Alert

ACTIONS: tuple[str, ...] = ("acknowledge", "assign", "resolve", "dismiss", "escalate")


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _require(action: str, field_name: str, value: Any) -> None:
    if _blank(value):
        raise ValidationError(action, field_name)


def _can_acknowledge(alert: Alert) -> bool:
    return alert.status == "ACTIVE"


def _can_assign(alert: Alert) -> bool:
    return alert.status in ("ACTIVE", "ACKNOWLEDGED")


def _can_close(alert: Alert) -> bool:
    return alert.status not in TERMINAL_STATUSES


def _can_escalate(alert: Alert) -> bool:
    return alert.status == "ACTIVE" and alert.severity != "CRITICAL"


_PRECONDITIONS: dict[str, Callable[[Alert], bool]] = {
    "acknowledge": _can_acknowledge,
    "assign": _can_assign,
    "resolve": _can_close,
    "dismiss": _can_close,
    "escalate": _can_escalate,
}


def _check(action: str, alert: Alert) -> None:
    if _PRECONDITIONS[action](alert):
        return
    reason = None
    if action == "escalate" and alert.severity == "CRITICAL":
        reason = "alert is already CRITICAL"
    elif alert.status in TERMINAL_STATUSES:
        reason = f"{alert.status} is terminal"
    raise InvalidTransitionError(action, alert.id, alert.status, reason)


def allowed_actions(alert: Alert) -> list[str]:
    """Actions whose status precondition currently holds for ``alert``."""
    return [action for action in ACTIONS if _PRECONDITIONS[action](alert)]


def acknowledge(
    alert: Alert,
    actor_id: str | int | None,
    now: datetime | None = None,
) -> Alert:
    """ACTIVE -> ACKNOWLEDGED, recording who acknowledged and when."""
    _check("acknowledge", alert)
    _require("acknowledge", "actor id", actor_id)
    return replace(
        alert,
        status="ACKNOWLEDGED",
        acknowledged_by=actor_id,
        acknowledged_at=now or datetime.now(timezone.utc),
    )


def assign(alert: Alert, manager_id: str | int | None) -> Alert:
    """ACTIVE/ACKNOWLEDGED -> ASSIGNED to a manager."""
    _check("assign", alert)
    _require("assign", "manager id", manager_id)
    return replace(alert, status="ASSIGNED", assigned_to=manager_id)


def resolve(
    alert: Alert,
    notes: str | None,
    actor_id: str | int | None = None,
    now: datetime | None = None,
) -> Alert:
    """Any non-terminal status -> RESOLVED with resolution notes."""
    _check("resolve", alert)
    _require("resolve", "resolution notes", notes)
    return replace(
        alert,
        status="RESOLVED",
        resolved_by=actor_id,
        resolved_at=now or datetime.now(timezone.utc),
        resolution_notes=notes,
    )


def dismiss(
    alert: Alert,
    reason: str | None,
    actor_id: str | int | None = None,
    now: datetime | None = None,
) -> Alert:
    """Any non-terminal status -> DISMISSED; the reason is kept as notes."""
    _check("dismiss", alert)
    _require("dismiss", "reason", reason)
    return replace(
        alert,
        status="DISMISSED",
        resolved_by=actor_id,
        resolved_at=now or datetime.now(timezone.utc),
        resolution_notes=reason,
    )


def escalate(alert: Alert, reason: str | None) -> Alert:
    """ACTIVE non-CRITICAL -> ESCALATED, raising severity to CRITICAL."""
    _check("escalate", alert)
    _require("escalate", "reason", reason)
    return replace(
        alert,
        status="ESCALATED",
        severity="CRITICAL",
        resolution_notes=reason,
    )


def apply_action(alert: Alert, action: str, **inputs: Any) -> Alert:
    """Dispatch ``action`` by name.

    Args:
        alert: Current record.
        action: One of ``ACTIONS``.
        **inputs: Keyword inputs of the matching function (``actor_id``,
            ``manager_id``, ``notes``, ``reason``, ``now``).

    Raises:
        ValueError: If ``action`` is unknown.
    """
    handlers: dict[str, Callable[..., Alert]] = {
        "acknowledge": acknowledge,
        "assign": assign,
        "resolve": resolve,
        "dismiss": dismiss,
        "escalate": escalate,
    }
    handler = handlers.get(action)
    if handler is None:
        raise ValueError(f"Unknown alert action {action!r}. Must be one of: {list(ACTIONS)}")
    return handler(alert, **inputs)
