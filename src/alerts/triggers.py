"""Stateless threshold policy for score-driven alerts.

Maps a driver's EMA score to a severity tier and builds the matching alert.
No I/O, no state: deduplication lives in ``generator.py`` and persistence
in ``AlertService``.

The warning tier surfaces as HIGH. MEDIUM and LOW are never produced here;
they are reserved for alert types outside the score-driven path.
"""

from datetime import datetime, timezone
from typing import Protocol

from src.alerts.schemas import (
    LOW_SENTIMENT_SCORE,
    Alert,
    DriverSnapshot,
    new_local_alert_id,
)


class ThresholdConfig(Protocol):
    critical_threshold: float
    warning_threshold: float


def classify_score(score: float, config: ThresholdConfig) -> str | None:
    """Classify an EMA score into a severity tier.

    Args:
        score: Driver EMA score.
        config: Object carrying ``critical_threshold`` < ``warning_threshold``.

    Returns:
        "CRITICAL" if score <= critical, "HIGH" if score <= warning,
        otherwise None.
    """
    if score <= config.critical_threshold:
        return "CRITICAL"
    if score <= config.warning_threshold:
        return "HIGH"
    return None


def threshold_for(severity: str, config: ThresholdConfig) -> float:
    """Return the threshold value that a severity tier was classified against."""
    if severity == "CRITICAL":
        return config.critical_threshold
    if severity == "HIGH":
        return config.warning_threshold
    raise ValueError(f"No score threshold for severity {severity!r}")


def format_alert_message(driver_name: str, severity: str, score: float) -> str:
    if severity == "CRITICAL":
        return (
            f"CRITICAL: {driver_name} has extremely low sentiment score "
            f"({score:.2f}). Immediate action required."
        )
    return (
        f"WARNING: {driver_name} has low sentiment score "
        f"({score:.2f}). Management review recommended."
    )


def build_low_sentiment_alert(
    snapshot: DriverSnapshot,
    severity: str,
    config: ThresholdConfig,
    now: datetime | None = None,
) -> Alert:
    """Build a new local ACTIVE alert for a threshold crossing.

    Args:
        snapshot: Driver reading that crossed the threshold.
        severity: Tier returned by ``classify_score``.
        config: Thresholds used for classification.
        now: Creation time (defaults to the current UTC time).

    Returns:
        Alert with a fresh local id.
    """
    now = now or datetime.now(timezone.utc)
    score = snapshot.ema_score
    return Alert(
        id=new_local_alert_id(now),
        driver_id=snapshot.driver_id,
        driver_name=snapshot.driver_name,
        alert_type=LOW_SENTIMENT_SCORE,
        severity=severity,
        status="ACTIVE",
        origin="local",
        message=format_alert_message(snapshot.driver_name, severity, score),
        current_ema_score=score,
        threshold_value=threshold_for(severity, config),
        created_at=now,
    )


def check_low_sentiment(
    snapshot: DriverSnapshot,
    config: ThresholdConfig,
    now: datetime | None = None,
) -> Alert | None:
    """Return a candidate alert if the snapshot crosses a threshold, else None."""
    severity = classify_score(snapshot.ema_score, config)
    if severity is None:
        return None
    return build_low_sentiment_alert(snapshot, severity, config, now)
