"""Alert generation with ACTIVE-alert deduplication.

Turns a batch of driver snapshots into new alerts, skipping any driver that
already has an ACTIVE alert of the same severity. Pure: the caller supplies
the dedup set and persists the result.
"""

import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from src.alerts.schemas import Alert, DriverSnapshot
from src.alerts.triggers import ThresholdConfig, check_low_sentiment

logger = logging.getLogger(__name__)


def _dedup_key(driver_id: Any, severity: str) -> tuple[str, str]:
    # Backend ids arrive as numbers, snapshot ids may be strings
    return (str(driver_id), severity)


def _coerce_snapshot(item: DriverSnapshot | dict[str, Any]) -> DriverSnapshot:
    if isinstance(item, DriverSnapshot):
        return item
    return DriverSnapshot.from_dict(item)


def generate_alerts(
    snapshots: Iterable[DriverSnapshot | dict[str, Any]],
    active_alerts: Iterable[Alert],
    config: ThresholdConfig,
    now: datetime | None = None,
) -> list[Alert]:
    """Create alerts for threshold crossings that are not already open.

    Snapshots are processed in input order. Alerts created earlier in the
    batch join the dedup set, so repeated snapshots for one driver produce a
    single alert. A snapshot that cannot be classified is logged and skipped.

    Args:
        snapshots: Driver readings (DriverSnapshot or backend dicts).
        active_alerts: Existing alerts from both origins.
        config: Threshold configuration.
        now: Creation time for every alert in the batch.

    Returns:
        Newly created alerts only.
    """
    now = now or datetime.now(timezone.utc)
    open_keys = {
        _dedup_key(a.driver_id, a.severity) for a in active_alerts if a.is_active
    }
    created: list[Alert] = []

    for item in snapshots:
        try:
            snapshot = _coerce_snapshot(item)
            candidate = check_low_sentiment(snapshot, config, now)
        except (TypeError, ValueError) as e:
            logger.warning("Skipping unclassifiable driver snapshot %r: %s", item, e)
            continue

        if candidate is None:
            continue

        key = _dedup_key(candidate.driver_id, candidate.severity)
        if key in open_keys:
            logger.debug(
                "Alert suppressed, ACTIVE %s alert exists for driver %s",
                candidate.severity,
                candidate.driver_id,
            )
            continue

        open_keys.add(key)
        created.append(candidate)

    return created
