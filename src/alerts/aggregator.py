"""Merging, filtering, sorting, and counting alerts for display.

Backend and locally generated alerts live in disjoint id spaces, so the two
lists are concatenated rather than merged by identity.
"""

from collections.abc import Iterable

from src.alerts.schemas import (
    FILTER_ALL,
    SEVERITY_RANK,
    Alert,
    AlertFilters,
    AlertStats,
)

_UNKNOWN_RANK = len(SEVERITY_RANK)


def merge_alerts(remote_alerts: Iterable[Alert], local_alerts: Iterable[Alert]) -> list[Alert]:
    """Concatenate remote then local alerts.

    Repeats of the same ``(origin, id)`` (for example overlapping backend
    pages) keep their first occurrence.
    """
    seen: set[tuple[str, str]] = set()
    merged: list[Alert] = []
    for alert in [*remote_alerts, *local_alerts]:
        key = (alert.origin, str(alert.id))
        if key in seen:
            continue
        seen.add(key)
        merged.append(alert)
    return merged


def filter_alerts(alerts: Iterable[Alert], filters: AlertFilters) -> list[Alert]:
    """Apply severity and status filters; ``ALL`` matches everything."""
    result = []
    for alert in alerts:
        if filters.severity != FILTER_ALL and alert.severity != filters.severity:
            continue
        if filters.status != FILTER_ALL and (alert.status or "ACTIVE") != filters.status:
            continue
        result.append(alert)
    return result


def sort_alerts(alerts: Iterable[Alert]) -> list[Alert]:
    """Sort by severity rank, then newest first. Stable for full ties."""
    return sorted(
        alerts,
        key=lambda a: (
            SEVERITY_RANK.get(a.severity, _UNKNOWN_RANK),
            -a.created_at.timestamp(),
        ),
    )


def compute_stats(alerts: Iterable[Alert]) -> AlertStats:
    """Count alerts per severity tier, plus how many are ACTIVE."""
    stats = AlertStats()
    for alert in alerts:
        stats.total += 1
        if alert.severity == "CRITICAL":
            stats.critical += 1
        elif alert.severity == "HIGH":
            stats.high += 1
        elif alert.severity == "MEDIUM":
            stats.medium += 1
        elif alert.severity == "LOW":
            stats.low += 1
        if alert.is_active:
            stats.active += 1
    return stats


def list_alerts(
    remote_alerts: Iterable[Alert],
    local_alerts: Iterable[Alert],
    filters: AlertFilters | None = None,
) -> list[Alert]:
    """Merge both origins, filter, and sort for display.

    Args:
        remote_alerts: Alerts fetched from the backend.
        local_alerts: Locally generated alerts.
        filters: Severity/status filters (defaults to ALL/ALL).

    Returns:
        Filtered alerts, CRITICAL first and newest first within a tier.
    """
    merged = merge_alerts(remote_alerts, local_alerts)
    return sort_alerts(filter_alerts(merged, filters or AlertFilters()))
