"""Alert service orchestrating generation, listing, and lifecycle actions.

The async component with side effects: the local alert bucket and the
sentiment backend. Threshold and dedup logic is delegated to the pure
functions in ``triggers.py`` and ``generator.py``; transition rules to
``lifecycle.py``; merging and sorting to ``aggregator.py``.
"""

import logging
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from src.alerts.aggregator import compute_stats, list_alerts as aggregate_alerts, merge_alerts
from src.alerts.config import AlertConfig
from src.alerts.errors import (
    InvalidTransitionError,
    NotFoundError,
    UpstreamUnavailableError,
    ValidationError,
)
from src.alerts.generator import generate_alerts
from src.alerts.lifecycle import apply_action
from src.alerts.repository import LocalAlertRepository
from src.alerts.schemas import (
    Alert,
    AlertFilters,
    AlertListing,
    AlertStats,
    BackendAlertStatistics,
    DriverSnapshot,
)
from src.observability.metrics import MetricsCollector, get_metrics

logger = logging.getLogger(__name__)


class AlertService:
    """Orchestrator for alert generation, display, and operator actions.

    Locally generated alerts live in ``local_repo``; backend alerts are read
    and updated through ``backend`` (a ``SentimentBackendClient``). Without a
    backend the service runs on local alerts only.
    """

    def __init__(
        self,
        config: AlertConfig,
        local_repo: LocalAlertRepository,
        backend: Any | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._config = config
        self._local = local_repo
        self._backend = backend
        self._metrics = metrics or get_metrics()

    @property
    def config(self) -> AlertConfig:
        return self._config

    def update_config(self, config: AlertConfig) -> None:
        """Swap in a new threshold configuration for subsequent passes.

        Raises:
            ConfigInvalidError: If ``config`` fails save-time validation.
        """
        self._config = config.ensure_valid()
        logger.info(
            "Alert thresholds updated: critical=%.2f warning=%.2f",
            config.critical_threshold,
            config.warning_threshold,
        )

    # ── Reads ────────────────────────────────────────────

    async def _fetch_remote(self, mine: bool = False) -> list[Alert] | None:
        """Fetch backend alerts, or None when the backend is unavailable."""
        if self._backend is None:
            return []
        try:
            if mine:
                alerts = await self._backend.get_my_alerts()
            else:
                alerts = await self._backend.get_active_alerts()
        except UpstreamUnavailableError as e:
            logger.warning("Backend alerts unavailable, using local alerts only: %s", e)
            self._metrics.set_backend_available(False)
            return None
        self._metrics.set_backend_available(True)
        return alerts

    async def list_alerts(
        self,
        filters: AlertFilters | None = None,
        mine: bool = False,
    ) -> AlertListing:
        """List alerts from both origins for display.

        Args:
            filters: Severity/status filters (default ALL/ALL).
            mine: Read the backend's "my alerts" view instead of all active.
                Only the backend view is narrowed. Local alerts carry no
                caller identity and are always included.

        Returns:
            Sorted, filtered alerts and stats over the unfiltered union. When
            the backend is down the listing holds local alerts only and
            ``remote_available`` is False.
        """
        remote = await self._fetch_remote(mine=mine)
        local = await self._local.list_all()

        merged = merge_alerts(remote or [], local)
        return AlertListing(
            alerts=aggregate_alerts(remote or [], local, filters),
            stats=compute_stats(merged),
            remote_available=remote is not None,
        )

    async def get_local_statistics(self) -> AlertStats:
        """Counts over the locally generated alerts only."""
        return compute_stats(await self._local.list_all())

    async def get_backend_statistics(self) -> BackendAlertStatistics | None:
        """Counts computed by the backend, or None when it is unavailable."""
        if self._backend is None:
            return None
        try:
            stats = await self._backend.get_alert_statistics()
        except UpstreamUnavailableError as e:
            logger.warning("Backend alert statistics unavailable: %s", e)
            self._metrics.set_backend_available(False)
            return None
        self._metrics.set_backend_available(True)
        return stats

    async def get_alert(self, alert_id: str | int) -> Alert:
        """Look an alert up in the local bucket first, then the backend.

        Raises:
            NotFoundError: If neither store has the id.
            UpstreamUnavailableError: If the backend must be asked and is down.
        """
        alert = await self._local.get(alert_id)
        if alert is not None:
            return alert
        if self._backend is None:
            raise NotFoundError(alert_id, store="local alert store")
        return await self._backend.get_alert(alert_id)

    # ── Generation ───────────────────────────────────────

    async def check_and_trigger_alerts(
        self,
        snapshots: Iterable[DriverSnapshot | dict[str, Any]],
        now: datetime | None = None,
    ) -> list[Alert]:
        """Main entry point: classify snapshots, dedup, and persist.

        Dedup runs against ACTIVE local alerts plus the backend's active
        alerts when reachable. Each new alert is stored independently; a
        failed write is logged and the rest of the batch continues.

        Args:
            snapshots: Driver readings (DriverSnapshot or backend records).
            now: Creation time for the batch.

        Returns:
            Alerts that were created and stored.
        """
        local_active = await self._local.list_active()
        remote_active = await self._fetch_remote() or []

        candidates = generate_alerts(
            snapshots,
            [*remote_active, *local_active],
            self._config,
            now,
        )
        if not candidates:
            logger.debug("Alert check: no new threshold crossings")
            return []

        persisted = await self._local.put_batch(candidates)
        for alert in persisted:
            self._metrics.record_generated(alert.severity)
        failed = len(candidates) - len(persisted)
        if failed:
            self._metrics.record_persist_failed(failed)

        logger.info(
            "Alerts generated: %d candidates, %d persisted",
            len(candidates),
            len(persisted),
        )
        return persisted

    async def clear_generated_alerts(self) -> int:
        """Drop every locally generated alert. Backend alerts are untouched."""
        removed = await self._local.clear()
        logger.info("Cleared %d generated alerts", removed)
        return removed

    # ── Lifecycle ────────────────────────────────────────

    async def _transition(self, alert_id: str | int, action: str, **inputs: Any) -> Alert:
        try:
            current = await self.get_alert(alert_id)
        except NotFoundError:
            self._metrics.record_transition(action, "unknown", "not_found")
            raise

        try:
            updated = apply_action(current, action, **inputs)
        except InvalidTransitionError:
            self._metrics.record_transition(action, current.origin, "invalid")
            raise
        except ValidationError:
            self._metrics.record_transition(action, current.origin, "validation")
            raise

        try:
            if current.is_local:
                updated = await self._local.put(updated)
            else:
                updated = await self._remote_action(current, action, inputs)
        except Exception:
            self._metrics.record_transition(action, current.origin, "error")
            raise

        self._metrics.record_transition(action, current.origin, "success")
        logger.info(
            "Alert %s %s: %s -> %s",
            alert_id,
            action,
            current.status,
            updated.status,
        )
        return updated

    async def _remote_action(self, alert: Alert, action: str, inputs: dict[str, Any]) -> Alert:
        backend = self._backend
        if action == "acknowledge":
            return await backend.acknowledge_alert(alert.id, inputs["actor_id"])
        if action == "assign":
            return await backend.assign_alert(alert.id, inputs["manager_id"])
        if action == "resolve":
            return await backend.resolve_alert(alert.id, inputs["notes"], inputs.get("actor_id"))
        if action == "dismiss":
            return await backend.dismiss_alert(alert.id, inputs["reason"], inputs.get("actor_id"))
        return await backend.escalate_alert(alert.id, inputs["reason"])

    async def acknowledge(
        self,
        alert_id: str | int,
        actor_id: str | int | None,
        now: datetime | None = None,
    ) -> Alert:
        return await self._transition(alert_id, "acknowledge", actor_id=actor_id, now=now)

    async def assign(self, alert_id: str | int, manager_id: str | int | None) -> Alert:
        return await self._transition(alert_id, "assign", manager_id=manager_id)

    async def resolve(
        self,
        alert_id: str | int,
        notes: str | None,
        actor_id: str | int | None = None,
        now: datetime | None = None,
    ) -> Alert:
        return await self._transition(alert_id, "resolve", notes=notes, actor_id=actor_id, now=now)

    async def dismiss(
        self,
        alert_id: str | int,
        reason: str | None,
        actor_id: str | int | None = None,
        now: datetime | None = None,
    ) -> Alert:
        return await self._transition(alert_id, "dismiss", reason=reason, actor_id=actor_id, now=now)

    async def escalate(self, alert_id: str | int, reason: str | None) -> Alert:
        return await self._transition(alert_id, "escalate", reason=reason)
