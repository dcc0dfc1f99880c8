"""Client for the sentiment backend REST API.

Wraps the CRUD endpoints the alert engine consumes: backend alerts and
their lifecycle actions, alert statistics, driver stats with EMA scores,
and the admin configuration. Failures are mapped to engine errors:

    404 on an alert          -> NotFoundError
    409 (illegal state)      -> InvalidTransitionError
    400 (illegal argument)   -> ValidationError
    transport, 429, 5xx      -> UpstreamUnavailableError

The backend wraps payloads as ``{"success": ..., "data": ...}`` and pages
lists as ``{"content": [...]}``; both envelopes are unwrapped here.
"""

import json
import logging
from typing import Any

from src.alerts.errors import (
    InvalidTransitionError,
    NotFoundError,
    UpstreamUnavailableError,
    ValidationError,
)
from src.alerts.schemas import Alert, BackendAlertStatistics
from src.backend.http_client import HTTPClient, HTTPClientError, RetryConfig
from src.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def backend_message(error: HTTPClientError) -> str:
    """The backend's own error message, falling back to the transport one."""
    if error.response_body:
        try:
            payload = json.loads(error.response_body)
        except ValueError:
            payload = None
        if isinstance(payload, dict):
            message = payload.get("message") or payload.get("error")
            if isinstance(message, str) and message:
                return message
    return str(error)


def unwrap(payload: Any) -> Any:
    """Strip the ``{"data": ...}`` response envelope if present."""
    if isinstance(payload, dict) and "data" in payload and (
        "success" in payload or "message" in payload or len(payload) == 1
    ):
        return payload["data"]
    return payload


def unwrap_list(payload: Any) -> list[dict[str, Any]]:
    """Extract a record list from a flat list, a page, or an envelope."""
    payload = unwrap(payload)
    if isinstance(payload, dict):
        payload = payload.get("content", [])
    if not isinstance(payload, list):
        return []
    return [item for item in payload if isinstance(item, dict)]


class SentimentBackendClient:
    """Async client for the backend's alert, driver-stats, and config APIs.

    Usage:
        async with SentimentBackendClient.from_settings() as backend:
            alerts = await backend.get_active_alerts()
    """

    def __init__(self, http: HTTPClient) -> None:
        self._http = http

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "SentimentBackendClient":
        settings = settings or get_settings()
        http = HTTPClient(
            base_url=settings.backend_base_url,
            token=settings.backend_api_token,
            retry_config=RetryConfig(
                max_retries=settings.max_http_retries,
                max_backoff_seconds=settings.max_backoff_seconds,
            ),
            timeout=settings.backend_timeout_seconds,
        )
        return cls(http)

    async def __aenter__(self) -> "SentimentBackendClient":
        await self._http.open()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self._http.close()

    async def _call(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
        alert_id: str | int | None = None,
        action: str | None = None,
    ) -> Any:
        await self._http.open()
        try:
            response = await self._http.request(method, path, params=params, json_body=json_body)
        except HTTPClientError as e:
            if e.status_code == 404 and alert_id is not None:
                raise NotFoundError(alert_id, store="backend") from e
            if e.status_code == 409:
                raise InvalidTransitionError(
                    action or method.lower(),
                    alert_id if alert_id is not None else path,
                    None,
                    backend_message(e),
                ) from e
            if e.status_code == 400:
                raise ValidationError(
                    action or method.lower(),
                    "request",
                    message=f"Sentiment backend rejected {method} {path}: {backend_message(e)}",
                ) from e
            raise UpstreamUnavailableError(
                f"Sentiment backend request {method} {path} failed: {e}",
                status_code=e.status_code,
            ) from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamUnavailableError(
                f"Sentiment backend returned invalid JSON for {method} {path}",
                status_code=response.status_code,
            ) from e

    @staticmethod
    def _to_alert(payload: dict[str, Any], alert_id: str | int) -> Alert:
        try:
            return Alert.from_dict(payload, origin="remote")
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamUnavailableError(
                f"Sentiment backend returned a malformed record for alert {alert_id}: {e}"
            ) from e

    @staticmethod
    def _to_alerts(records: list[dict[str, Any]]) -> list[Alert]:
        alerts: list[Alert] = []
        for record in records:
            try:
                alerts.append(Alert.from_dict(record, origin="remote"))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed backend alert %r: %s", record.get("id"), e)
        return alerts

    # ── Alerts ───────────────────────────────────────────

    async def get_active_alerts(self) -> list[Alert]:
        """GET /alerts/active."""
        return self._to_alerts(unwrap_list(await self._call("GET", "/alerts/active")))

    async def get_my_alerts(self) -> list[Alert]:
        """GET /alerts/my (alerts for the authenticated user)."""
        return self._to_alerts(unwrap_list(await self._call("GET", "/alerts/my")))

    async def get_alert(self, alert_id: str | int) -> Alert:
        """GET /alerts/{id}.

        Raises:
            NotFoundError: If the backend has no such alert.
            UpstreamUnavailableError: If the record cannot be read.
        """
        payload = unwrap(await self._call("GET", f"/alerts/{alert_id}", alert_id=alert_id))
        if not isinstance(payload, dict):
            raise NotFoundError(alert_id, store="backend")
        return self._to_alert(payload, alert_id)

    async def get_alert_statistics(self) -> BackendAlertStatistics:
        """GET /alerts/statistics: counts over the backend's open alerts."""
        payload = unwrap(await self._call("GET", "/alerts/statistics"))
        if not isinstance(payload, dict):
            raise UpstreamUnavailableError("Sentiment backend returned no alert statistics")
        try:
            return BackendAlertStatistics.from_dict(payload)
        except (TypeError, ValueError) as e:
            raise UpstreamUnavailableError(
                f"Sentiment backend returned malformed alert statistics: {e}"
            ) from e

    async def _alert_action(
        self,
        alert_id: str | int,
        action: str,
        body: dict[str, Any],
    ) -> Alert:
        payload = unwrap(
            await self._call(
                "POST",
                f"/alerts/{alert_id}/{action}",
                json_body=body,
                alert_id=alert_id,
                action=action,
            )
        )
        if not isinstance(payload, dict):
            # Some endpoints answer 200 with an empty body; re-read the record
            return await self.get_alert(alert_id)
        return self._to_alert(payload, alert_id)

    async def acknowledge_alert(self, alert_id: str | int, actor_id: str | int) -> Alert:
        return await self._alert_action(
            alert_id, "acknowledge", {"acknowledgedBy": actor_id, "managerId": actor_id},
        )

    async def assign_alert(self, alert_id: str | int, manager_id: str | int) -> Alert:
        return await self._alert_action(alert_id, "assign", {"managerId": manager_id})

    async def resolve_alert(
        self,
        alert_id: str | int,
        notes: str,
        actor_id: str | int | None = None,
    ) -> Alert:
        return await self._alert_action(
            alert_id, "resolve", {"resolvedBy": actor_id, "resolutionNotes": notes},
        )

    async def dismiss_alert(
        self,
        alert_id: str | int,
        reason: str,
        actor_id: str | int | None = None,
    ) -> Alert:
        return await self._alert_action(
            alert_id, "dismiss", {"dismissedBy": actor_id, "reason": reason},
        )

    async def escalate_alert(self, alert_id: str | int, reason: str) -> Alert:
        return await self._alert_action(alert_id, "escalate", {"reason": reason})

    # ── Drivers ──────────────────────────────────────────

    async def get_driver_stats(self) -> list[dict[str, Any]]:
        """GET /stats/all: one record per driver including ``emaScore``."""
        return unwrap_list(await self._call("GET", "/stats/all"))

    # ── Admin configuration ──────────────────────────────

    async def get_admin_config(self) -> dict[str, Any]:
        """GET /admin/config."""
        payload = unwrap(await self._call("GET", "/admin/config"))
        return payload if isinstance(payload, dict) else {}

    async def save_admin_config(self, payload: dict[str, Any]) -> dict[str, Any]:
        """PUT /admin/config; returns the stored configuration."""
        stored = unwrap(await self._call("PUT", "/admin/config", json_body=payload))
        return stored if isinstance(stored, dict) else payload
