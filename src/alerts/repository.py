"""Repositories for the locally generated alert bucket.

The local bucket is a keyed collection of Alert records (key = generated
id) with no index beyond a scan. ``AlertService`` depends only on the
``LocalAlertRepository`` interface so the backing store can be swapped:
``InMemoryAlertRepository`` for tests and single-process use,
``RedisAlertRepository`` for a shared Redis hash.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any

from src.alerts.schemas import Alert

logger = logging.getLogger(__name__)


class LocalAlertRepository(ABC):
    """Interface for the local alert bucket."""

    @abstractmethod
    async def get(self, alert_id: str | int) -> Alert | None:
        """Get an alert by id, or None if absent."""

    @abstractmethod
    async def put(self, alert: Alert) -> Alert:
        """Insert or replace an alert keyed by its id."""

    @abstractmethod
    async def list_all(self) -> list[Alert]:
        """Return every stored alert in insertion order."""

    @abstractmethod
    async def clear(self) -> int:
        """Remove every alert in the bucket and return how many were removed."""

    async def put_batch(self, alerts: list[Alert]) -> list[Alert]:
        """Store multiple alerts with per-alert error handling.

        Args:
            alerts: Alerts to persist.

        Returns:
            List of successfully stored alerts.
        """
        stored: list[Alert] = []
        for alert in alerts:
            try:
                stored.append(await self.put(alert))
            except Exception as e:
                logger.error("Failed to persist alert %s: %s", alert.id, e)
        return stored

    async def list_active(self) -> list[Alert]:
        return [a for a in await self.list_all() if a.is_active]

    @staticmethod
    def _check_origin(alert: Alert) -> None:
        if not alert.is_local:
            raise ValueError(
                f"Alert {alert.id} has origin {alert.origin!r}; "
                "only local alerts belong in the local bucket"
            )


class InMemoryAlertRepository(LocalAlertRepository):
    """Dict-backed local bucket for a single process."""

    def __init__(self, alerts: list[Alert] | None = None) -> None:
        self._alerts: dict[str, Alert] = {}
        for alert in alerts or []:
            self._check_origin(alert)
            self._alerts[str(alert.id)] = alert

    async def get(self, alert_id: str | int) -> Alert | None:
        return self._alerts.get(str(alert_id))

    async def put(self, alert: Alert) -> Alert:
        self._check_origin(alert)
        self._alerts[str(alert.id)] = alert
        return alert

    async def list_all(self) -> list[Alert]:
        return list(self._alerts.values())

    async def clear(self) -> int:
        count = len(self._alerts)
        self._alerts.clear()
        return count


class RedisAlertRepository(LocalAlertRepository):
    """Local bucket stored in one Redis hash.

    Key layout: ``{key}`` -> field ``<alert id>`` -> JSON alert record.
    """

    def __init__(self, redis_client: Any, key: str = "alerts:generated") -> None:
        self._redis = redis_client
        self._key = key

    async def get(self, alert_id: str | int) -> Alert | None:
        raw = await self._redis.hget(self._key, str(alert_id))
        if raw is None:
            return None
        return _record_to_alert(raw)

    async def put(self, alert: Alert) -> Alert:
        self._check_origin(alert)
        await self._redis.hset(self._key, str(alert.id), json.dumps(alert.to_dict()))
        return alert

    async def list_all(self) -> list[Alert]:
        raw_records = await self._redis.hvals(self._key)
        alerts: list[Alert] = []
        for raw in raw_records:
            try:
                alerts.append(_record_to_alert(raw))
            except (KeyError, ValueError) as e:
                logger.warning("Skipping unreadable alert record in %s: %s", self._key, e)
        alerts.sort(key=lambda a: a.created_at)
        return alerts

    async def clear(self) -> int:
        count = await self._redis.hlen(self._key)
        await self._redis.delete(self._key)
        return count or 0


def _record_to_alert(raw: str | bytes) -> Alert:
    """Convert a stored JSON record to a local Alert."""
    return Alert.from_dict(json.loads(raw), origin="local")
