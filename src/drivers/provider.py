"""Sources of per-driver EMA sentiment snapshots.

The scoring itself happens upstream; providers only read the latest
``(driver_id, name, ema_score)`` triples. Records without a driver id or
with an unparseable score are logged and skipped.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

from src.alerts.schemas import DriverSnapshot

logger = logging.getLogger(__name__)


def parse_snapshots(records: Iterable[dict[str, Any]]) -> list[DriverSnapshot]:
    """Convert driver records to snapshots, dropping malformed ones."""
    snapshots: list[DriverSnapshot] = []
    for record in records:
        try:
            snapshots.append(DriverSnapshot.from_dict(record))
        except (TypeError, ValueError) as e:
            logger.warning("Skipping malformed driver record %r: %s", record, e)
    return snapshots


class ScoreProvider(ABC):
    """Interface for fetching the current driver scores."""

    @abstractmethod
    async def fetch(self) -> list[DriverSnapshot]:
        """Return one snapshot per driver."""


class BackendScoreProvider(ScoreProvider):
    """Reads driver stats from the sentiment backend.

    Raises ``UpstreamUnavailableError`` when the backend is unreachable;
    the monitor treats that as an empty pass.
    """

    def __init__(self, backend: Any) -> None:
        self._backend = backend

    async def fetch(self) -> list[DriverSnapshot]:
        records = await self._backend.get_driver_stats()
        snapshots = parse_snapshots(records)
        logger.debug("Fetched %d driver snapshots from backend", len(snapshots))
        return snapshots


class StaticScoreProvider(ScoreProvider):
    """Serves a fixed list of snapshots."""

    def __init__(self, snapshots: Iterable[DriverSnapshot | dict[str, Any]]) -> None:
        self._snapshots: list[DriverSnapshot] = []
        for item in snapshots:
            if isinstance(item, DriverSnapshot):
                self._snapshots.append(item)
            else:
                self._snapshots.extend(parse_snapshots([item]))

    async def fetch(self) -> list[DriverSnapshot]:
        return list(self._snapshots)
