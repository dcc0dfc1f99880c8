"""Admin configuration service.

Loads and saves the alert configuration managed from the admin panel.
Saves are validated before anything is written; a rejected or failed save
leaves the current configuration in effect. Listeners registered through
``on_change`` (typically ``AlertService.update_config``) see every
accepted configuration.
"""

import logging
from typing import Any, Callable

from src.alerts.config import AlertConfig
from src.alerts.errors import ConfigInvalidError, UpstreamUnavailableError

logger = logging.getLogger(__name__)

ConfigListener = Callable[[AlertConfig], None]


class AdminConfigService:
    """Holds the effective AlertConfig and syncs it with the backend.

    Without a backend the configuration lives only in this process.
    """

    def __init__(
        self,
        backend: Any | None = None,
        initial: AlertConfig | None = None,
        on_change: ConfigListener | None = None,
    ) -> None:
        self._backend = backend
        self._current = initial or AlertConfig()
        self._listeners: list[ConfigListener] = []
        if on_change is not None:
            self._listeners.append(on_change)

    @property
    def current(self) -> AlertConfig:
        return self._current

    def add_listener(self, listener: ConfigListener) -> None:
        self._listeners.append(listener)

    def _apply(self, config: AlertConfig) -> None:
        self._current = config
        for listener in self._listeners:
            listener(config)

    async def get(self) -> AlertConfig:
        """Return the backend's configuration, or the cached one.

        A backend outage or an unusable stored config keeps the cached
        configuration in effect.
        """
        if self._backend is None:
            return self._current

        try:
            payload = await self._backend.get_admin_config()
            loaded = AlertConfig.from_admin_payload(payload, base=self._current)
        except UpstreamUnavailableError as e:
            logger.warning("Admin config unavailable, using cached config: %s", e)
            return self._current
        except ConfigInvalidError as e:
            logger.warning("Stored admin config unreadable, using cached config: %s", e)
            return self._current

        problems = loaded.validation_problems()
        if problems:
            logger.warning("Stored admin config rejected: %s", "; ".join(problems))
            return self._current

        if loaded != self._current:
            self._apply(loaded)
        return self._current

    async def save(self, payload: dict[str, Any] | AlertConfig) -> AlertConfig:
        """Validate and persist a configuration.

        Args:
            payload: Camel-case admin payload (partial updates allowed) or
                a full AlertConfig.

        Returns:
            The configuration now in effect.

        Raises:
            ConfigInvalidError: If the configuration violates the save rules.
            UpstreamUnavailableError: If the backend rejected or missed the write.
        """
        if isinstance(payload, AlertConfig):
            candidate = payload
        else:
            candidate = AlertConfig.from_admin_payload(payload, base=self._current)
        candidate.ensure_valid()

        if self._backend is not None:
            stored = await self._backend.save_admin_config(candidate.to_admin_payload())
            candidate = AlertConfig.from_admin_payload(stored, base=candidate).ensure_valid()

        self._apply(candidate)
        logger.info(
            "Admin config saved: critical=%.2f warning=%.2f cooldown=%d",
            candidate.critical_threshold,
            candidate.warning_threshold,
            candidate.cooldown_period,
        )
        return candidate

    async def reset(self) -> AlertConfig:
        """Save the default configuration."""
        return await self.save(AlertConfig())
