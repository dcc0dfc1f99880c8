"""
Alert monitor - periodic and on-demand alert passes.

Each pass fetches driver snapshots from a ScoreProvider and hands them to
``AlertService.check_and_trigger_alerts``. Passes never overlap: a pass
requested while another is in flight is skipped. Provider and backend
failures end the pass with no alerts instead of raising.
"""

import asyncio
import time
from typing import TYPE_CHECKING, Any

import structlog

from src.alerts.errors import AlertEngineError
from src.alerts.schemas import Alert, DriverSnapshot
from src.alerts.service import AlertService
from src.observability.metrics import MetricsCollector, get_metrics

if TYPE_CHECKING:
    from src.drivers.provider import ScoreProvider

logger = structlog.get_logger(__name__)


class AlertMonitor:
    """
    Runs alert passes on a fixed interval while started.

    Usage:
        monitor = AlertMonitor(service, provider, interval_seconds=30)
        monitor.start()            # background task
        await monitor.trigger()    # on-demand pass
        await monitor.stop()

    ``run()`` is the blocking form of ``start()`` for standalone processes.
    """

    def __init__(
        self,
        service: AlertService,
        provider: "ScoreProvider",
        interval_seconds: float = 30.0,
        metrics: MetricsCollector | None = None,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._service = service
        self._provider = provider
        self._interval = interval_seconds
        self._metrics = metrics or get_metrics()

        self._running = False
        self._in_flight = False
        # Bumped by stop(); a pass that sees a different value was outlived
        self._stop_epoch = 0
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        """Check if the periodic loop is active."""
        return self._running

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def start(self) -> None:
        """Schedule the periodic loop on the running event loop."""
        if self._task is not None and not self._task.done():
            return
        self._running = True
        self._task = asyncio.create_task(self._loop(), name="alert-monitor")
        logger.info("Alert monitor started", interval_seconds=self._interval)

    async def run(self) -> None:
        """Run the periodic loop until stop() is called or the task is cancelled."""
        self._running = True
        logger.info("Alert monitor running", interval_seconds=self._interval)
        await self._loop()

    async def stop(self) -> None:
        """Stop the loop and cancel the pending timer."""
        logger.info("Stopping alert monitor")
        self._running = False
        self._stop_epoch += 1

        task, self._task = self._task, None
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _loop(self) -> None:
        try:
            while self._running:
                await self.trigger()
                if not self._running:
                    break
                await asyncio.sleep(self._interval)
        except asyncio.CancelledError:
            logger.info("Alert monitor cancelled")
            raise
        finally:
            self._running = False

    async def trigger(
        self,
        snapshots: list[DriverSnapshot | dict[str, Any]] | None = None,
    ) -> list[Alert]:
        """
        Run one alert pass.

        Args:
            snapshots: Readings to check. When None they are fetched from
                the provider.

        Returns:
            Alerts created by this pass; empty when the pass was skipped,
            discarded after stop(), or degraded by a backend failure.
        """
        if self._in_flight:
            logger.debug("Alert pass already in flight, skipping")
            self._metrics.record_monitor_pass("skipped")
            return []

        self._in_flight = True
        epoch = self._stop_epoch
        start_time = time.perf_counter()
        try:
            if snapshots is None:
                snapshots = await self._provider.fetch()

            if epoch != self._stop_epoch:
                logger.info("Discarding driver fetch that completed after stop")
                self._metrics.record_monitor_pass("discarded")
                return []

            created = await self._service.check_and_trigger_alerts(snapshots)
            self._metrics.record_monitor_pass("ok", time.perf_counter() - start_time)
            logger.info(
                "Alert pass complete",
                drivers=len(snapshots),
                created=len(created),
            )
            return created

        except (AlertEngineError, asyncio.TimeoutError) as e:
            logger.warning("Alert pass degraded, no alerts generated", error=str(e))
            self._metrics.record_monitor_pass("degraded")
            return []
        except Exception as e:
            logger.error("Alert pass failed", error=str(e), exc_info=True)
            self._metrics.record_monitor_pass("error")
            return []
        finally:
            self._in_flight = False

    async def health_check(self) -> dict[str, Any]:
        return {
            "running": self._running,
            "in_flight": self._in_flight,
            "interval_seconds": self._interval,
        }
