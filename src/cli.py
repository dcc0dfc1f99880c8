"""
Command-line interface for the driver sentiment alert engine.

Usage:
    driver-alerts check            # One alert pass over current driver scores
    driver-alerts monitor          # Periodic alert passes until interrupted
    driver-alerts list             # Show merged alerts with stats
    driver-alerts clear-generated  # Drop locally generated alerts
    driver-alerts serve            # Run the API server
    driver-alerts health           # Check dependencies
"""

import asyncio
import json
import signal
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import click

from src.admin.service import AdminConfigService
from src.alerts.config import AlertConfig
from src.alerts.errors import AlertEngineError
from src.alerts.monitor import AlertMonitor
from src.alerts.repository import InMemoryAlertRepository, RedisAlertRepository
from src.alerts.schemas import Alert, AlertFilters
from src.alerts.service import AlertService
from src.backend.client import SentimentBackendClient
from src.config.settings import get_settings
from src.drivers.provider import BackendScoreProvider, StaticScoreProvider
from src.observability.logging import setup_logging
from src.observability.metrics import get_metrics


@asynccontextmanager
async def open_alert_service() -> AsyncIterator[tuple[AlertService, SentimentBackendClient | None]]:
    """Build an AlertService from settings and close its clients afterwards.

    Thresholds are loaded from the backend's admin config when reachable.
    """
    settings = get_settings()
    backend = SentimentBackendClient.from_settings(settings) if settings.backend_base_url else None

    redis_client = None
    if settings.uses_redis_store:
        import redis.asyncio as aioredis

        redis_client = aioredis.from_url(
            str(settings.redis_url),
            encoding="utf-8",
            decode_responses=True,
        )
        repo = RedisAlertRepository(redis_client, key=settings.redis_alerts_key)
    else:
        repo = InMemoryAlertRepository()

    service = AlertService(config=AlertConfig(), local_repo=repo, backend=backend)
    admin = AdminConfigService(backend=backend, initial=service.config, on_change=service.update_config)
    try:
        await admin.get()
        yield service, backend
    finally:
        if backend is not None:
            await backend.close()
        if redis_client is not None:
            await redis_client.aclose()


def _load_snapshots(path: str) -> list[dict[str, Any]]:
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("drivers", data.get("content", []))
    if not isinstance(data, list):
        raise click.BadParameter("expected a JSON list of driver records", param_hint="--file")
    return data


def _echo_alerts(alerts: list[Alert]) -> None:
    colors = {"CRITICAL": "red", "HIGH": "yellow", "MEDIUM": "cyan", "LOW": "white"}
    for alert in alerts:
        line = (
            f"  {alert.severity:<8} {alert.status:<12} "
            f"{(alert.driver_name or str(alert.driver_id))[:24]:<24} "
            f"{str(alert.id):<32} [{alert.origin}]"
        )
        click.echo(click.style(line, fg=colors.get(alert.severity)))


@click.group()
@click.option("--debug", is_flag=True, help="Log at DEBUG level")
def main(debug: bool) -> None:
    """Driver Alerts - sentiment alert generation and lifecycle engine."""
    setup_logging(level="DEBUG" if debug else None)


@main.command()
@click.option("--file", "snapshot_file", type=click.Path(exists=True, dir_okay=False),
              help="JSON list of driver records instead of backend scores")
@click.option("--json", "as_json", is_flag=True, help="Print created alerts as JSON")
def check(snapshot_file: str | None, as_json: bool) -> None:
    """Run one alert pass and print the alerts it created."""
    snapshots = _load_snapshots(snapshot_file) if snapshot_file else None

    async def run() -> list[Alert]:
        async with open_alert_service() as (service, backend):
            if snapshots is not None:
                provider = StaticScoreProvider(snapshots)
            elif backend is not None:
                provider = BackendScoreProvider(backend)
            else:
                raise click.UsageError("No backend configured; pass --file with driver scores")
            monitor = AlertMonitor(service, provider)
            return await monitor.trigger()

    created = asyncio.run(run())

    if as_json:
        click.echo(json.dumps([a.to_dict() for a in created], indent=2))
        return

    click.echo(f"\nCreated {len(created)} alerts")
    _echo_alerts(created)


@main.command()
@click.option("--interval", default=None, type=float, help="Seconds between passes")
@click.option("--metrics/--no-metrics", default=True, help="Expose Prometheus metrics")
def monitor(interval: float | None, metrics: bool) -> None:
    """Run periodic alert passes until interrupted."""
    settings = get_settings()
    interval = interval or settings.monitor_interval_seconds

    async def run():
        async with open_alert_service() as (service, backend):
            if backend is None:
                raise click.UsageError("Monitoring requires BACKEND_BASE_URL")

            alert_monitor = AlertMonitor(service, BackendScoreProvider(backend), interval_seconds=interval)

            if metrics:
                get_metrics().start_server()

            # Handle shutdown signals
            loop = asyncio.get_running_loop()
            for sig in (signal.SIGTERM, signal.SIGINT):
                loop.add_signal_handler(sig, lambda: asyncio.create_task(alert_monitor.stop()))

            click.echo(f"Monitoring driver scores every {interval:g}s")
            alert_monitor.start()
            while alert_monitor.is_running:
                await asyncio.sleep(0.5)

    asyncio.run(run())


@main.command("list")
@click.option("--severity", default="ALL", help="ALL, CRITICAL, HIGH, MEDIUM, LOW")
@click.option("--status", "alert_status", default="ALL", help="ALL or a lifecycle status")
@click.option("--mine", is_flag=True, help="Only alerts assigned to the API token's user")
def list_alerts(severity: str, alert_status: str, mine: bool) -> None:
    """Show backend and generated alerts, most severe first."""
    try:
        filters = AlertFilters(severity=severity, status=alert_status)
    except ValueError as e:
        raise click.BadParameter(str(e))

    async def run():
        async with open_alert_service() as (service, _backend):
            return await service.list_alerts(filters, mine=mine)

    listing = asyncio.run(run())
    stats = listing.stats

    click.echo(
        f"\nAlerts: {stats.total} total, {stats.active} active "
        f"({stats.critical} critical, {stats.high} high, {stats.medium} medium, {stats.low} low)"
    )
    if not listing.remote_available:
        click.echo(click.style("Backend unavailable, showing local alerts only", fg="yellow"))
    click.echo("-" * 60)
    _echo_alerts(listing.alerts)


@main.command("clear-generated")
@click.option("--yes", is_flag=True, help="Skip confirmation")
def clear_generated(yes: bool) -> None:
    """Remove every locally generated alert."""
    if not yes:
        click.confirm("Remove all locally generated alerts?", abort=True)

    async def run() -> int:
        async with open_alert_service() as (service, _backend):
            return await service.clear_generated_alerts()

    removed = asyncio.run(run())
    click.echo(f"Removed {removed} generated alerts")


@main.command()
def health() -> None:
    """Check health of the backend and the local alert store."""

    async def run() -> dict[str, bool]:
        results: dict[str, bool] = {}
        settings = get_settings()

        if settings.backend_base_url:
            async with SentimentBackendClient.from_settings(settings) as backend:
                try:
                    await backend.get_admin_config()
                    results["backend"] = True
                except AlertEngineError:
                    results["backend"] = False
        else:
            results["backend_configured"] = False

        if settings.uses_redis_store:
            import redis.asyncio as aioredis

            client = aioredis.from_url(str(settings.redis_url))
            try:
                results["redis"] = bool(await client.ping())
            except Exception:
                results["redis"] = False
            finally:
                await client.aclose()

        return results

    results = asyncio.run(run())

    failing = [name for name in ("backend", "redis") if results.get(name) is False]

    click.echo("\nDependencies:")
    for name, ok in results.items():
        label = "ok" if ok else "down"
        click.echo(click.style(f"  {name:<20} {label}", fg="green" if ok else "red"))

    if failing:
        click.echo(click.style(f"Unreachable: {', '.join(failing)}", fg="red"))
        sys.exit(1)
    click.echo(click.style("Backend and alert store reachable", fg="green"))
    sys.exit(0)


@main.command()
@click.option("--host", default=None, help="Bind address (default API_HOST)")
@click.option("--port", default=None, type=int, help="Bind port (default API_PORT)")
@click.option("--reload", is_flag=True, help="Reload on code changes")
@click.option("--metrics-port", default=None, type=int, help="Metrics server port")
def serve(host: str | None, port: int | None, reload: bool, metrics_port: int | None) -> None:
    """Start the alert API server."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port
    metrics_port = metrics_port or settings.metrics_port

    get_metrics().start_server(port=metrics_port)

    click.echo(f"Alert API listening on {host}:{port} (docs at /docs)")
    click.echo(f"Prometheus metrics on :{metrics_port}/metrics")

    uvicorn.run(
        "src.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )


if __name__ == "__main__":
    main()
