"""
structlog setup shared by the API, the monitor, and the CLI.

Library modules log through ``logging.getLogger(__name__)``. Their records
are rendered by the same structlog formatter as structlog loggers, so the
request id bound by the API middleware appears on every line.
"""

import logging
import sys

import structlog
from structlog.types import Processor

from src.config.settings import get_settings

# Third-party loggers that are only interesting at WARNING and above
_QUIET_LOGGERS = ("httpx", "httpcore", "asyncio", "uvicorn.access")


def _renderer(json_output: bool) -> Processor:
    if json_output:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def setup_logging(level: str | None = None, json_output: bool | None = None) -> None:
    """
    Configure structlog and the root logging handler.

    Args:
        level: Level name; ``LOG_LEVEL`` from settings when omitted.
        json_output: JSON lines when True, console output when False.
            Defaults to JSON in production only.

    Usage:
        setup_logging()
        structlog.get_logger(__name__).info("Alert resolved", alert_id="alert-1")
    """
    settings = get_settings()
    level_name = (level or settings.log_level).upper()
    if json_output is None:
        json_output = settings.is_production

    pre_chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    structlog.configure(
        processors=pre_chain + [
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    final_processors: list[Processor] = [structlog.stdlib.ProcessorFormatter.remove_processors_meta]
    if json_output:
        final_processors.append(structlog.processors.format_exc_info)
    final_processors.append(_renderer(json_output))

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=final_processors,
        )
    )

    root = logging.getLogger()
    for existing in list(root.handlers):
        if getattr(existing, "_driver_alerts", False):
            root.removeHandler(existing)
    handler._driver_alerts = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(getattr(logging, level_name, logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_context(**kwargs) -> None:
    """Attach key/value pairs (request_id, alert_id, ...) to later log lines."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
