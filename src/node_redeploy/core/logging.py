"""Structured logging configuration with structlog."""

from __future__ import annotations

import logging
import sys
import uuid
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import Processor

if TYPE_CHECKING:
    from node_redeploy.core.config import Settings

SERVICE_NAME = "node-redeploy"


def add_service_context(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Add service metadata to all log entries."""
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def bind_run_context(command: str, run_id: str | None = None) -> str:
    """Start a fresh log context for one invocation.

    Every later event carries ``run_id`` and ``command``. The pipeline adds
    ``workdir`` once the backend directory is known.

    Returns:
        The run id that was bound.
    """
    run_id = run_id or uuid.uuid4().hex[:12]
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(run_id=run_id, command=command)
    return run_id


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structlog for interactive or unattended runs.

    Events are rendered by structlog and written through the standard
    library root handler on stderr, so that operator output and ``--json``
    reports on stdout stay clean.

    Args:
        settings: Tool settings. If None, uses defaults.
    """
    if settings is None:
        from node_redeploy.core.config import get_settings

        settings = get_settings()

    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    is_development = settings.ENVIRONMENT == "development"
    is_tty = sys.stderr.isatty()

    common_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        add_service_context,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if is_development or is_tty:
        processors = [
            *common_processors,
            structlog.dev.ConsoleRenderer(colors=is_tty),
        ]
    else:
        processors = [
            *common_processors,
            structlog.processors.format_exc_info,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=log_level,
        force=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a configured structlog logger.

    Args:
        name: Logger name. If None, uses caller's module name.

    Returns:
        Configured bound logger with context support.
    """
    return structlog.get_logger(name)
