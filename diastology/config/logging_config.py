"""
Structured logging for the navigation engine and the HTTP service.

Engine modules log key/value events through ``get_logger(__name__)``.
Records from the standard library (uvicorn, FastAPI) go through the same
renderer so every line on stdout has one format: JSON in production,
coloured console output elsewhere.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

from diastology.config.config import Settings, get_settings


def build_renderer(settings: Settings) -> Processor:
    """Final processor for the configured output format."""
    if settings.effective_log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def configure_logging(settings: Settings | None = None) -> None:
    """
    Route structlog and standard library logging through one stdout handler.

    Args:
        settings: Settings to configure from; defaults to ``get_settings()``.
    """
    settings = settings or get_settings()

    pre_chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    final: list[Processor] = [structlog.stdlib.ProcessorFormatter.remove_processors_meta]
    if settings.effective_log_format == "json":
        final.append(structlog.processors.format_exc_info)
    final.append(build_renderer(settings))

    structlog.configure(
        processors=pre_chain + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(foreign_pre_chain=pre_chain, processors=final)
    )

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(settings.log_level.upper())

    # Request completion is logged by the app middleware
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Structured logger named after the calling module."""
    return structlog.get_logger(name)


def log_request_context(request_id: str, method: str, path: str, **extra: Any) -> None:
    """
    Replace the bound request context for the current task.

    Every log entry emitted while handling the request carries these
    fields until the next request rebinds them.
    """
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        http_method=method,
        http_path=path,
        **extra,
    )
