"""
Structured logging setup for BoothGuard.

Configures structlog for JSON-formatted structured logging. Every log
line includes timestamp, level, service name, and event. Per-request
context (request_id, source_ip) is bound through ``structlog.contextvars``
by the HTTP middleware and merged into every line emitted while the
request is being handled.
"""

from __future__ import annotations

import logging

import structlog
from structlog.typing import EventDict, Processor, WrappedLogger


def _level_from_name(level_name: str) -> int:
    """Translate a level name such as ``"info"`` into its ``logging`` value."""
    return getattr(logging, level_name.upper(), logging.INFO)


def _service_processor(service_name: str) -> Processor:
    def add_service(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", service_name)
        return event_dict

    return add_service


def configure_logging(
    level: str = "INFO",
    fmt: str = "json",
    service_name: str = "verifier",
) -> None:
    """Configure structlog for the process.

    Should be called once at start-up, before the first logger is used.

    Args:
        level: Minimum level name to emit.
        fmt: ``"json"`` for machine-readable output, ``"console"`` for a
            coloured development renderer.
        service_name: Bound to every line as ``service``.
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _service_processor(service_name),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if fmt == "console":
        renderer: Processor = structlog.dev.ConsoleRenderer(colors=True)
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(_level_from_name(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )
