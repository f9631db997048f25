"""
Structured logging for dbspine.

Manifesto:
    Connection and statement events are key-value records, so they can be
    filtered by driver, table or intent once they reach an aggregator.
    Credentials are scrubbed by the processor chain itself; a caller who
    binds ``password=...`` by mistake still never sees it rendered.

Architecture:
    ::

        configure_logging(level, json_format, service)
            │
            ▼
        processor chain
          1. TimeStamper(iso)              (optional)
          2. merge_contextvars             log_context(...) values
          3. add_log_level
          4. _redact_credentials           password / secret / token keys
          5. _add_service_metadata         service.name
          6. _ecs_field_names              @timestamp, log.level (JSON only)
          7. JSONRenderer | ConsoleRenderer

Examples:
    >>> from dbspine.logging import configure_logging, get_logger, log_context
    >>> configure_logging(level="DEBUG", json_format=False)
    >>> logger = get_logger(__name__)
    >>> with log_context(table="users"):
    ...     logger.debug("statement_executed", intent="rows")

Tags:
    logging, structlog, redaction, dbspine
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

REDACTED = "***"
_SECRET_KEYS = frozenset({"password", "passwd", "secret", "token", "api_key"})

_service_name = "dbspine"


def _redact_credentials(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    for key in _SECRET_KEYS.intersection(event_dict):
        if event_dict[key] is not None:
            event_dict[key] = REDACTED
    return event_dict


def _add_service_metadata(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service.name", _service_name)
    return event_dict


def _ecs_field_names(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Rename structlog's default keys to their ECS equivalents."""
    for old, new in (("timestamp", "@timestamp"), ("level", "log.level")):
        if old in event_dict:
            event_dict[new] = event_dict.pop(old)
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "dbspine",
    add_timestamp: bool = True,
) -> None:
    """Configure structlog for dbspine and the embedding application.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR)
        json_format: JSON lines if True, console if False; None picks JSON
            when stdout is not a terminal
        service: Value of the ``service.name`` field
        add_timestamp: Stamp each event with an ISO timestamp
    """
    global _service_name
    _service_name = service

    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level.upper()!r}")

    if json_format is None:
        json_format = not sys.stdout.isatty()

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _redact_credentials,
        _add_service_metadata,
    ]
    if add_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        processors += [_ecs_field_names, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Only the engine logger behind echo=True; the root logger belongs to the application
    logging.getLogger("sqlalchemy.engine").setLevel(numeric_level)


def get_logger(name: str | None = None) -> Any:
    """Return a structlog logger; modules call ``get_logger(__name__)``."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Attach *kwargs* to every following event in this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


@contextmanager
def log_context(**kwargs: Any) -> Iterator[None]:
    """Bind *kwargs* for the duration of a ``with`` block.

    Example:
        with log_context(table="users", batch=3):
            users.insert(row)
    """
    with structlog.contextvars.bound_contextvars(**kwargs):
        yield


__all__ = [
    "REDACTED",
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "log_context",
]
