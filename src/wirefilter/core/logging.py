"""
Structured logging for wirefilter.

One structlog setup shared by every module. ``configure_logging`` is called
once at startup (the CLI does it from ``WireFilterSettings``); modules then
hold ``logger = get_logger(__name__)`` and emit dotted event names with
key/value fields.

Examples:
    >>> from wirefilter.core.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", json_format=False)
    >>> logger = get_logger(__name__)
    >>> logger.info("node.materialized", node_id=42, mode="diff")

Output (JSON format):
    ::

        {
          "@timestamp": "2026-10-17T10:00:00Z",
          "log.level": "info",
          "service.name": "wirefilter",
          "event": "node.materialized",
          "node_id": 42,
          "mode": "diff"
        }
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_service = "wirefilter"

# structlog key -> ECS field name
_ECS_FIELDS = {"timestamp": "@timestamp", "level": "log.level"}


def _stamp_service(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service.name", _service)
    return event_dict


def _rename_ecs_fields(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    for key, ecs_key in _ECS_FIELDS.items():
        if key in event_dict:
            event_dict[ecs_key] = event_dict.pop(key)
    return event_dict


def _processors(json_format: bool, add_timestamp: bool) -> list[Processor]:
    chain: list[Processor] = []
    if add_timestamp:
        chain.append(structlog.processors.TimeStamper(fmt="iso"))
    chain += [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _stamp_service,
    ]
    if json_format:
        chain += [_rename_ecs_fields, structlog.processors.JSONRenderer()]
    else:
        chain.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    return chain


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "wirefilter",
    add_timestamp: bool = True,
) -> None:
    """Set up structlog for the process.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR)
        json_format: JSON lines when True, console when False; None picks
            JSON whenever stderr is not a terminal
        service: Value of the ``service.name`` field
        add_timestamp: Stamp every event with an ISO timestamp
    """
    global _service
    _service = service

    if json_format is None:
        json_format = not sys.stderr.isatty()
    threshold = logging.getLevelName(level.upper())
    if not isinstance(threshold, int):
        threshold = logging.INFO

    structlog.configure(
        processors=_processors(json_format, add_timestamp),
        wrapper_class=structlog.make_filtering_bound_logger(threshold),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=threshold)


def get_logger(name: str | None = None) -> Any:
    """Logger for ``name`` (usually ``__name__``); resolved lazily on first use."""
    if name:
        return structlog.get_logger(name)
    return structlog.get_logger()


def bind_context(**kwargs: Any) -> None:
    """Attach fields to every event logged from the current context.

    Example:
        bind_context(tick=120)
        logger.debug("scheduler.pass")  # carries tick=120
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)
