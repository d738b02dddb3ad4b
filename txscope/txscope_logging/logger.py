"""
structlog setup for txscope.

Every line is one JSON object (LOG_FORMAT=console for a coloured dev view)
on stderr, carrying `event_type`, `level`, `logger`, a UTC `timestamp` and
the keyword context of the call. Address-like values are shortened.

Must not import other txscope modules: everything else imports this one.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.getenv("LOG_FORMAT", "json").strip().lower()

_SHORTENED_KEYS = ("address", "target", "payer", "recipient")
_MAX_VALUE_LEN = 16


def _event_to_event_type(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    event = event_dict.pop("event", None)
    if event is not None:
        event_dict.setdefault("event_type", event)
    event_dict.setdefault("message", str(event_dict.get("event_type", "")))
    return event_dict


def _shorten_addresses(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    for key in _SHORTENED_KEYS:
        value = event_dict.get(key)
        if isinstance(value, str) and len(value) > _MAX_VALUE_LEN:
            event_dict[key] = value[:_MAX_VALUE_LEN] + "..."
    return event_dict


def configure_logging(level: str | None = None, fmt: str | None = None) -> None:
    """(Re)configure structlog. Called once at import with LOG_LEVEL / LOG_FORMAT."""
    level_value = getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO)
    renderer: Any
    if (fmt or LOG_FORMAT) == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
            structlog.processors.format_exc_info,
            _event_to_event_type,
            _shorten_addresses,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level_value),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_logging()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Module logger. First argument is the snake_case event type:

        logger = get_logger(__name__)
        logger.info("traversal_page_fetched", address=addr, page=3, items=1000)
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_address(address: str) -> structlog.BoundLogger:
    return get_logger("txscope").bind(address=address)
