"""Structured logging configuration using structlog.

The daemon logs JSON lines; the CLI asks for the console renderer so that
humans can read the output next to command results.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any

import structlog


def setup_logging(level: str = "info", json_output: bool = True) -> None:
    """Configure structlog, writing to stderr at *level*."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    renderer: Any = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Get a logger bound with a component name."""
    return structlog.get_logger(component=component)  # type: ignore[return-value]


def to_json_string(value: Any) -> str:
    """Render *value* as compact JSON for a log field; never raises."""
    try:
        return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)
    except (TypeError, ValueError):
        return repr(value)
