"""Structured logging configuration using structlog.

Production deployments emit one JSON object per line on stderr. Any other
environment gets structlog's coloured console renderer, which is easier to
read while following a deployment locally.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

# "verbose" sits below info in some deployments; structlog has no
# such level, so it is folded into debug.
_LEVEL_ALIASES = {"verbose": "debug", "warn": "warning"}


def _resolve_level(level: str) -> int:
    name = _LEVEL_ALIASES.get(level.lower(), level.lower())
    return getattr(logging, name.upper(), logging.INFO)


def setup_logging(level: str = "info", *, json_output: bool = True) -> None:
    """Configure structlog processors, level filter and renderer."""
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
        wrapper_class=structlog.make_filtering_bound_logger(_resolve_level(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Get a logger bound with a component name."""
    return structlog.get_logger(component=component)  # type: ignore[return-value]
