"""Logging and metrics for deploywatch."""

from deploywatch.observability.logging import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
