"""Prometheus metrics for deploywatch.

All collectors live in the default registry so the ``/metrics`` endpoint can
render them with ``prometheus_client.generate_latest()``.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge

events_total = Counter(
    "deploywatch_events_total",
    "Watch events handled, by refined phase.",
    ["phase"],
)

handler_errors_total = Counter(
    "deploywatch_handler_errors_total",
    "Event handlers that raised an exception.",
)

watch_reconnects_total = Counter(
    "deploywatch_watch_reconnects_total",
    "Watch subscriptions reopened after a failure.",
    ["plural"],
)

notifications_total = Counter(
    "deploywatch_notifications_total",
    "Outbound notification calls, by action and outcome.",
    ["action", "success"],
)

queue_depth = Gauge(
    "deploywatch_queue_depth",
    "Events waiting in the sequencer queue.",
)
