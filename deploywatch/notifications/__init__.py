"""Notification backends for deploywatch.

Exports:
    Notifier          -- Abstract create/update interface used by the coordinator.
    NotificationError -- Raised internally by backends for failed calls.
    SlackNotifier     -- Slack Web API backend (``chat.postMessage`` / ``chat.update``).
    build_notifier    -- Factory used by the application bootstrap.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from deploywatch.notifications.manager import NotificationError, Notifier
from deploywatch.notifications.slack import SlackNotifier

if TYPE_CHECKING:
    from deploywatch.models.config import SlackConfig

_log = structlog.get_logger(component="notifications")

__all__ = [
    "NotificationError",
    "Notifier",
    "SlackNotifier",
    "build_notifier",
]


def build_notifier(config: SlackConfig) -> Notifier:
    """Build the Slack notifier; an empty token yields a dry-run notifier."""
    notifier = SlackNotifier(
        token=config.token,
        channel_id=config.channel_id,
        argocd_url=config.argocd_url,
        environment=config.environment,
    )
    if notifier.dry_run:
        _log.warning("slack_dry_run", reason="DEPLOYWATCH_SLACK_TOKEN is empty; messages are only logged")
    else:
        _log.info("slack_notifier_enabled", channel=config.channel_id)
    return notifier
