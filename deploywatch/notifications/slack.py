"""Slack notifier for deploywatch.

Posts one ``rich_text`` message per deployment cycle via ``chat.postMessage``
and rewrites it with ``chat.update`` while the cycle lasts. The message
timestamp (``ts``) returned by Slack is the notification handle.

Without a token the notifier runs dry: payloads are logged at debug level
and no handle is returned.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from deploywatch.models.resources import HealthStatus, ResourceIdentity, ResourceSnapshot, SyncStatus
from deploywatch.notifications.manager import NotificationError, Notifier
from deploywatch.observability.metrics import notifications_total

_log = structlog.get_logger(component="notifications.slack")

_SLACK_API = "https://slack.com/api/"
_ICON_URL = "https://argo-cd.readthedocs.io/en/stable/assets/logo.png"
_MAX_TEXT_LENGTH = 4000

_STATUS_EMOJI: dict[str, str] = {
    HealthStatus.DEGRADED: "x",
    HealthStatus.MISSING: "x",
    HealthStatus.HEALTHY: "white_check_mark",
    HealthStatus.PROGRESSING: "hourglass_flowing_sand",
    HealthStatus.SUSPENDED: "double_vertical_bar",
    SyncStatus.OUT_OF_SYNC: "warning",
    SyncStatus.SYNCED: "white_check_mark",
}


def status_emoji(status: HealthStatus | SyncStatus) -> str:
    return _STATUS_EMOJI.get(status, "question")


class SlackNotifier(Notifier):
    """Delivers deployment notifications through the Slack Web API.

    Args:
        token:       Bot token (``xoxb-...``). Empty string enables dry-run mode.
        channel_id:  Target channel.
        argocd_url:  Optional link target for the application name.
        environment: Anything but ``production`` adds a ``(DEV)`` marker.
        timeout:     HTTP request timeout in seconds.
        transport:   Optional httpx transport (tests pass ``httpx.MockTransport``).
    """

    def __init__(
        self,
        token: str,
        channel_id: str,
        argocd_url: str = "",
        environment: str = "production",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if token and not channel_id:
            raise ValueError("Slack channel_id must not be empty")
        self._token = token
        self._channel_id = channel_id
        self._argocd_url = argocd_url
        self._dev_marker = "" if environment == "production" else "(DEV)"
        self._timeout = timeout
        self._transport = transport

    @property
    def channel_name(self) -> str:
        return "slack"

    @property
    def dry_run(self) -> bool:
        return not self._token

    async def create(self, identity: ResourceIdentity, snapshot: ResourceSnapshot, changes: str) -> str | None:
        payload = {
            "channel": self._channel_id,
            "text": self.build_alt_text(identity, snapshot, changes),
            "blocks": self.build_blocks(identity, snapshot, changes),
            "icon_url": _ICON_URL,
            "unfurl_links": False,
        }
        ts = await self._call("chat.postMessage", payload, identity)
        if ts is not None:
            _log.info("notification_created", resource=str(identity), ts=ts)
        return ts

    async def update(
        self,
        identity: ResourceIdentity,
        snapshot: ResourceSnapshot,
        changes: str,
        handle: str,
    ) -> str | None:
        payload = {
            "channel": self._channel_id,
            "ts": handle,
            "text": self.build_alt_text(identity, snapshot, changes),
            "blocks": self.build_blocks(identity, snapshot, changes),
        }
        ts = await self._call("chat.update", payload, identity)
        if ts is not None:
            _log.info("notification_updated", resource=str(identity), ts=ts)
        return ts

    async def _call(self, method: str, payload: dict[str, Any], identity: ResourceIdentity) -> str | None:
        action = "create" if method == "chat.postMessage" else "update"
        if self.dry_run:
            _log.debug("notification_dry_run", method=method, resource=str(identity), payload=payload)
            return None

        try:
            ts = await self._post(method, payload)
        except NotificationError as exc:
            _log.warning("slack_api_error", method=method, resource=str(identity), error=str(exc))
            ts = None
        except httpx.TimeoutException:
            _log.warning("slack_request_timeout", method=method, resource=str(identity))
            ts = None
        except httpx.HTTPError as exc:
            _log.warning("slack_http_error", method=method, resource=str(identity), error=str(exc))
            ts = None

        notifications_total.labels(action=action, success="true" if ts else "false").inc()
        return ts

    async def _post(self, method: str, payload: dict[str, Any]) -> str:
        headers = {
            "Authorization": f"Bearer {self._token}",
            "Content-Type": "application/json; charset=utf-8",
        }
        async with httpx.AsyncClient(base_url=_SLACK_API, timeout=self._timeout, transport=self._transport) as client:
            response = await client.post(method, json=payload, headers=headers)
        if not response.is_success:
            raise NotificationError(f"HTTP {response.status_code}: {response.text[:200]}")
        body = response.json()
        if not body.get("ok"):
            raise NotificationError(str(body.get("error", "unknown_error")))
        ts = body.get("ts")
        if not ts:
            raise NotificationError("response carries no message ts")
        return str(ts)

    # ------------------------------------------------------------------
    # Message rendering
    # ------------------------------------------------------------------

    def build_blocks(
        self,
        identity: ResourceIdentity,
        snapshot: ResourceSnapshot,
        changes: str,
    ) -> list[dict[str, Any]]:
        elements: list[dict[str, Any]] = [self._info_section(identity, snapshot)]
        if changes:
            elements.append(
                {
                    "type": "rich_text_preformatted",
                    "elements": [{"type": "text", "text": changes}],
                }
            )
        return [{"type": "rich_text", "elements": elements}]

    def _info_section(self, identity: ResourceIdentity, snapshot: ResourceSnapshot) -> dict[str, Any]:
        target = snapshot.destination_namespace
        delimiter = {"type": "text", "text": " "}
        elements: list[dict[str, Any]] = [
            {"type": "emoji", "name": status_emoji(snapshot.health)},
            delimiter,
            {"type": "emoji", "name": status_emoji(snapshot.sync)},
            delimiter,
        ]
        if self._dev_marker:
            elements += [{"type": "text", "text": self._dev_marker}, delimiter]

        if self._argocd_url:
            elements.append(
                {
                    "type": "link",
                    "text": f"{identity.name} / {target}" if target else identity.name,
                    "url": self._argocd_url,
                    "style": {"bold": True},
                }
            )
            if not target:
                elements.append({"type": "text", "text": " / Clustered Resource"})
        else:
            elements.append(
                {
                    "type": "text",
                    "text": f"{identity.name} / {target or 'Clustered Resource'}",
                    "style": {"bold": True},
                }
            )
        return {"type": "rich_text_section", "elements": elements}

    def build_alt_text(self, identity: ResourceIdentity, snapshot: ResourceSnapshot, changes: str) -> str:
        marker = f" {self._dev_marker}" if self._dev_marker else ""
        parts = [
            f"Application Updated: {identity.name}{marker} / {snapshot.destination_namespace or 'Cluster Scoped'}",
            f"Status: health {snapshot.health} / sync {snapshot.sync}",
        ]
        if changes:
            parts.append(f"*Changes:* {changes}")
        return "\n".join(parts)[:_MAX_TEXT_LENGTH]
