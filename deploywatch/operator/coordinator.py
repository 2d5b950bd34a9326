"""Deployment notification coordinator.

Each resource is either Idle or InProgress (``CacheEntry.deployment_in_progress``).
A change seen while Idle opens a new message and marks the resource
InProgress; changes seen while InProgress are appended to the accumulated
text and the same message is edited. When a change leaves the resource
settled (Synced and Healthy) it goes back to Idle, keeping the
handle and text until the next cycle overwrites them.

Notification delivery is best-effort: whatever the notifier does, the cache
transition is committed.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

import structlog

from deploywatch.models.resources import CacheEntry, ResourceIdentity, ResourceSnapshot

if TYPE_CHECKING:
    from deploywatch.cache.resource_cache import ResourceStateCache
    from deploywatch.diff.detector import ChangeDetector
    from deploywatch.notifications.manager import Notifier

_log = structlog.get_logger(component="operator.coordinator")


class Outcome(StrEnum):
    """What ``handle()`` did with an incoming snapshot."""

    INITIALIZED = "initialized"
    UNCHANGED = "unchanged"
    CREATED = "created"
    UPDATED = "updated"


class DeploymentNotificationCoordinator:
    """Owns the resource state cache and drives the per-resource state machine."""

    def __init__(self, cache: ResourceStateCache, detector: ChangeDetector, notifier: Notifier) -> None:
        self._cache = cache
        self._detector = detector
        self._notifier = notifier

    @property
    def cache(self) -> ResourceStateCache:
        return self._cache

    async def handle(self, identity: ResourceIdentity, snapshot: ResourceSnapshot) -> Outcome:
        cached = self._cache.get(identity)
        if cached is None:
            self._cache.initialize(identity, snapshot)
            _log.info("resource_initialized", resource=str(identity), health=snapshot.health, sync=snapshot.sync)
            return Outcome.INITIALIZED

        status_changed = self._detector.has_status_changed(cached.snapshot, snapshot)
        changes = self._detector.change_set(cached.snapshot, snapshot)
        if not status_changed and not changes:
            _log.debug("resource_unchanged", resource=str(identity))
            return Outcome.UNCHANGED

        diff = self._detector.render_changes(cached.snapshot, snapshot, changes)
        _log.debug(
            "resource_changed",
            resource=str(identity),
            status_changed=status_changed,
            changed_paths=len(changes),
            health=snapshot.health,
            sync=snapshot.sync,
        )

        if cached.deployment_in_progress:
            return await self._continue_deployment(identity, cached, snapshot, diff)
        return await self._start_deployment(identity, snapshot, diff)

    async def _start_deployment(self, identity: ResourceIdentity, snapshot: ResourceSnapshot, diff: str) -> Outcome:
        handle = await self._create(identity, snapshot, diff)
        # Any change opens a cycle, even one seen while the status still reads settled.
        self._cache.update(identity, snapshot, handle, diff, True)
        _log.info("deployment_started", resource=str(identity), handle=handle)
        return Outcome.CREATED

    async def _continue_deployment(
        self,
        identity: ResourceIdentity,
        cached: CacheEntry,
        snapshot: ResourceSnapshot,
        diff: str,
    ) -> Outcome:
        merged = self._detector.merge_changes(cached.accumulated_changes, diff)
        if cached.notification_handle is None:
            _log.info("notification_handle_missing", resource=str(identity), action="create")
            handle = await self._create(identity, snapshot, merged)
            outcome = Outcome.CREATED
        else:
            handle = await self._update(identity, snapshot, merged, cached.notification_handle)
            outcome = Outcome.UPDATED

        in_progress = self._detector.is_deployment_in_progress(snapshot)
        self._cache.update(identity, snapshot, handle, merged, in_progress)
        if in_progress:
            _log.info("deployment_updated", resource=str(identity), handle=handle)
        else:
            _log.info("deployment_finished", resource=str(identity), health=snapshot.health, sync=snapshot.sync)
        return outcome

    async def _create(self, identity: ResourceIdentity, snapshot: ResourceSnapshot, text: str) -> str | None:
        try:
            return await self._notifier.create(identity, snapshot, text)
        except Exception as exc:  # noqa: BLE001
            _log.error("notification_failed", resource=str(identity), action="create", error=str(exc))
            return None

    async def _update(
        self,
        identity: ResourceIdentity,
        snapshot: ResourceSnapshot,
        text: str,
        handle: str,
    ) -> str:
        """Edit the open message; the stored handle survives a failed edit."""
        try:
            new_handle = await self._notifier.update(identity, snapshot, text, handle)
        except Exception as exc:  # noqa: BLE001
            _log.error("notification_failed", resource=str(identity), action="update", error=str(exc))
            return handle
        return new_handle or handle
