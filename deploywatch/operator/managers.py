"""Per-kind resource managers and the refined-event dispatch table.

A manager implements two capabilities, ``sync_resource`` and
``delete_resource``. ``ManagerDispatcher`` picks the manager by object kind
and the capability by refined event type:

    Added / Modified / UpToDate -> sync_resource
    Deleting                    -> logged only
    Deleted                     -> delete_resource
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Protocol

import structlog

from deploywatch.diff.canonical import canonicalize_spec, is_directory_source
from deploywatch.models.events import RefinedEvent, RefinedEventType
from deploywatch.models.resources import (
    CrdConfig,
    HealthStatus,
    ResourceIdentity,
    ResourceSnapshot,
    SyncStatus,
)
from deploywatch.observability.metrics import events_total
from deploywatch.operator.coordinator import DeploymentNotificationCoordinator

_log = structlog.get_logger(component="operator.managers")

APPLICATION = CrdConfig(kind="Application", plural="applications")

_SYNC_PHASES = frozenset({RefinedEventType.ADDED, RefinedEventType.MODIFIED, RefinedEventType.UP_TO_DATE})


class ResourceManager(Protocol):
    """Capabilities of a watched resource kind."""

    crd: CrdConfig

    async def sync_resource(self, obj: dict[str, Any]) -> None: ...

    async def delete_resource(self, obj: dict[str, Any]) -> None: ...


def build_snapshot(obj: dict[str, Any]) -> ResourceSnapshot:
    """Extract health, sync, canonical spec and destination namespace."""
    status = obj.get("status") or {}
    spec = obj.get("spec") or {}
    return ResourceSnapshot(
        health=HealthStatus.parse((status.get("health") or {}).get("status")),
        sync=SyncStatus.parse((status.get("sync") or {}).get("status")),
        spec=canonicalize_spec(spec),
        destination_namespace=(spec.get("destination") or {}).get("namespace") or None,
    )


class ArgoCdApplicationManager:
    """Feeds Argo CD Applications into the notification coordinator."""

    crd = APPLICATION

    def __init__(self, coordinator: DeploymentNotificationCoordinator) -> None:
        self._coordinator = coordinator

    async def sync_resource(self, obj: dict[str, Any]) -> None:
        identity = ResourceIdentity.from_object(obj)
        if is_directory_source(obj.get("spec")):
            _log.debug("directory_source_skipped", resource=str(identity))
            return
        await self._coordinator.handle(identity, build_snapshot(obj))

    async def delete_resource(self, obj: dict[str, Any]) -> None:
        identity = ResourceIdentity.from_object(obj)
        if self._coordinator.cache.evict(identity):
            _log.info("resource_deleted", resource=str(identity))


class ManagerDispatcher:
    """Routes refined events to the manager registered for their kind."""

    def __init__(self, managers: Iterable[ResourceManager]) -> None:
        self._managers: dict[str, ResourceManager] = {m.crd.kind: m for m in managers}

    @property
    def managers(self) -> list[ResourceManager]:
        return list(self._managers.values())

    def get(self, kind: str) -> ResourceManager | None:
        return self._managers.get(kind)

    async def dispatch(self, event: RefinedEvent, kind: str | None = None) -> None:
        """Handle one refined event; *kind* overrides the object's own kind."""
        kind = kind or str(event.resource.get("kind", ""))
        manager = self._managers.get(kind)
        if manager is None:
            _log.warning("no_manager_for_kind", kind=kind)
            return

        events_total.labels(phase=event.phase).inc()
        obj = event.resource
        if event.phase in _SYNC_PHASES:
            await manager.sync_resource(obj)
        elif event.phase == RefinedEventType.DELETED:
            await manager.delete_resource(obj)
        else:
            _log.info(
                "resource_deleting",
                kind=kind,
                resource=str(ResourceIdentity.from_object(obj)),
                detail="deletion is not acted on",
            )
