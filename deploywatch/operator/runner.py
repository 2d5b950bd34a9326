"""Operator wiring: watch subscriptions and periodic full sync feed one sequencer.

Every watch callback only enqueues; classification and dispatch run inside
the sequencer's drain task, so handlers never overlap. The optional full
sync lists every watched kind on a fixed interval and pushes each object
through the same queue as an UpToDate event.
"""

from __future__ import annotations

import asyncio
from functools import partial
from typing import TYPE_CHECKING

import structlog

from deploywatch.collector.classifier import classify
from deploywatch.models.events import RefinedEvent, RefinedEventType, WatchEvent
from deploywatch.models.resources import CrdConfig, Scope

if TYPE_CHECKING:
    from deploywatch.collector.lister import CustomResourceLister
    from deploywatch.collector.sequencer import EventSequencer
    from deploywatch.collector.watcher import WatchManager
    from deploywatch.operator.managers import ManagerDispatcher

_log = structlog.get_logger(component="operator.runner")


class Operator:
    """Owns the watch subscriptions and the full-sync loop of the process.

    Args:
        dispatcher:         Routes refined events to the per-kind managers.
        sequencer:          Process-wide FIFO shared by all event sources.
        watch_manager:      Opens one subscription per managed kind.
        group:              API group of the custom resources.
        version:            API version of the custom resources.
        namespace:          Namespace watched for namespaced kinds.
        lister:             One-shot lister used by the full sync.
        full_sync_interval: Seconds between full syncs; 0 disables them.
    """

    def __init__(
        self,
        dispatcher: ManagerDispatcher,
        sequencer: EventSequencer,
        watch_manager: WatchManager,
        *,
        group: str,
        version: str,
        namespace: str,
        lister: CustomResourceLister | None = None,
        full_sync_interval: int = 0,
    ) -> None:
        self._dispatcher = dispatcher
        self._sequencer = sequencer
        self._watch_manager = watch_manager
        self._group = group
        self._version = version
        self._namespace = namespace
        self._lister = lister
        self._full_sync_interval = full_sync_interval
        self._sync_task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        await self._sequencer.start()
        for manager in self._dispatcher.managers:
            crd = manager.crd
            scope = self._namespace if crd.scope == Scope.NAMESPACED else None
            await self._watch_manager.start(
                self._group,
                self._version,
                crd.plural,
                scope,
                partial(self._on_event, crd),
            )
            _log.info("operator_watching", kind=crd.kind, plural=crd.plural, scope=scope or "cluster")

        if self._lister is not None and self._full_sync_interval > 0:
            self._sync_task = asyncio.create_task(self._full_sync_loop(), name="full-sync")
            _log.info("full_sync_scheduled", interval=self._full_sync_interval)

    async def stop(self) -> None:
        if self._sync_task is not None:
            self._sync_task.cancel()
            await asyncio.gather(self._sync_task, return_exceptions=True)
            self._sync_task = None
        await self._watch_manager.stop()
        await self._sequencer.stop()
        _log.info("operator_stopped")

    # ------------------------------------------------------------------
    # Event flow
    # ------------------------------------------------------------------

    def _on_event(self, crd: CrdConfig, event: WatchEvent) -> None:
        self._sequencer.enqueue(event, partial(self._handle_watch_event, crd))

    async def _handle_watch_event(self, crd: CrdConfig, event: WatchEvent) -> None:
        refined = classify(event)
        _log.debug("watch_event", kind=crd.kind, name=event.name, phase=event.phase, refined=refined.phase)
        await self._dispatcher.dispatch(refined, kind=crd.kind)

    async def _handle_listed(self, crd: CrdConfig, event: RefinedEvent) -> None:
        await self._dispatcher.dispatch(event, kind=crd.kind)

    # ------------------------------------------------------------------
    # Full sync
    # ------------------------------------------------------------------

    async def sync_all(self) -> int:
        """List every managed kind and enqueue each object; return the count."""
        if self._lister is None:
            return 0
        total = 0
        for manager in self._dispatcher.managers:
            crd = manager.crd
            items = await self._lister.list_all(crd)
            for obj in items:
                event = RefinedEvent(phase=RefinedEventType.UP_TO_DATE, resource=obj)
                self._sequencer.enqueue(event, partial(self._handle_listed, crd))
            total += len(items)
        _log.info("full_sync_enqueued", resources=total)
        return total

    async def _full_sync_loop(self) -> None:
        while True:
            await asyncio.sleep(self._full_sync_interval)
            try:
                await self.sync_all()
            except Exception as exc:  # noqa: BLE001
                _log.error("full_sync_failed", error=str(exc), exc_info=True)
