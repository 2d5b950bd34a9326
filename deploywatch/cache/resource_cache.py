"""In-memory per-resource state, keyed by ResourceIdentity.

Entries are immutable ``CacheEntry`` values; every write replaces the whole
entry. The store is only touched from the sequencer's single drain task, so
it carries no lock. Nothing is persisted: a restart rebuilds the cache from
the first event seen for each resource.
"""

from __future__ import annotations

import structlog

from deploywatch.models.resources import CacheEntry, ResourceIdentity, ResourceSnapshot

_log = structlog.get_logger(component="cache.resource_cache")


class ResourceStateCache:
    """Exactly one CacheEntry per identity."""

    def __init__(self) -> None:
        self._store: dict[ResourceIdentity, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, identity: object) -> bool:
        return identity in self._store

    def has(self, identity: ResourceIdentity) -> bool:
        return identity in self._store

    def get(self, identity: ResourceIdentity) -> CacheEntry | None:
        return self._store.get(identity)

    def initialize(self, identity: ResourceIdentity, snapshot: ResourceSnapshot) -> CacheEntry:
        """Record the first observation: no handle, no text, not in progress."""
        _log.debug("cache_initialized", resource=str(identity), health=snapshot.health, sync=snapshot.sync)
        entry = CacheEntry(snapshot=snapshot)
        self._store[identity] = entry
        return entry

    def update(
        self,
        identity: ResourceIdentity,
        snapshot: ResourceSnapshot,
        notification_handle: str | None,
        accumulated_changes: str,
        deployment_in_progress: bool,
    ) -> CacheEntry:
        entry = CacheEntry(
            snapshot=snapshot,
            notification_handle=notification_handle,
            accumulated_changes=accumulated_changes,
            deployment_in_progress=deployment_in_progress,
        )
        self._store[identity] = entry
        return entry

    def evict(self, identity: ResourceIdentity) -> bool:
        removed = self._store.pop(identity, None) is not None
        if removed:
            _log.debug("cache_evicted", resource=str(identity))
        return removed

    def identities(self) -> list[ResourceIdentity]:
        return list(self._store)
