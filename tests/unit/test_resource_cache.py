"""Unit tests for deploywatch.cache.resource_cache.ResourceStateCache."""

from __future__ import annotations

from deploywatch.cache.resource_cache import ResourceStateCache
from deploywatch.models.resources import CacheEntry, HealthStatus, ResourceIdentity, ResourceSnapshot, SyncStatus

_APP1 = ResourceIdentity("app1", "argocd")
_APP2 = ResourceIdentity("app2")


def _snapshot(health: HealthStatus = HealthStatus.HEALTHY, sync: SyncStatus = SyncStatus.SYNCED) -> ResourceSnapshot:
    return ResourceSnapshot(health=health, sync=sync, spec={"project": "default"}, destination_namespace="apps")


class TestResourceStateCache:
    def test_initialize_creates_idle_entry(self) -> None:
        cache = ResourceStateCache()

        entry = cache.initialize(_APP1, _snapshot(HealthStatus.PROGRESSING, SyncStatus.OUT_OF_SYNC))

        assert entry == CacheEntry(snapshot=_snapshot(HealthStatus.PROGRESSING, SyncStatus.OUT_OF_SYNC))
        assert entry.notification_handle is None
        assert entry.accumulated_changes == ""
        assert entry.deployment_in_progress is False
        assert cache.get(_APP1) is entry

    def test_update_replaces_whole_entry(self) -> None:
        cache = ResourceStateCache()
        cache.initialize(_APP1, _snapshot())

        cache.update(_APP1, _snapshot(HealthStatus.DEGRADED), "171.001", "diff", True)

        entry = cache.get(_APP1)
        assert entry is not None
        assert entry.snapshot.health == HealthStatus.DEGRADED
        assert entry.notification_handle == "171.001"
        assert entry.accumulated_changes == "diff"
        assert entry.deployment_in_progress is True

    def test_one_entry_per_identity(self) -> None:
        cache = ResourceStateCache()
        cache.initialize(_APP1, _snapshot())
        cache.update(_APP1, _snapshot(), None, "", False)
        cache.initialize(_APP2, _snapshot())

        assert len(cache) == 2
        assert set(cache.identities()) == {_APP1, _APP2}

    def test_identity_equality_by_value(self) -> None:
        cache = ResourceStateCache()
        cache.initialize(ResourceIdentity("app1", "argocd"), _snapshot())

        assert cache.has(ResourceIdentity("app1", "argocd"))
        assert ResourceIdentity("app1", "argocd") in cache
        assert not cache.has(ResourceIdentity("app1", "other"))
        assert not cache.has(ResourceIdentity("app1"))

    def test_evict(self) -> None:
        cache = ResourceStateCache()
        cache.initialize(_APP1, _snapshot())

        assert cache.evict(_APP1) is True
        assert cache.evict(_APP1) is False
        assert cache.get(_APP1) is None
        assert len(cache) == 0


class TestResourceIdentity:
    def test_from_object(self) -> None:
        identity = ResourceIdentity.from_object({"metadata": {"name": "app1", "namespace": "argocd"}})
        assert identity == _APP1
        assert str(identity) == "argocd/app1"

    def test_cluster_scoped(self) -> None:
        identity = ResourceIdentity.from_object({"metadata": {"name": "app2"}})
        assert identity.namespace is None
        assert str(identity) == "app2"


class TestStatusParsing:
    def test_known_values(self) -> None:
        assert HealthStatus.parse("Progressing") == HealthStatus.PROGRESSING
        assert SyncStatus.parse("OutOfSync") == SyncStatus.OUT_OF_SYNC

    def test_unknown_values_fall_back(self) -> None:
        assert HealthStatus.parse("Exploded") == HealthStatus.N_A
        assert HealthStatus.parse(None) == HealthStatus.N_A
        assert SyncStatus.parse("") == SyncStatus.N_A

    def test_settled(self) -> None:
        assert _snapshot().settled
        assert not _snapshot(sync=SyncStatus.OUT_OF_SYNC).settled
