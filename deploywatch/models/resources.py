"""Resource identity, snapshot and cache data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class HealthStatus(StrEnum):
    """Aggregate application health reported by Argo CD."""

    HEALTHY = "Healthy"
    PROGRESSING = "Progressing"
    DEGRADED = "Degraded"
    SUSPENDED = "Suspended"
    MISSING = "Missing"
    UNKNOWN = "Unknown"
    # Anything the control plane reports that is not listed above
    N_A = "N/A"

    @classmethod
    def parse(cls, value: object) -> HealthStatus:
        try:
            return cls(str(value))
        except ValueError:
            return cls.N_A


class SyncStatus(StrEnum):
    """Drift state between desired and live configuration."""

    SYNCED = "Synced"
    OUT_OF_SYNC = "OutOfSync"
    UNKNOWN = "Unknown"
    N_A = "N/A"

    @classmethod
    def parse(cls, value: object) -> SyncStatus:
        try:
            return cls(str(value))
        except ValueError:
            return cls.N_A


class Scope(StrEnum):
    """Whether a watched kind lives in a namespace or at cluster level."""

    NAMESPACED = "Namespaced"
    CLUSTER = "Cluster"


@dataclass(frozen=True)
class CrdConfig:
    """Names of a watched custom resource kind."""

    kind: str
    plural: str
    scope: Scope = Scope.NAMESPACED


@dataclass(frozen=True)
class ResourceIdentity:
    """Stable cache key. ``namespace=None`` denotes a cluster-scoped resource."""

    name: str
    namespace: str | None = None

    @classmethod
    def from_object(cls, obj: dict[str, Any]) -> ResourceIdentity:
        metadata = obj.get("metadata") or {}
        return cls(name=str(metadata.get("name", "")), namespace=metadata.get("namespace") or None)

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}" if self.namespace else self.name


@dataclass(frozen=True)
class ResourceSnapshot:
    """Last-known state of an Application, replaced wholesale on every update.

    ``spec`` is the canonical spec (volatile blocks such as ``syncPolicy``
    already removed), so two snapshots can be compared directly.
    """

    health: HealthStatus
    sync: SyncStatus
    spec: dict[str, Any] = field(default_factory=dict)
    destination_namespace: str | None = None

    @property
    def settled(self) -> bool:
        """True when the resource is both fully synced and fully healthy."""
        return self.sync == SyncStatus.SYNCED and self.health == HealthStatus.HEALTHY


@dataclass(frozen=True)
class CacheEntry:
    """Per-resource state plus notification bookkeeping.

    ``notification_handle`` is the opaque reference of the outbound message
    for the current (or last) deployment cycle; ``accumulated_changes`` is
    the coalesced change text shown in that message.
    """

    snapshot: ResourceSnapshot
    notification_handle: str | None = None
    accumulated_changes: str = ""
    deployment_in_progress: bool = False
