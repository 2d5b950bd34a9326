"""Core data structures for deploywatch."""

from deploywatch.models.config import DeployWatchConfig
from deploywatch.models.events import RefinedEvent, RefinedEventType, WatchEvent, WatchPhase
from deploywatch.models.resources import (
    CacheEntry,
    CrdConfig,
    HealthStatus,
    ResourceIdentity,
    ResourceSnapshot,
    Scope,
    SyncStatus,
)

__all__ = [
    "CacheEntry",
    "CrdConfig",
    "DeployWatchConfig",
    "HealthStatus",
    "RefinedEvent",
    "RefinedEventType",
    "ResourceIdentity",
    "ResourceSnapshot",
    "Scope",
    "SyncStatus",
    "WatchEvent",
    "WatchPhase",
]
