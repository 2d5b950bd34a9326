"""Watch event data structures and enumerations."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class WatchPhase(StrEnum):
    """Phases delivered by the Kubernetes watch API that we act upon."""

    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"


class RefinedEventType(StrEnum):
    """Lifecycle phase derived from the raw watch phase and object state."""

    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"
    DELETING = "DELETING"
    UP_TO_DATE = "UP_TO_DATE"


@dataclass(frozen=True)
class WatchEvent:
    """One recognized event from a watch subscription."""

    phase: WatchPhase
    object: dict[str, Any]

    @property
    def kind(self) -> str:
        return str(self.object.get("kind", ""))

    @property
    def name(self) -> str:
        return str((self.object.get("metadata") or {}).get("name", ""))


@dataclass(frozen=True)
class RefinedEvent:
    """Ephemeral classification result built per callback."""

    phase: RefinedEventType
    resource: dict[str, Any]
