"""Reduce a raw watch phase plus object state to a refined lifecycle phase."""

from __future__ import annotations

from typing import Any

from deploywatch.models.events import RefinedEvent, RefinedEventType, WatchEvent, WatchPhase


def refine_event_type(phase: WatchPhase, obj: dict[str, Any]) -> RefinedEventType:
    """Classify an event, first matching rule wins.

    1. DELETED stays Deleted.
    2. A set ``metadata.deletionTimestamp`` means Deleting.
    3. ``status.observedGeneration`` present and equal to
       ``metadata.generation`` means UpToDate.
    4. Otherwise the raw phase (Added / Modified).
    """
    if phase == WatchPhase.DELETED:
        return RefinedEventType.DELETED

    metadata = obj.get("metadata") or {}
    if metadata.get("deletionTimestamp") is not None:
        return RefinedEventType.DELETING

    status = obj.get("status") or {}
    observed = status.get("observedGeneration")
    if observed is not None and observed == metadata.get("generation"):
        return RefinedEventType.UP_TO_DATE

    return RefinedEventType(phase.value)


def classify(event: WatchEvent) -> RefinedEvent:
    return RefinedEvent(phase=refine_event_type(event.phase, event.object), resource=event.object)
