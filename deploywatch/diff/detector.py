"""Change detection between a cached snapshot and an incoming one."""

from __future__ import annotations

from datetime import datetime

from deploywatch.diff.changes import ChangePath, ChangeSet, compute_change_set
from deploywatch.diff.readable import DEFAULT_SEPARATOR, generate_readable_diff
from deploywatch.models.resources import ResourceSnapshot

# Single-leaf changes rendered as a terse one-line summary
_VERSION_ONLY_PATHS: frozenset[ChangePath] = frozenset(
    {
        ("source", "targetRevision"),
        ("source", "helm", "valuesObject", "image", "tag"),
    }
)


class ChangeDetector:
    """Status comparison, spec ChangeSet and human-readable change text.

    Args:
        context_lines: Lines of context around each change in the rendered diff.
        separator:     Marker placed at gaps between rendered regions.
    """

    def __init__(self, context_lines: int = 3, separator: str = DEFAULT_SEPARATOR) -> None:
        self._context_lines = context_lines
        self._separator = separator

    def has_status_changed(self, cached: ResourceSnapshot, update: ResourceSnapshot) -> bool:
        return cached.sync != update.sync or cached.health != update.health

    def is_deployment_in_progress(self, snapshot: ResourceSnapshot) -> bool:
        return not snapshot.settled

    def change_set(self, cached: ResourceSnapshot, update: ResourceSnapshot) -> ChangeSet:
        return compute_change_set(cached.spec, update.spec)

    def merge_changes(self, existing: str, new: str, now: datetime | None = None) -> str:
        """Append *new* under a timestamp marker, unless either side is empty."""
        if not existing or not new:
            return existing or new
        stamp = (now or datetime.now()).strftime("%H:%M")
        return f"{existing}\n\n--- New changes ({stamp}) ---\n{new}"

    def render_changes(self, cached: ResourceSnapshot, update: ResourceSnapshot, changes: ChangeSet) -> str:
        """Render the diff of the two specs, or ``""`` when *changes* is empty."""
        if not changes:
            return ""
        version_only = is_version_only_change(changes)
        diff = generate_readable_diff(
            cached.spec,
            update.spec,
            context_lines=0 if version_only else self._context_lines,
            separator="" if version_only else self._separator,
        )
        return diff.strip()


def is_version_only_change(changes: ChangeSet) -> bool:
    """True when exactly one leaf changed and it is a revision or image tag."""
    return len(changes) == 1 and next(iter(changes)) in _VERSION_ONLY_PATHS
