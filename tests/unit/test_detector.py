"""Unit tests for deploywatch.diff.detector.ChangeDetector."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from deploywatch.diff.canonical import canonicalize_spec
from deploywatch.diff.detector import ChangeDetector, is_version_only_change
from deploywatch.diff.readable import DEFAULT_SEPARATOR
from deploywatch.models.resources import HealthStatus, ResourceSnapshot, SyncStatus

# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _snapshot(
    revision: str = "v1.1.0",
    health: HealthStatus = HealthStatus.HEALTHY,
    sync: SyncStatus = SyncStatus.SYNCED,
    tag: str = "1.0",
    replicas: int = 2,
) -> ResourceSnapshot:
    spec: dict[str, Any] = {
        "source": {
            "repoURL": "https://charts.example.com",
            "targetRevision": revision,
            "chart": "app1",
            "helm": {"valuesObject": {"image": {"tag": tag}, "replicas": replicas}},
        },
        "destination": {"namespace": "apps", "server": "https://kubernetes.default.svc"},
        "project": "default",
    }
    return ResourceSnapshot(health=health, sync=sync, spec=canonicalize_spec(spec), destination_namespace="apps")


# ===========================================================================
# TestChangeDetector
# ===========================================================================


class TestStatusFlags:
    def test_status_unchanged(self) -> None:
        assert not ChangeDetector().has_status_changed(_snapshot(), _snapshot())

    def test_health_change(self) -> None:
        assert ChangeDetector().has_status_changed(_snapshot(), _snapshot(health=HealthStatus.PROGRESSING))

    def test_sync_change(self) -> None:
        assert ChangeDetector().has_status_changed(_snapshot(), _snapshot(sync=SyncStatus.OUT_OF_SYNC))

    def test_in_progress_unless_synced_and_healthy(self) -> None:
        detector = ChangeDetector()
        assert not detector.is_deployment_in_progress(_snapshot())
        assert detector.is_deployment_in_progress(_snapshot(health=HealthStatus.DEGRADED))
        assert detector.is_deployment_in_progress(_snapshot(sync=SyncStatus.OUT_OF_SYNC))
        assert detector.is_deployment_in_progress(_snapshot(health=HealthStatus.N_A, sync=SyncStatus.N_A))


class TestMergeChanges:
    def test_appends_with_timestamp_marker(self) -> None:
        merged = ChangeDetector().merge_changes("first", "second", now=datetime(2026, 3, 1, 14, 5))
        assert merged == "first\n\n--- New changes (14:05) ---\nsecond"

    def test_empty_existing_takes_new(self) -> None:
        assert ChangeDetector().merge_changes("", "second") == "second"

    def test_empty_new_keeps_existing(self) -> None:
        assert ChangeDetector().merge_changes("first", "") == "first"

    def test_both_empty(self) -> None:
        assert ChangeDetector().merge_changes("", "") == ""


class TestRenderChanges:
    def test_no_changes_renders_nothing(self) -> None:
        detector = ChangeDetector()
        old, new = _snapshot(), _snapshot(health=HealthStatus.PROGRESSING)
        assert detector.render_changes(old, new, detector.change_set(old, new)) == ""

    def test_revision_only_change_is_terse(self) -> None:
        detector = ChangeDetector(context_lines=3)
        old, new = _snapshot(revision="v1.1.0"), _snapshot(revision="v1.1.1")
        changes = detector.change_set(old, new)

        text = detector.render_changes(old, new, changes)

        assert changes == {("source", "targetRevision"): "v1.1.1"}
        lines = text.splitlines()
        assert len(lines) == 2
        assert lines[0].endswith("-  targetRevision: v1.1.0")
        assert lines[1].endswith("+  targetRevision: v1.1.1")
        assert DEFAULT_SEPARATOR not in text

    def test_image_tag_only_change_is_terse(self) -> None:
        detector = ChangeDetector(context_lines=3)
        old, new = _snapshot(tag="1.0"), _snapshot(tag="1.1")

        text = detector.render_changes(old, new, detector.change_set(old, new))

        lines = text.splitlines()
        assert len(lines) == 2
        assert "tag: '1.0'" in lines[0]
        assert "tag: '1.1'" in lines[1]

    def test_other_change_renders_context_and_separator(self) -> None:
        detector = ChangeDetector(context_lines=1)
        old, new = _snapshot(replicas=2), _snapshot(replicas=3)

        text = detector.render_changes(old, new, detector.change_set(old, new))

        assert "replicas: 2" in text
        assert "replicas: 3" in text
        assert DEFAULT_SEPARATOR in text
        assert len(text.splitlines()) > 2

    def test_two_leaves_are_not_terse(self) -> None:
        detector = ChangeDetector(context_lines=2)
        old = _snapshot(revision="v1", tag="1.0")
        new = _snapshot(revision="v2", tag="1.1")

        text = detector.render_changes(old, new, detector.change_set(old, new))

        assert DEFAULT_SEPARATOR in text


class TestIsVersionOnlyChange:
    def test_target_revision(self) -> None:
        assert is_version_only_change({("source", "targetRevision"): "v2"})

    def test_image_tag(self) -> None:
        assert is_version_only_change({("source", "helm", "valuesObject", "image", "tag"): "2"})

    def test_other_single_leaf(self) -> None:
        assert not is_version_only_change({("source", "chart"): "other"})

    def test_two_leaves(self) -> None:
        assert not is_version_only_change({("source", "targetRevision"): "v2", ("project",): "x"})

    def test_empty(self) -> None:
        assert not is_version_only_change({})
