"""Shared fixtures for deploywatch integration tests.

Provides a fully wired operator (watch manager, sequencer, classifier,
managers, coordinator, cache) whose Kubernetes watch stream is replaced by a
scripted one and whose notifier is an AsyncMock, so the whole pipeline runs
without a cluster or Slack.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from deploywatch.cache.resource_cache import ResourceStateCache
from deploywatch.collector.sequencer import EventSequencer
from deploywatch.collector.watcher import WatchManager
from deploywatch.diff.detector import ChangeDetector
from deploywatch.operator.coordinator import DeploymentNotificationCoordinator
from deploywatch.operator.managers import ArgoCdApplicationManager, ManagerDispatcher
from deploywatch.operator.runner import Operator

# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def make_application(
    name: str = "app1",
    health: str = "Healthy",
    sync: str = "Synced",
    revision: str = "v1.0.0",
    generation: int = 1,
    observed_generation: int | None = None,
    directory: bool = False,
    deletion_timestamp: str | None = None,
) -> dict[str, Any]:
    """Create an Argo CD Application object as delivered by the watch API."""
    source: dict[str, Any] = {"repoURL": "https://charts.example.com", "targetRevision": revision}
    if directory:
        source.update(path="deploy", directory={"recurse": True})
    else:
        source.update(chart=name, helm={"valuesObject": {"replicas": 2}})
    metadata: dict[str, Any] = {"name": name, "namespace": "argocd", "generation": generation}
    if deletion_timestamp:
        metadata["deletionTimestamp"] = deletion_timestamp
    status: dict[str, Any] = {"health": {"status": health}, "sync": {"status": sync, "revision": "abc"}}
    if observed_generation is not None:
        status["observedGeneration"] = observed_generation
    return {
        "apiVersion": "argoproj.io/v1alpha1",
        "kind": "Application",
        "metadata": metadata,
        "spec": {
            "project": "default",
            "source": source,
            "destination": {"server": "https://kubernetes.default.svc", "namespace": "apps"},
            "syncPolicy": {"automated": {"prune": True}},
        },
        "status": status,
    }


# ---------------------------------------------------------------------------
# Scripted watch stream
# ---------------------------------------------------------------------------


class ScriptedStream:
    """Feeds a fixed list of raw watch events, then idles until cancelled."""

    def __init__(self, events: list[dict[str, Any]]) -> None:
        self.events = events
        self.delivered = asyncio.Event()

    def __call__(self) -> AsyncIterator[dict[str, Any]]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[dict[str, Any]]:
        for event in self.events:
            yield event
        self.delivered.set()
        await asyncio.Event().wait()


# ---------------------------------------------------------------------------
# Pipeline fixture
# ---------------------------------------------------------------------------


class Pipeline:
    def __init__(self, notifier: MagicMock) -> None:
        self.notifier = notifier
        self.cache = ResourceStateCache()
        self.coordinator = DeploymentNotificationCoordinator(self.cache, ChangeDetector(context_lines=2), notifier)
        self.sequencer = EventSequencer()
        self.watch_manager = WatchManager(initial_delay=0.01, backoff_factor=2.0, max_delay=0.1)
        self.operator = Operator(
            ManagerDispatcher([ArgoCdApplicationManager(self.coordinator)]),
            self.sequencer,
            self.watch_manager,
            group="argoproj.io",
            version="v1alpha1",
            namespace="argocd",
        )

    async def run(self, events: list[dict[str, Any]]) -> None:
        """Start the operator on *events* and wait until all are handled."""
        stream = ScriptedStream(events)
        self.watch_manager._stream_factory = lambda *_args: stream  # type: ignore[method-assign]
        await self.operator.start()
        await asyncio.wait_for(stream.delivered.wait(), timeout=5.0)
        await self.sequencer.join()


@pytest.fixture()
def notifier() -> MagicMock:
    mock = MagicMock()
    mock.create = AsyncMock(side_effect=[f"ts-{i}" for i in range(1, 20)])
    mock.update = AsyncMock(side_effect=lambda _identity, _snapshot, _text, handle: handle)
    return mock


@pytest.fixture()
async def pipeline(notifier: MagicMock) -> AsyncIterator[Pipeline]:
    p = Pipeline(notifier)
    yield p
    await p.operator.stop()
