"""Self-healing watch subscriptions for custom resources.

Each (group, version, plural, scope) gets its own ``WatchSubscription``
running in its own asyncio task, so one kind's failures never affect
another's. A subscription is a small state machine::

    IDLE -> CONNECTING -> WATCHING -> (stream error) -> BACKING_OFF -> CONNECTING ...
                      \\-> (open error) ------------/
    any state -> STOPPED

Back-off: the first failure waits ``initial_delay``; every failure then
multiplies the delay by ``backoff_factor`` up to ``max_delay``. The delay
returns to ``initial_delay`` once a reopened stream delivers an event.
A clean end of stream (server-side watch timeout) reconnects after a short
pause, without back-off.

``stop()`` sets the stopped flag before cancelling the task; the back-off
wait re-checks the flag before opening a new stream, so a reconnect that
was already scheduled can never resurrect a stopped subscription.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import AsyncIterator, Awaitable, Callable
from enum import StrEnum
from typing import TYPE_CHECKING, Any

import structlog
from kubernetes_asyncio import watch

from deploywatch.models.events import WatchEvent, WatchPhase
from deploywatch.observability.metrics import watch_reconnects_total

if TYPE_CHECKING:
    from kubernetes_asyncio.client import CustomObjectsApi

_log = structlog.get_logger(component="collector.watcher")

# Pause between a cleanly closed stream and the next one
_RECONNECT_PAUSE = 0.1

StreamFactory = Callable[[], AsyncIterator[dict[str, Any]]]
OnEvent = Callable[[WatchEvent], Awaitable[None] | None]
OnFail = Callable[[BaseException], Awaitable[None] | None]


class SubscriptionError(Exception):
    """Transport failure of a watch stream (never fatal, always retried)."""


class SubscriptionState(StrEnum):
    IDLE = "idle"
    CONNECTING = "connecting"
    WATCHING = "watching"
    BACKING_OFF = "backing_off"
    STOPPED = "stopped"


async def _maybe_await(result: Awaitable[None] | None) -> None:
    if inspect.isawaitable(result):
        await result


class WatchSubscription:
    """One resilient subscription to a single resource kind and scope.

    Args:
        resource_id:    Label used in logs and metrics (e.g. ``applications.argoproj.io/v1alpha1``).
        scope:          Namespace being watched, or ``None`` for cluster-wide.
        open_stream:    Zero-argument callable returning a fresh async iterator of
                        raw watch events (``{"type": ..., "object": ...}``).
        on_event:       Called for every recognized phase.
        on_fail:        Called with the exception on every transport failure.
        initial_delay:  First back-off delay in seconds.
        backoff_factor: Multiplier applied after each failure.
        max_delay:      Upper bound of the back-off delay.
    """

    def __init__(
        self,
        resource_id: str,
        scope: str | None,
        open_stream: StreamFactory,
        on_event: OnEvent,
        on_fail: OnFail | None = None,
        *,
        initial_delay: float = 5.0,
        backoff_factor: float = 2.0,
        max_delay: float = 300.0,
    ) -> None:
        self.resource_id = resource_id
        self.scope = scope
        self._open_stream = open_stream
        self._on_event = on_event
        self._on_fail = on_fail
        self._initial_delay = initial_delay
        self._backoff_factor = backoff_factor
        self._max_delay = max_delay

        self.state = SubscriptionState.IDLE
        self._delay = initial_delay
        self._consecutive_failures = 0
        self._stopped = False
        self._task: asyncio.Task[None] | None = None

    @property
    def delay(self) -> float:
        """Delay the next failure will wait before reconnecting."""
        return self._delay

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    @property
    def stopped(self) -> bool:
        return self._stopped

    @property
    def _where(self) -> str:
        return f"namespace '{self.scope}'" if self.scope else "cluster"

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Launch the watch loop as a background task. Idempotent."""
        if self._task is not None or self._stopped:
            return
        self._task = asyncio.create_task(self._run(), name=f"watch-{self.resource_id}")

    def request_stop(self) -> None:
        """Mark the subscription stopped and abort its stream.

        Safe to call from inside the subscription's own callbacks.
        """
        self._stopped = True
        self.state = SubscriptionState.STOPPED
        if self._task is not None and self._task is not asyncio.current_task():
            self._task.cancel()

    async def stop(self) -> None:
        self.request_stop()
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None
        self.state = SubscriptionState.STOPPED
        _log.info("watch_stopped", resource=self.resource_id, scope=self._where)

    async def wait(self) -> None:
        """Block until the watch loop exits (only happens after a stop)."""
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)

    # ------------------------------------------------------------------
    # Watch loop
    # ------------------------------------------------------------------

    async def _run(self) -> None:
        while not self._stopped:
            self.state = SubscriptionState.CONNECTING
            try:
                await self._consume()
            except asyncio.CancelledError:
                raise
            except Exception as exc:  # noqa: BLE001
                await self._handle_failure(exc)
            else:
                if not self._stopped:
                    _log.debug("watch_stream_closed", resource=self.resource_id, scope=self._where)
                    await asyncio.sleep(_RECONNECT_PAUSE)
        self.state = SubscriptionState.STOPPED

    async def _consume(self) -> None:
        stream = self._open_stream()
        _log.info("watch_started", resource=self.resource_id, scope=self._where)
        first = True
        async for raw in stream:
            if first:
                first = False
                self.state = SubscriptionState.WATCHING
                self._reset_backoff()
            await self._dispatch(raw)
            if self._stopped:
                return

    async def _dispatch(self, raw: dict[str, Any]) -> None:
        raw_type = str(raw.get("type", ""))
        try:
            phase = WatchPhase(raw_type)
        except ValueError:
            _log.warning(
                "unknown_watch_phase",
                resource=self.resource_id,
                phase=raw_type,
                detail=_error_message(raw),
            )
            return
        obj = raw.get("object")
        if not isinstance(obj, dict):
            _log.warning("watch_event_without_object", resource=self.resource_id, phase=raw_type)
            return
        await _maybe_await(self._on_event(WatchEvent(phase=phase, object=obj)))

    async def _handle_failure(self, exc: Exception) -> None:
        self._consecutive_failures += 1
        _log.error(
            "watch_failed",
            resource=self.resource_id,
            scope=self._where,
            error=str(exc) or type(exc).__name__,
            consecutive_failures=self._consecutive_failures,
            retry_in=self._delay,
        )
        if self._on_fail is not None:
            try:
                await _maybe_await(self._on_fail(exc))
            except Exception as cb_exc:  # noqa: BLE001
                _log.error("watch_on_fail_callback_failed", resource=self.resource_id, error=str(cb_exc))

        await self._backoff()

    async def _backoff(self) -> None:
        delay = self._delay
        self._delay = min(self._delay * self._backoff_factor, self._max_delay)
        self.state = SubscriptionState.BACKING_OFF
        await asyncio.sleep(delay)
        # A stop requested while we were sleeping wins over the reconnect.
        if self._stopped:
            _log.debug("watch_reconnect_cancelled", resource=self.resource_id)
            return
        watch_reconnects_total.labels(plural=self.resource_id).inc()
        _log.info("watch_reconnecting", resource=self.resource_id, scope=self._where, waited=delay)

    def _reset_backoff(self) -> None:
        if self._consecutive_failures:
            _log.info(
                "watch_recovered",
                resource=self.resource_id,
                after_failures=self._consecutive_failures,
            )
        self._delay = self._initial_delay
        self._consecutive_failures = 0


class WatchManager:
    """Creates and owns the watch subscriptions of the whole process."""

    def __init__(
        self,
        api: CustomObjectsApi | None = None,
        *,
        initial_delay: float = 5.0,
        backoff_factor: float = 2.0,
        max_delay: float = 300.0,
        timeout_seconds: int = 300,
    ) -> None:
        self._api = api
        self._initial_delay = initial_delay
        self._backoff_factor = backoff_factor
        self._max_delay = max_delay
        self._timeout_seconds = timeout_seconds
        self._subscriptions: list[WatchSubscription] = []

    @property
    def subscriptions(self) -> list[WatchSubscription]:
        return list(self._subscriptions)

    async def start(
        self,
        group: str,
        version: str,
        plural: str,
        scope: str | None,
        on_event: OnEvent,
        on_fail: OnFail | None = None,
        *,
        open_stream: StreamFactory | None = None,
    ) -> WatchSubscription:
        """Open a subscription for *plural* in *scope* (``None`` = cluster).

        ``open_stream`` replaces the Kubernetes stream, which tests use to feed
        scripted events.
        """
        resource_id = f"{plural}.{group}/{version}" if group else f"{plural}/{version}"
        subscription = WatchSubscription(
            resource_id,
            scope,
            open_stream or self._stream_factory(group, version, plural, scope),
            on_event,
            on_fail,
            initial_delay=self._initial_delay,
            backoff_factor=self._backoff_factor,
            max_delay=self._max_delay,
        )
        self._subscriptions.append(subscription)
        await subscription.start()
        return subscription

    async def stop(self) -> None:
        """Abort every open subscription, including pending reconnects."""
        subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            subscription.request_stop()
        await asyncio.gather(*(s.stop() for s in subscriptions), return_exceptions=True)

    def _stream_factory(self, group: str, version: str, plural: str, scope: str | None) -> StreamFactory:
        api = self._api
        if api is None:
            raise SubscriptionError("WatchManager has no CustomObjectsApi; pass open_stream instead")
        timeout = self._timeout_seconds

        async def _open() -> AsyncIterator[dict[str, Any]]:
            w = watch.Watch()
            if scope:
                stream = w.stream(
                    api.list_namespaced_custom_object, group, version, scope, plural, timeout_seconds=timeout
                )
            else:
                stream = w.stream(api.list_cluster_custom_object, group, version, plural, timeout_seconds=timeout)
            async with stream as events:
                async for event in events:
                    yield event

        return _open


def _error_message(raw: dict[str, Any]) -> str:
    obj = raw.get("object")
    if isinstance(obj, dict):
        return str(obj.get("message", ""))
    return ""
