"""Process-wide FIFO that runs event handlers strictly one at a time.

Every watch subscription and the periodic full sync push into the same
sequencer, so no two handlers ever overlap and the per-resource cache needs
no locking.

The queue is unbounded: a slow handler delays all later events for every
resource. This is a known limitation, not something the sequencer hides.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import structlog

from deploywatch.observability.metrics import handler_errors_total, queue_depth

_log = structlog.get_logger(component="collector.sequencer")

Handler = Callable[[Any], Awaitable[None]]


class EventSequencer:
    """Single ordered queue drained by one background task."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[tuple[Any, Handler]] = asyncio.Queue()
        self._task: asyncio.Task[None] | None = None

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the drain loop. Calling it again while running is a no-op."""
        if self.running:
            return
        self._task = asyncio.create_task(self._drain(), name="event-sequencer")
        _log.debug("sequencer_started")

    def enqueue(self, event: Any, handler: Handler) -> None:
        """Append *event* for *handler*; never blocks."""
        self._queue.put_nowait((event, handler))
        queue_depth.set(self._queue.qsize())

    async def join(self) -> None:
        """Wait until every item enqueued so far has been handled."""
        await self._queue.join()

    async def stop(self) -> None:
        """Cancel the drain loop and discard whatever is still queued."""
        if self._task is not None:
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None

        dropped = 0
        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()
            dropped += 1
        queue_depth.set(0)
        _log.info("sequencer_stopped", dropped=dropped)

    async def _drain(self) -> None:
        while True:
            event, handler = await self._queue.get()
            try:
                await handler(event)
            except asyncio.CancelledError:
                raise
            except Exception as exc:  # noqa: BLE001
                # State committed by the handler before it raised stays as is.
                handler_errors_total.inc()
                _log.error(
                    "event_handler_failed",
                    handler=getattr(handler, "__qualname__", repr(handler)),
                    error=str(exc),
                    exc_info=True,
                )
            finally:
                self._queue.task_done()
                queue_depth.set(self._queue.qsize())
