"""Unit tests for deploywatch.collector.sequencer.EventSequencer."""

from __future__ import annotations

import asyncio

from deploywatch.collector.sequencer import EventSequencer


class TestEventSequencer:
    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------

    async def test_handles_in_enqueue_order(self) -> None:
        seq = EventSequencer()
        seen: list[int] = []

        async def handler(event: int) -> None:
            seen.append(event)

        for i in range(10):
            seq.enqueue(i, handler)
        await seq.start()
        await seq.join()

        assert seen == list(range(10))
        await seq.stop()

    async def test_events_from_different_handlers_share_one_order(self) -> None:
        seq = EventSequencer()
        seen: list[str] = []

        async def handler_a(event: str) -> None:
            seen.append(f"a:{event}")

        async def handler_b(event: str) -> None:
            seen.append(f"b:{event}")

        await seq.start()
        seq.enqueue("1", handler_a)
        seq.enqueue("2", handler_b)
        seq.enqueue("3", handler_a)
        await seq.join()

        assert seen == ["a:1", "b:2", "a:3"]
        await seq.stop()

    async def test_handlers_never_overlap(self) -> None:
        seq = EventSequencer()
        active = 0
        max_active = 0

        async def slow_handler(_event: int) -> None:
            nonlocal active, max_active
            active += 1
            max_active = max(max_active, active)
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            active -= 1

        await seq.start()
        for i in range(20):
            seq.enqueue(i, slow_handler)
        await seq.join()

        assert max_active == 1
        await seq.stop()

    # ------------------------------------------------------------------
    # Error handling
    # ------------------------------------------------------------------

    async def test_handler_exception_does_not_stop_processing(self) -> None:
        seq = EventSequencer()
        seen: list[int] = []

        async def handler(event: int) -> None:
            if event == 2:
                raise RuntimeError("boom")
            seen.append(event)

        await seq.start()
        for i in range(5):
            seq.enqueue(i, handler)
        await seq.join()

        assert seen == [0, 1, 3, 4]
        assert seq.running
        await seq.stop()

    async def test_mutation_before_exception_is_not_rolled_back(self) -> None:
        seq = EventSequencer()
        state: dict[str, int] = {}

        async def handler(event: int) -> None:
            state["last"] = event
            raise ValueError("after mutation")

        await seq.start()
        seq.enqueue(7, handler)
        await seq.join()

        assert state == {"last": 7}
        await seq.stop()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def test_start_idempotent(self) -> None:
        seq = EventSequencer()
        await seq.start()
        task = seq._task
        await seq.start()
        assert seq._task is task
        await seq.stop()

    async def test_stop_discards_pending(self) -> None:
        seq = EventSequencer()
        calls: list[int] = []

        async def handler(event: int) -> None:
            calls.append(event)

        seq.enqueue(1, handler)
        seq.enqueue(2, handler)
        assert seq.pending == 2

        await seq.stop()

        assert seq.pending == 0
        assert calls == []
        assert not seq.running

    async def test_enqueue_never_blocks(self) -> None:
        seq = EventSequencer()

        async def handler(_event: int) -> None:
            return None

        for i in range(1000):
            seq.enqueue(i, handler)
        assert seq.pending == 1000
        await seq.stop()
