"""Tests for AsyncQueue push/pop/close semantics and pop cancellation."""

import asyncio
import threading

import pytest

from mpc_common.core.errors import PopCancelledError, QueueClosedError
from mpc_common.core.queue import AsyncQueue, CancelSignal, CancelSource


@pytest.fixture
def queue() -> AsyncQueue[str]:
    """Create an empty queue for testing."""
    return AsyncQueue()


async def start_pop(queue: AsyncQueue, cancel=None) -> asyncio.Task:
    """Start a pop in the background and let it register its waiter."""
    task = asyncio.create_task(queue.pop(cancel))
    await asyncio.sleep(0)
    return task


class PushOnRegisterSignal(CancelSignal):
    """Signal whose first add_listener lets another thread push first."""

    def __init__(self, queue: AsyncQueue, value) -> None:
        super().__init__()
        self._queue = queue
        self._value = value
        self._armed = True

    def add_listener(self, listener) -> None:
        if self._armed:
            self._armed = False
            producer = threading.Thread(target=self._queue.push, args=(self._value,))
            producer.start()
            producer.join()
        super().add_listener(listener)


class TestPushAndPop:
    """Basic delivery and ordering."""

    @pytest.mark.asyncio
    async def test_push_then_pop_single_item(self, queue):
        queue.push("test")
        assert await queue.pop() == "test"

    @pytest.mark.asyncio
    async def test_buffered_values_pop_in_push_order(self, queue):
        """push a, push b, then pops return a then b."""
        queue.push("a")
        queue.push("b")

        assert await queue.pop() == "a"
        assert await queue.pop() == "b"
        assert queue.empty()

    @pytest.mark.asyncio
    async def test_pending_pop_resolves_on_push(self, queue):
        """A pop on an empty queue waits and receives the next push."""
        pending = await start_pop(queue)
        assert not pending.done()
        assert queue.waiting() == 1

        queue.push("x")

        assert await pending == "x"
        assert queue.waiting() == 0
        assert queue.qsize() == 0  # Delivered directly, never buffered

    @pytest.mark.asyncio
    async def test_pending_pops_are_served_fifo(self, queue):
        pops = [await start_pop(queue) for _ in range(3)]

        queue.push("item1")
        queue.push("item2")
        queue.push("item3")

        assert await asyncio.gather(*pops) == ["item1", "item2", "item3"]

    @pytest.mark.asyncio
    async def test_one_push_resolves_only_earliest_waiter(self, queue):
        first = await start_pop(queue)
        second = await start_pop(queue)

        queue.push("only")
        await asyncio.sleep(0)

        assert first.done()
        assert await first == "only"
        assert not second.done()
        assert queue.waiting() == 1

        queue.push("next")
        assert await second == "next"

    @pytest.mark.asyncio
    async def test_rapid_push_pop_keeps_order(self, queue):
        pops = [await start_pop(queue) for _ in range(100)]
        items = [f"item-{i}" for i in range(100)]
        for item in items:
            queue.push(item)

        assert await asyncio.gather(*pops) == items

    @pytest.mark.asyncio
    async def test_values_are_opaque(self):
        """Any payload type passes through untouched."""
        queue: AsyncQueue[object] = AsyncQueue()
        payload = {"id": 1, "name": "test"}
        queue.push(payload)
        queue.push(None)
        queue.push(b"\x00\x01")

        assert await queue.pop() is payload
        assert await queue.pop() is None
        assert await queue.pop() == b"\x00\x01"

    @pytest.mark.asyncio
    async def test_push_from_another_thread_resolves_pending_pop(self, queue):
        pending = await start_pop(queue)

        await asyncio.to_thread(queue.push, "from-thread")

        assert await asyncio.wait_for(pending, timeout=1) == "from-thread"


class TestPopCancellation:
    """Cancellation signals attached to individual pops."""

    @pytest.mark.asyncio
    async def test_cancel_rejects_pending_pop(self, queue):
        source = CancelSource()
        pending = await start_pop(queue, source.signal)

        source.cancel()

        with pytest.raises(PopCancelledError):
            await pending
        assert queue.waiting() == 0

    @pytest.mark.asyncio
    async def test_already_cancelled_signal_fails_immediately(self, queue):
        source = CancelSource()
        source.cancel()

        with pytest.raises(PopCancelledError):
            await queue.pop(source.signal)
        assert queue.waiting() == 0

    @pytest.mark.asyncio
    async def test_buffered_value_wins_over_cancelled_signal(self, queue):
        """A buffered value is returned without consulting the signal."""
        source = CancelSource()
        source.cancel()
        queue.push("immediate")

        assert await queue.pop(source.signal) == "immediate"

    @pytest.mark.asyncio
    async def test_cancelling_middle_pop_leaves_others_untouched(self, queue):
        """P1, P2, P3 pending; cancel P2; pushes go to P1 then P3."""
        sources = [CancelSource() for _ in range(3)]
        p1, p2, p3 = [await start_pop(queue, s.signal) for s in sources]

        sources[1].cancel()
        queue.push("u")
        queue.push("v")

        assert await p1 == "u"
        assert await p3 == "v"
        with pytest.raises(PopCancelledError):
            await p2
        assert queue.waiting() == 0

    @pytest.mark.asyncio
    async def test_cancelled_pop_does_not_consume_next_push(self, queue):
        source = CancelSource()
        pop1 = await start_pop(queue, source.signal)
        pop2 = await start_pop(queue)

        source.cancel()
        with pytest.raises(PopCancelledError):
            await pop1

        queue.push("test")
        assert await pop2 == "test"

    @pytest.mark.asyncio
    async def test_listener_detached_after_fulfillment(self, queue):
        source = CancelSource()
        pending = await start_pop(queue, source.signal)
        assert source.signal.listener_count() == 1

        queue.push("test")
        assert await pending == "test"
        assert source.signal.listener_count() == 0

        # Cancelling after resolution affects nothing
        source.cancel()
        assert queue.waiting() == 0
        assert queue.qsize() == 0

    @pytest.mark.asyncio
    async def test_shared_signal_does_not_accumulate_listeners(self, queue):
        """A long-lived signal reused across many pops keeps no stale hooks."""
        source = CancelSource()
        for i in range(20):
            pending = await start_pop(queue, source.signal)
            queue.push(i)
            assert await pending == i

        assert source.signal.listener_count() == 0

    @pytest.mark.asyncio
    async def test_cancel_all_pending_pops_cleans_up(self, queue):
        sources = [CancelSource() for _ in range(5)]
        pops = [await start_pop(queue, s.signal) for s in sources]
        assert queue.waiting() == 5

        for source in sources:
            source.cancel()

        results = await asyncio.gather(*pops, return_exceptions=True)
        assert all(isinstance(r, PopCancelledError) for r in results)
        assert str(results[0]) == "Stream stopped"
        assert queue.waiting() == 0

    @pytest.mark.asyncio
    async def test_mixed_cancelled_and_plain_pops(self, queue):
        s1, s3 = CancelSource(), CancelSource()
        pop1 = await start_pop(queue, s1.signal)
        pop2 = await start_pop(queue)
        pop3 = await start_pop(queue, s3.signal)
        pop4 = await start_pop(queue)
        assert queue.waiting() == 4

        s1.cancel()
        s3.cancel()
        assert queue.waiting() == 2

        queue.push("item1")
        queue.push("item2")

        assert await pop2 == "item1"
        assert await pop4 == "item2"
        for cancelled in (pop1, pop3):
            with pytest.raises(PopCancelledError):
                await cancelled

    @pytest.mark.asyncio
    async def test_timeout_composed_from_cancel_after(self, queue):
        source = CancelSource()
        source.cancel_after(0.01)

        with pytest.raises(PopCancelledError):
            await queue.pop(source.signal)

    @pytest.mark.asyncio
    async def test_cancel_from_another_thread_rejects_pending_pop(self, queue):
        source = CancelSource()
        pending = await start_pop(queue, source.signal)

        await asyncio.to_thread(source.cancel)

        with pytest.raises(PopCancelledError):
            await asyncio.wait_for(pending, timeout=1)
        assert queue.waiting() == 0
        assert source.signal.listener_count() == 0

    @pytest.mark.asyncio
    async def test_push_while_listener_registers_leaves_no_hook(self, queue):
        """A delivery racing the listener registration still detaches it."""
        source = CancelSource()
        source.signal = PushOnRegisterSignal(queue, "v")

        first = await start_pop(queue, source.signal)
        assert await asyncio.wait_for(first, timeout=1) == "v"
        assert source.signal.listener_count() == 0

        # The shared signal still cancels later pops cleanly
        second = await start_pop(queue, source.signal)
        source.cancel()

        with pytest.raises(PopCancelledError):
            await asyncio.wait_for(second, timeout=1)
        assert queue.waiting() == 0
        assert source.signal.listener_count() == 0


class TestTaskCancellation:
    """asyncio cancellation of the task awaiting a pop."""

    @pytest.mark.asyncio
    async def test_cancelled_task_removes_its_waiter(self, queue):
        pending = await start_pop(queue)

        pending.cancel()
        with pytest.raises(asyncio.CancelledError):
            await pending

        assert queue.waiting() == 0
        queue.push("a")
        assert queue.qsize() == 1

    @pytest.mark.asyncio
    async def test_value_delivered_to_cancelled_task_is_requeued(self, queue):
        """A value handed over just before the task was cancelled is not lost."""
        pending = await start_pop(queue)

        queue.push("a")
        pending.cancel()
        with pytest.raises(asyncio.CancelledError):
            await pending

        assert queue.qsize() == 1
        assert await queue.pop() == "a"

    @pytest.mark.asyncio
    async def test_push_skips_waiter_of_cancelled_task(self, queue):
        stale = await start_pop(queue)
        live = await start_pop(queue)

        stale.cancel()
        queue.push("value")

        assert await live == "value"
        with pytest.raises(asyncio.CancelledError):
            await stale


class TestClose:
    """Shutdown protocol."""

    @pytest.mark.asyncio
    async def test_close_discards_buffered_values(self, queue):
        for value in ("a", "b", "c"):
            queue.push(value)

        queue.close()

        assert queue.is_closed()
        assert queue.qsize() == 0
        with pytest.raises(QueueClosedError):
            await queue.pop()

    @pytest.mark.asyncio
    async def test_close_rejects_pending_pops(self, queue):
        source = CancelSource()
        pop1 = await start_pop(queue, source.signal)
        pop2 = await start_pop(queue)

        queue.close()

        for pending in (pop1, pop2):
            with pytest.raises(QueueClosedError):
                await pending
        assert queue.waiting() == 0
        assert source.signal.listener_count() == 0

        # Cancelling after closure is a no-op
        source.cancel()

    @pytest.mark.asyncio
    async def test_push_after_close_fails(self, queue):
        queue.close()

        with pytest.raises(QueueClosedError, match="Queue is closed"):
            queue.push("late")
        assert queue.qsize() == 0

    @pytest.mark.asyncio
    async def test_pop_after_close_fails_without_waiting(self, queue):
        queue.close()

        with pytest.raises(QueueClosedError):
            await asyncio.wait_for(queue.pop(), timeout=0.1)
        assert queue.waiting() == 0

    def test_close_is_idempotent(self, queue):
        assert queue.is_closed() is False

        queue.close()
        queue.close()

        assert queue.is_closed() is True

    @pytest.mark.asyncio
    async def test_cancel_and_close_errors_are_distinguishable(self, queue):
        source = CancelSource()
        cancelled = await start_pop(queue, source.signal)
        closed = await start_pop(queue)

        source.cancel()
        queue.close()

        results = await asyncio.gather(cancelled, closed, return_exceptions=True)
        assert type(results[0]) is PopCancelledError
        assert type(results[1]) is QueueClosedError

    @pytest.mark.asyncio
    async def test_close_from_another_thread_rejects_pending_pops(self, queue):
        source = CancelSource()
        pops = [await start_pop(queue, source.signal)] + [await start_pop(queue) for _ in range(3)]

        await asyncio.to_thread(queue.close)

        results = await asyncio.wait_for(asyncio.gather(*pops, return_exceptions=True), timeout=1)
        assert all(isinstance(r, QueueClosedError) for r in results)
        assert queue.waiting() == 0
        assert source.signal.listener_count() == 0

    @pytest.mark.asyncio
    async def test_threaded_push_and_close_settle_every_pop_once(self):
        queue: AsyncQueue[int] = AsyncQueue()
        pops = [await start_pop(queue) for _ in range(50)]
        accepted: list[int] = []
        rejected: list[int] = []
        lock = threading.Lock()
        start = threading.Barrier(5)

        def produce(first: int) -> None:
            start.wait()
            for value in range(first, first + 100):
                try:
                    queue.push(value)
                except QueueClosedError:
                    with lock:
                        rejected.append(value)
                else:
                    with lock:
                        accepted.append(value)

        def close() -> None:
            start.wait()
            queue.close()

        def run_workers() -> None:
            workers = [threading.Thread(target=produce, args=(n * 100,)) for n in range(4)]
            workers.append(threading.Thread(target=close))
            for worker in workers:
                worker.start()
            for worker in workers:
                worker.join()

        await asyncio.to_thread(run_workers)
        results = await asyncio.wait_for(asyncio.gather(*pops, return_exceptions=True), timeout=2)

        delivered = [r for r in results if not isinstance(r, BaseException)]
        closed = [r for r in results if isinstance(r, QueueClosedError)]
        assert len(delivered) + len(closed) == len(pops)
        assert len(set(delivered)) == len(delivered)
        # Only pushes that succeeded before close can reach a pop
        assert set(delivered) <= set(accepted)
        assert len(accepted) + len(rejected) == 400

        assert queue.is_closed()
        assert queue.qsize() == 0
        assert queue.waiting() == 0
        with pytest.raises(QueueClosedError):
            queue.push(-1)
