"""Cancellable, closeable asynchronous message queue.

Used as the per-channel message pipe between MPC parties. Producers push
opaque values; consumers await them one at a time in strict FIFO order.
"""

import asyncio
import inspect
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

from mpc_common.core.errors import PopCancelledError, QueueClosedError
from mpc_common.core.queue.base import Waiter, WaiterQueue
from mpc_common.core.queue.cancellation import CancelSignal, CancelSource

logger = logging.getLogger(__name__)

T = TypeVar("T")

Handler = Callable[[Any], Awaitable[None] | None]
ErrorCallback = Callable[[Exception], None]


class AsyncQueue(WaiterQueue, Generic[T]):
    """FIFO queue whose pop() suspends until a value is pushed.

    Semantics:
    - push() hands the value straight to the longest-waiting pop if there is
      one, otherwise buffers it. Buffered values and waiters never coexist.
    - pop() accepts an optional CancelSignal; cancelling it fails only that
      pop with PopCancelledError.
    - close() discards buffered values and fails every pending pop with
      QueueClosedError. Afterwards push() and pop() fail immediately.
    """

    def __init__(self) -> None:
        super().__init__()
        self._buffer: deque[T] = deque()
        self._streams: set[QueueStream[T]] = set()

    def push(self, value: T) -> None:
        """Deliver value to the oldest pending pop, or buffer it.

        Args:
            value: Opaque payload.

        Raises:
            QueueClosedError: If the queue is closed.
        """
        with self._lock:
            if self._closed:
                raise QueueClosedError()

            waiter = self._oldest_waiter()
            if waiter is not None:
                del self._waiters[waiter]
                waiter.resolve(value)
                return

            self._buffer.append(value)

    async def pop(self, cancel: CancelSignal | None = None) -> T:
        """Remove and return the next value, waiting for one if necessary.

        Args:
            cancel: Optional signal that aborts this pop while it is waiting.
                It is not consulted when a buffered value is available.

        Returns:
            The oldest buffered value, or the next value pushed.

        Raises:
            QueueClosedError: If the queue is closed, or closes while waiting.
            PopCancelledError: If cancel fires before a value arrives.
        """
        with self._lock:
            if self._closed:
                raise QueueClosedError()

            if self._buffer:
                return self._buffer.popleft()

            if cancel is not None and cancel.cancelled:
                raise PopCancelledError()

            waiter = Waiter(future=asyncio.get_running_loop().create_future(), signal=cancel)
            self._register(waiter)

        return await self._wait(waiter)

    def stream(self, handler: Handler, on_error: ErrorCallback | None = None) -> "QueueStream[T]":
        """Start a background loop that feeds every popped value to handler.

        Must be called with an event loop running.

        Args:
            handler: Called with each value. May return an awaitable, which is
                awaited before the next pop.
            on_error: Optional callback receiving an exception raised by
                handler. The loop stops after a handler failure either way.

        Returns:
            Handle used to stop the loop.
        """
        stream = QueueStream(self, handler, on_error)
        self._streams.add(stream)
        stream._task.add_done_callback(lambda _: self._streams.discard(stream))
        return stream

    def qsize(self) -> int:
        """Number of buffered values not yet claimed."""
        return len(self._buffer)

    def empty(self) -> bool:
        return not self._buffer

    def _clear_buffer(self) -> int:
        discarded = len(self._buffer)
        self._buffer.clear()
        return discarded

    def _requeue(self, waiter: Waiter) -> None:
        # Pushed before anything now buffered, so it goes first.
        next_waiter = self._oldest_waiter()
        if next_waiter is not None:
            del self._waiters[next_waiter]
            next_waiter.resolve(waiter.value)
        else:
            self._buffer.appendleft(waiter.value)


class QueueStream(Generic[T]):
    """Handle for a consumption loop started by AsyncQueue.stream().

    The loop ends quietly when stopped or when the queue closes. A handler
    exception also ends it; the exception is logged, passed to on_error, and
    kept on ``error`` rather than raised to whoever started the stream.
    """

    def __init__(
        self,
        queue: AsyncQueue[T],
        handler: Handler,
        on_error: ErrorCallback | None = None,
    ):
        self._queue = queue
        self._handler = handler
        self._on_error = on_error
        self._source = CancelSource()
        self.error: Exception | None = None
        self._task: asyncio.Task[None] = asyncio.get_running_loop().create_task(self._run())

    @property
    def stopped(self) -> bool:
        """Whether the loop has finished."""
        return self._task.done()

    def stop(self) -> None:
        """Stop the loop. Idempotent.

        A value popped before the stop took effect is still dispatched.
        """
        self._source.cancel()

    async def wait(self) -> None:
        """Wait for the loop to finish. Never raises the handler's error."""
        await asyncio.shield(self._task)

    async def _run(self) -> None:
        signal = self._source.signal
        logger.debug("Queue stream started")

        while not signal.cancelled:
            try:
                value = await self._queue.pop(signal)
            except PopCancelledError:
                break
            except QueueClosedError:
                logger.debug("Queue stream ended: queue closed")
                return

            try:
                result: Any = self._handler(value)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                self.error = e
                logger.exception("Queue stream handler failed, stopping stream")
                if self._on_error is not None:
                    try:
                        self._on_error(e)
                    except Exception:
                        logger.exception("Queue stream error callback failed")
                return

        logger.debug("Queue stream stopped")
