"""Waiter bookkeeping shared by the message and byte queues.

Each pending pop is one Waiter record holding a one-shot future. Waiters live
in an insertion-ordered dict so the oldest is found in O(1) and any waiter can
be removed by identity in O(1). A waiter leaves that dict exactly once: by
delivery, by its cancellation signal, or by close().
"""

import asyncio
import functools
import logging
import threading
from dataclasses import dataclass, field
from typing import Any

from mpc_common.core.errors import PopCancelledError, QueueClosedError
from mpc_common.core.queue.cancellation import CancelSignal, Listener

logger = logging.getLogger(__name__)


def _call_on_loop(future: asyncio.Future[Any], callback: functools.partial[None]) -> None:
    """Run callback now if we are on the future's loop, otherwise hand it over."""
    loop = future.get_loop()
    try:
        running = asyncio.get_running_loop()
    except RuntimeError:
        running = None

    if running is loop:
        callback()
    else:
        loop.call_soon_threadsafe(callback)


def _set_result(future: asyncio.Future[Any], value: Any) -> None:
    if not future.done():
        future.set_result(value)


def _set_exception(future: asyncio.Future[Any], error: BaseException) -> None:
    if not future.done():
        future.set_exception(error)


@dataclass(eq=False)
class Waiter:
    """A pending pop: its future plus the hook into its cancellation signal."""

    future: asyncio.Future[Any]
    signal: CancelSignal | None = None
    listener: Listener | None = None
    delivered: bool = False
    value: Any = None

    def resolve(self, value: Any) -> None:
        """Hand value to the waiting consumer."""
        self.delivered = True
        self.value = value
        self.detach()
        _call_on_loop(self.future, functools.partial(_set_result, self.future, value))

    def reject(self, error: BaseException) -> None:
        """Fail the waiting consumer with error."""
        self.detach()
        _call_on_loop(self.future, functools.partial(_set_exception, self.future, error))

    def detach(self) -> None:
        """Remove the cancellation listener. Safe to call repeatedly."""
        listener, self.listener = self.listener, None
        if self.signal is not None and listener is not None:
            self.signal.remove_listener(listener)


@dataclass(eq=False)
class ByteWaiter(Waiter):
    """A pending byte read that needs exactly length bytes."""

    length: int = 0


class WaiterQueue:
    """Base for queues whose consumers suspend until a producer delivers.

    Subclasses own the buffered data. All state changes happen under
    self._lock; waiters are settled on their own event loop.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._closed = False
        self._waiters: dict[Waiter, None] = {}

    def is_closed(self) -> bool:
        """Whether close() has been called."""
        return self._closed

    def waiting(self) -> int:
        """Number of pops currently suspended on this queue."""
        return len(self._waiters)

    def close(self) -> None:
        """Close the queue, discarding buffered data and rejecting every waiter.

        Idempotent: only the first call has any effect.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True

            waiters = list(self._waiters)
            self._waiters.clear()
            discarded = self._clear_buffer()

            for waiter in waiters:
                waiter.reject(QueueClosedError())

        logger.debug(
            f"{type(self).__name__} closed: rejected {len(waiters)} waiter(s), "
            f"discarded {discarded} buffered item(s)"
        )

    def _clear_buffer(self) -> int:
        """Drop all buffered data and return how much was dropped."""
        raise NotImplementedError

    def _requeue(self, waiter: Waiter) -> None:
        """Return data delivered to an abandoned waiter back to the queue."""
        raise NotImplementedError

    def _oldest_waiter(self) -> Waiter | None:
        """Return the earliest live waiter without removing it.

        Waiters whose future was cancelled by asyncio are dropped here; their
        pop() call cleans up on its own.
        """
        while self._waiters:
            waiter = next(iter(self._waiters))
            if not waiter.future.cancelled():
                return waiter
            del self._waiters[waiter]
        return None

    def _register(self, waiter: Waiter) -> None:
        """Append waiter to the waiter list. Caller holds the lock."""
        self._waiters[waiter] = None

    async def _wait(self, waiter: Waiter) -> Any:
        """Suspend until waiter is settled, keeping its signal hook tidy."""
        signal = waiter.signal
        listener: Listener | None = None
        if signal is not None:
            # A producer thread may settle the waiter at any point here, so
            # register first and only then publish the hook for detach().
            listener = functools.partial(self._cancel_waiter, waiter)
            signal.add_listener(listener)
            waiter.listener = listener

        try:
            return await waiter.future
        except asyncio.CancelledError:
            self._abandon(waiter)
            raise
        finally:
            waiter.detach()
            if signal is not None and listener is not None:
                signal.remove_listener(listener)

    def _cancel_waiter(self, waiter: Waiter) -> None:
        with self._lock:
            if waiter not in self._waiters:
                # Already delivered, closed, or cancelled.
                return
            del self._waiters[waiter]
            waiter.reject(PopCancelledError())

    def _abandon(self, waiter: Waiter) -> None:
        with self._lock:
            if waiter in self._waiters:
                del self._waiters[waiter]
            elif waiter.delivered and not self._closed:
                self._requeue(waiter)
