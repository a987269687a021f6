"""Cooperative cancellation signals for pending queue operations.

A CancelSource owns exactly one CancelSignal. The signal is handed to any
number of pending operations; each registers a listener and must remove it on
every exit path so long-lived signals do not accumulate listeners.
"""

import asyncio
import logging
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class CancelSignal:
    """Read-only view of a cancellation request.

    Listeners run synchronously, in registration order, in the thread that
    calls CancelSource.cancel(). A listener added after the signal fired is
    invoked immediately.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._listeners: dict[Listener, None] = {}
        self._lock = threading.Lock()

    @property
    def cancelled(self) -> bool:
        """Whether cancellation has been requested."""
        return self._cancelled

    def add_listener(self, listener: Listener) -> None:
        """Register a callback to run once when the signal fires.

        Adding the same callback twice registers it once.
        """
        with self._lock:
            if not self._cancelled:
                self._listeners[listener] = None
                return
        listener()

    def remove_listener(self, listener: Listener) -> None:
        """Deregister a callback. No-op if it is not registered."""
        with self._lock:
            self._listeners.pop(listener, None)

    def listener_count(self) -> int:
        """Number of callbacks still waiting for this signal."""
        with self._lock:
            return len(self._listeners)

    def _fire(self) -> bool:
        with self._lock:
            if self._cancelled:
                return False
            self._cancelled = True
            listeners = list(self._listeners)
            self._listeners.clear()

        for listener in listeners:
            listener()
        return True


class CancelSource:
    """Controller that fires a single CancelSignal.

    Examples:
        >>> source = CancelSource()
        >>> pop = asyncio.ensure_future(queue.pop(source.signal))
        >>> source.cancel()  # pop fails with PopCancelledError
    """

    def __init__(self) -> None:
        self.signal = CancelSignal()

    @property
    def cancelled(self) -> bool:
        return self.signal.cancelled

    def cancel(self) -> None:
        """Fire the signal. Calling it again is a no-op."""
        if self.signal._fire():
            logger.debug("Cancellation signal fired")

    def cancel_after(self, delay: float) -> asyncio.TimerHandle:
        """Schedule cancel() on the running event loop after delay seconds.

        This is how callers build a timeout around a pop. Cancel the returned
        handle to disarm the timer once the operation has completed.

        Args:
            delay: Seconds to wait before firing the signal.

        Returns:
            The timer handle from loop.call_later().

        Raises:
            RuntimeError: If no event loop is running.
        """
        loop = asyncio.get_running_loop()
        return loop.call_later(delay, self.cancel)
