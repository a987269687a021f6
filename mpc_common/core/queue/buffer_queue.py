"""Byte-oriented queue for raw transport buffers."""

import asyncio
import logging

from mpc_common.core.errors import PopCancelledError, QueueClosedError
from mpc_common.core.queue.base import ByteWaiter, Waiter, WaiterQueue
from mpc_common.core.queue.cancellation import CancelSignal

logger = logging.getLogger(__name__)


class BufferQueue(WaiterQueue):
    """Contiguous byte buffer read in exact-length chunks.

    Writers push arbitrary byte strings; readers ask for a specific number of
    bytes and wait until that many are available. Readers are served in the
    order they started waiting, so a small read never overtakes an earlier
    large one.
    """

    def __init__(self) -> None:
        super().__init__()
        self._buffer = bytearray()

    def push(self, data: bytes) -> None:
        """Append data and satisfy as many waiting readers as possible.

        Raises:
            QueueClosedError: If the queue is closed.
        """
        with self._lock:
            if self._closed:
                raise QueueClosedError()

            self._buffer.extend(data)
            self._serve_waiters()

    async def pop(self, length: int, cancel: CancelSignal | None = None) -> bytes:
        """Read exactly length bytes, waiting until they have all arrived.

        Args:
            length: Number of bytes to read. Zero returns b"" without waiting, even
                while other readers are pending.
            cancel: Optional signal that aborts this read while it is waiting.

        Returns:
            The next length bytes of the stream.

        Raises:
            ValueError: If length is negative.
            QueueClosedError: If the queue is closed, or closes while waiting.
            PopCancelledError: If cancel fires before enough bytes arrive.
        """
        if length < 0:
            raise ValueError(f"length must be non-negative, got {length}")

        with self._lock:
            if self._closed:
                raise QueueClosedError()

            if length == 0:
                return b""

            if not self._waiters and len(self._buffer) >= length:
                return self._take(length)

            if cancel is not None and cancel.cancelled:
                raise PopCancelledError()

            waiter = ByteWaiter(
                future=asyncio.get_running_loop().create_future(),
                signal=cancel,
                length=length,
            )
            self._register(waiter)

        return await self._wait(waiter)

    def buffered(self) -> int:
        """Number of unread bytes."""
        return len(self._buffer)

    def _take(self, length: int) -> bytes:
        chunk = bytes(self._buffer[:length])
        del self._buffer[:length]
        return chunk

    def _serve_waiters(self) -> None:
        while True:
            waiter = self._oldest_waiter()
            if waiter is None or waiter.length > len(self._buffer):  # type: ignore[attr-defined]
                return
            del self._waiters[waiter]
            waiter.resolve(self._take(waiter.length))

    def _clear_buffer(self) -> int:
        discarded = len(self._buffer)
        self._buffer.clear()
        return discarded

    def _requeue(self, waiter: Waiter) -> None:
        self._buffer[:0] = waiter.value
        self._serve_waiters()
