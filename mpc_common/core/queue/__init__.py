"""Queue subsystem for mpc_common.

Provides the cancellable message queue, its byte-oriented sibling, and keyed
stores that hand out one queue per communication channel.
"""

from mpc_common.core.queue.async_queue import AsyncQueue, QueueStream
from mpc_common.core.queue.buffer_queue import BufferQueue
from mpc_common.core.queue.cancellation import CancelSignal, CancelSource
from mpc_common.core.queue.store import AsyncQueueStore, BufferQueueStore, channel_key

__all__ = [
    "AsyncQueue",
    "AsyncQueueStore",
    "BufferQueue",
    "BufferQueueStore",
    "CancelSignal",
    "CancelSource",
    "QueueStream",
    "channel_key",
]
