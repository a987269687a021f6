"""Keyed stores that lazily create one queue per communication channel."""

import logging
import threading
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, Generic, TypeVar

from mpc_common.core.queue.async_queue import AsyncQueue
from mpc_common.core.queue.base import WaiterQueue
from mpc_common.core.queue.buffer_queue import BufferQueue

if TYPE_CHECKING:
    from mpc_common.core.config.models import ChannelConfig

logger = logging.getLogger(__name__)

Q = TypeVar("Q", bound=WaiterQueue)
T = TypeVar("T")

DEFAULT_KEY_SEPARATOR = "->"


def channel_key(sender: str, recipient: str, separator: str = DEFAULT_KEY_SEPARATOR) -> str:
    """Build the store key for messages travelling from sender to recipient.

    Examples:
        >>> channel_key("alice", "bob")
        'alice->bob'
    """
    return f"{sender}{separator}{recipient}"


class _QueueStore(Generic[Q]):
    """Map of key to queue, created on first access and never evicted."""

    def __init__(self, factory: Callable[[], Q], key_separator: str = DEFAULT_KEY_SEPARATOR):
        self._factory = factory
        self.key_separator = key_separator
        self._queues: dict[str, Q] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Q:
        """Get or create the queue for key."""
        with self._lock:
            if key not in self._queues:
                self._queues[key] = self._factory()
                logger.debug(f"Created queue for key {key!r}")
            return self._queues[key]

    def channel(self, sender: str, recipient: str) -> Q:
        """Get or create the queue carrying messages from sender to recipient."""
        return self.get(channel_key(sender, recipient, self.key_separator))

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._queues)

    def __contains__(self, key: object) -> bool:
        return key in self._queues

    def __len__(self) -> int:
        return len(self._queues)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())


class AsyncQueueStore(_QueueStore[AsyncQueue[T]], Generic[T]):
    """Per-channel AsyncQueue instances for exchanging messages between parties."""

    def __init__(self, key_separator: str = DEFAULT_KEY_SEPARATOR):
        super().__init__(AsyncQueue, key_separator)

    @classmethod
    def from_config(cls, channels: "ChannelConfig") -> "AsyncQueueStore[T]":
        """Create a store using the key separator from channel configuration."""
        return cls(key_separator=channels.key_separator)


class BufferQueueStore(_QueueStore[BufferQueue]):
    """Per-channel BufferQueue instances for raw transport bytes."""

    def __init__(self, key_separator: str = DEFAULT_KEY_SEPARATOR):
        super().__init__(BufferQueue, key_separator)

    @classmethod
    def from_config(cls, channels: "ChannelConfig") -> "BufferQueueStore":
        return cls(key_separator=channels.key_separator)
