"""Core functionality for mpc_common: queues, errors, config and validation."""

from mpc_common.core.config import Config, load_config
from mpc_common.core.errors import (
    AssertionFailureError,
    MpcError,
    PopCancelledError,
    QueueClosedError,
    QueueError,
    SettingsValidationError,
)
from mpc_common.core.logging import (
    get_party_logger,
    setup_logging,
    setup_logging_from_config,
    setup_party_logger,
)
from mpc_common.core.queue import (
    AsyncQueue,
    AsyncQueueStore,
    BufferQueue,
    BufferQueueStore,
    CancelSignal,
    CancelSource,
    QueueStream,
    channel_key,
)
from mpc_common.core.utils import assert_that, never
from mpc_common.core.validation import check_settings_valid

__all__ = [
    "Config",
    "load_config",
    "AssertionFailureError",
    "MpcError",
    "PopCancelledError",
    "QueueClosedError",
    "QueueError",
    "SettingsValidationError",
    "get_party_logger",
    "setup_logging",
    "setup_logging_from_config",
    "setup_party_logger",
    "AsyncQueue",
    "AsyncQueueStore",
    "BufferQueue",
    "BufferQueueStore",
    "CancelSignal",
    "CancelSource",
    "QueueStream",
    "channel_key",
    "assert_that",
    "never",
    "check_settings_valid",
]
