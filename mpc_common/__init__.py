"""mpc_common: message queues and settings validation shared by MPC engines."""

from mpc_common.core import (
    AssertionFailureError,
    AsyncQueue,
    AsyncQueueStore,
    BufferQueue,
    BufferQueueStore,
    CancelSignal,
    CancelSource,
    MpcError,
    PopCancelledError,
    QueueClosedError,
    QueueError,
    QueueStream,
    SettingsValidationError,
    assert_that,
    channel_key,
    check_settings_valid,
    never,
    setup_logging,
    setup_logging_from_config,
)
from mpc_common.model import (
    Circuit,
    CircuitConstant,
    CircuitInfo,
    CircuitIOInfo,
    Engine,
    EngineSession,
    MpcParticipantSettings,
    MpcSettings,
    load_circuit,
)

__version__ = "0.1.0"

__all__ = [
    "AssertionFailureError",
    "AsyncQueue",
    "AsyncQueueStore",
    "BufferQueue",
    "BufferQueueStore",
    "CancelSignal",
    "CancelSource",
    "Circuit",
    "CircuitConstant",
    "CircuitInfo",
    "CircuitIOInfo",
    "Engine",
    "EngineSession",
    "MpcError",
    "MpcParticipantSettings",
    "MpcSettings",
    "PopCancelledError",
    "QueueClosedError",
    "QueueError",
    "QueueStream",
    "SettingsValidationError",
    "assert_that",
    "channel_key",
    "check_settings_valid",
    "load_circuit",
    "never",
    "setup_logging",
    "setup_logging_from_config",
]
