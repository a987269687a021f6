"""Exception hierarchy for mpc_common.

Queue failures are split into two distinct kinds so consumers can tell a
controlled stop (cancellation) apart from a shutdown (closure).
"""


class MpcError(Exception):
    """Base class for all mpc_common errors."""


class QueueError(MpcError):
    """Base class for failures raised by queue operations."""


class QueueClosedError(QueueError):
    """Raised when an operation is attempted on a closed queue."""

    def __init__(self, message: str = "Queue is closed"):
        super().__init__(message)


class PopCancelledError(QueueError):
    """Raised when a pending pop's cancellation signal fires before it is fulfilled.

    Distinct from asyncio.CancelledError: this is cooperative cancellation of a
    single pop, not cancellation of the awaiting task.
    """

    def __init__(self, message: str = "Stream stopped"):
        super().__init__(message)


class SettingsValidationError(MpcError):
    """Describes a mismatch between MPC participant settings and a circuit.

    Returned (not raised) by check_settings_valid so callers can decide how
    to report it.
    """

    def __init__(self, message: str, participant: str | None = None):
        self.participant = participant
        super().__init__(message)


class AssertionFailureError(MpcError):
    """Raised when an internal invariant is violated. Fatal, never retried."""
