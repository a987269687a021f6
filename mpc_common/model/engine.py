"""Protocols implemented by MPC engines that consume circuits and queues."""

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from mpc_common.model.circuit import Circuit

SendFn = Callable[[str, bytes], None]


@runtime_checkable
class EngineSession(Protocol):
    """A running evaluation for one party."""

    def handle_message(self, sender: str, msg: bytes) -> None:
        """Feed a message received from another party into the session."""
        ...

    async def output(self) -> dict[str, Any]:
        """Wait for and return this party's circuit outputs."""
        ...


@runtime_checkable
class Engine(Protocol):
    """Factory for engine sessions.

    ``send`` is called by the session whenever it needs to deliver a message
    to another party, identified by name.
    """

    def run(
        self,
        circuit: Circuit,
        name: str,
        input: dict[str, Any],
        send: SendFn,
    ) -> EngineSession: ...
