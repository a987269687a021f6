"""mpc_common domain models.

Circuit descriptions and participant settings are pydantic models so they can
be parsed straight from JSON or YAML. Engine protocols describe what an MPC
backend must provide to plug into the queue layer.
"""

from mpc_common.model.circuit import (
    Circuit,
    CircuitConstant,
    CircuitInfo,
    CircuitIOInfo,
    MpcParticipantSettings,
    MpcSettings,
    load_circuit,
)
from mpc_common.model.engine import Engine, EngineSession, SendFn

__all__ = [
    # Circuit
    "Circuit",
    "CircuitConstant",
    "CircuitInfo",
    "CircuitIOInfo",
    "MpcParticipantSettings",
    "MpcSettings",
    "load_circuit",
    # Engine
    "Engine",
    "EngineSession",
    "SendFn",
]
