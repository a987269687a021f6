"""Pydantic models describing a circuit and the parties that evaluate it."""

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


class CircuitIOInfo(BaseModel):
    """A named input or output of a circuit."""

    name: str = Field(description="Input or output name as referenced by participants")
    type: Any = Field(default=None, description="Opaque type descriptor")
    address: int = Field(default=0, description="First wire index")
    width: int = Field(default=0, description="Number of wires")


class CircuitConstant(CircuitIOInfo):
    """A circuit input whose value is fixed at compile time."""

    value: Any = Field(default=None, description="Constant value")


class CircuitInfo(BaseModel):
    """Declared interface of a circuit."""

    constants: list[CircuitConstant] = Field(default_factory=list)
    inputs: list[CircuitIOInfo] = Field(default_factory=list)
    outputs: list[CircuitIOInfo] = Field(default_factory=list)

    @property
    def input_names(self) -> set[str]:
        return {io.name for io in self.inputs}

    @property
    def output_names(self) -> set[str]:
        return {io.name for io in self.outputs}


class MpcParticipantSettings(BaseModel):
    """One party's share of a circuit's inputs and outputs.

    A participant without a name is addressed by its index in the settings
    list.
    """

    name: str | None = Field(default=None, description="Party name")
    inputs: list[str] = Field(default_factory=list, description="Circuit inputs this party supplies")
    outputs: list[str] = Field(default_factory=list, description="Circuit outputs this party receives")


MpcSettings = list[MpcParticipantSettings]


class Circuit(BaseModel):
    """A compiled circuit in Bristol format plus its interface."""

    bristol: str = Field(default="", description="Bristol-format circuit text")
    info: CircuitInfo = Field(default_factory=CircuitInfo)
    mpc_settings: list[MpcParticipantSettings] = Field(default_factory=list)


def load_circuit(path: Path | str) -> Circuit:
    """Load a circuit description from a JSON or YAML file.

    Files ending in .json are parsed as JSON; anything else as YAML. A
    top-level ``mpcSettings`` key is accepted as an alias of ``mpc_settings``.

    Args:
        path: Path to the circuit file.

    Returns:
        Parsed Circuit.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        pydantic.ValidationError: If the content does not describe a circuit.
    """
    circuit_path = Path(path)
    if not circuit_path.exists():
        raise FileNotFoundError(f"Circuit file not found: {circuit_path}")

    with circuit_path.open() as f:
        if circuit_path.suffix.lower() == ".json":
            data: dict[str, Any] = json.load(f) or {}
        else:
            data = yaml.safe_load(f) or {}

    if "mpcSettings" in data and "mpc_settings" not in data:
        data["mpc_settings"] = data.pop("mpcSettings")

    return Circuit(**data)
