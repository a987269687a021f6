"""Validation of MPC participant settings against a circuit's interface."""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from mpc_common.core.errors import SettingsValidationError
from mpc_common.model.circuit import Circuit, MpcParticipantSettings

logger = logging.getLogger(__name__)


def check_settings_valid(
    circuit: Circuit,
    mpc_settings: Sequence[MpcParticipantSettings],
    name: str,
    input: Mapping[str, Any],
) -> SettingsValidationError | None:
    """Check that participant settings and our own input fit the circuit.

    Checks, in order:
    - no circuit input is claimed by more than one participant
    - the participants' inputs together are exactly the circuit's inputs
    - every participant output is a circuit output
    - ``name`` is one of the participants (unnamed ones go by list index)
    - the keys of ``input`` are exactly that participant's inputs

    Args:
        circuit: Circuit whose declared interface is authoritative.
        mpc_settings: All participants in the session.
        name: The calling participant.
        input: Values the caller is about to supply, keyed by input name.

    Returns:
        The first problem found, or None if the settings are valid.
    """
    circuit_inputs = circuit.info.input_names
    circuit_outputs = circuit.info.output_names

    participant_inputs: set[str] = set()
    for participant in mpc_settings:
        for input_name in participant.inputs:
            if input_name in participant_inputs:
                return SettingsValidationError(f"Duplicate input: {input_name}", participant.name)
            participant_inputs.add(input_name)

    if participant_inputs != circuit_inputs:
        return SettingsValidationError("Participant inputs do not match the circuit")

    for participant in mpc_settings:
        for output_name in participant.outputs:
            if output_name not in circuit_outputs:
                return SettingsValidationError(
                    f"Output {output_name} is not in the circuit", participant.name
                )

    current = _find_participant(mpc_settings, name)
    if current is None:
        return SettingsValidationError(f"Could not find participant with name {name}", name)

    if set(input) != set(current.inputs):
        logger.debug(f"Input keys {sorted(input)} do not match {sorted(current.inputs)} for {name}")
        return SettingsValidationError("Input keys do not match participant inputs", name)

    return None


def _find_participant(
    mpc_settings: Sequence[MpcParticipantSettings], name: str
) -> MpcParticipantSettings | None:
    for i, participant in enumerate(mpc_settings):
        participant_name = participant.name if participant.name is not None else str(i)
        if participant_name == name:
            return participant
    return None
