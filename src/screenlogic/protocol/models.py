"""Decoded controller records.

Lookups return None on a miss; a circuit id of 0 is a legitimate value and
must not double as "not found".
"""

from __future__ import annotations

from dataclasses import dataclass, field

from screenlogic.protocol.codes import (
    CircuitFunction,
    CircuitInterface,
    ControllerState,
    EquipmentFlags,
)


@dataclass
class Circuit:
    """A named, independently switchable load.

    Attributes:
        id: Circuit id, unique within one config snapshot
        name: Display name configured on the controller
        function: What the circuit drives (int if unknown to this client)
        interface: Where the controller UI shows it (int if unknown)
        index: Controller-side circuit index
        device_id: Controller-side device id

    """

    id: int
    name: str
    function: CircuitFunction | int = CircuitFunction.GENERIC
    interface: CircuitInterface | int = CircuitInterface.POOL
    index: int = 0
    device_id: int = 0


@dataclass
class IntelliFlo:
    """Status byte of one installed IntelliFlo pump slot."""

    value: int


@dataclass
class ControllerConfig:
    model: str
    id: int
    equipment: EquipmentFlags
    circuits: list[Circuit] = field(default_factory=list)
    intelliflo: list[IntelliFlo] = field(default_factory=list)

    def circuit_by_id(self, circuit_id: int) -> Circuit | None:
        for circuit in self.circuits:
            if circuit.id == circuit_id:
                return circuit
        return None

    def circuit_by_name(self, name: str) -> Circuit | None:
        for circuit in self.circuits:
            if circuit.name == name:
                return circuit
        return None

    def circuit_name(self, circuit_id: int) -> str | None:
        circuit = self.circuit_by_id(circuit_id)
        return circuit.name if circuit is not None else None


@dataclass
class CircuitStatus:
    id: int
    state: bool


@dataclass
class ControllerStatus:
    """Snapshot of controller state, correlated to a config by circuit id."""

    state: ControllerState
    circuits: list[CircuitStatus] = field(default_factory=list)
    alert: int = 0

    def status_for_id(self, circuit_id: int) -> bool | None:
        """Return the on/off state for ``circuit_id``, or None if absent."""
        for circuit in self.circuits:
            if circuit.id == circuit_id:
                return circuit.state
        return None
