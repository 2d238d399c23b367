"""A switchable circuit bound to an adapter."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from screenlogic.adapter import Adapter


class Circuit:
    """One controller circuit, addressed by id.

    Attributes:
        adapter: Adapter that owns the controller connection
        id: Circuit id as reported in the controller config
        name: Display name (informational)

    """

    def __init__(self, adapter: Adapter, circuit_id: int, name: str = "") -> None:
        self.adapter = adapter
        self.id = circuit_id
        self.name = name

    @classmethod
    async def by_name(cls, adapter: Adapter, name: str) -> Circuit | None:
        """Look a circuit up by name in the controller config; None if absent."""
        circuit = (await adapter.get_config()).circuit_by_name(name)
        if circuit is None:
            return None
        return cls(adapter, circuit.id, circuit.name)

    async def on(self) -> None:
        await self.adapter.set_circuit(self.id, True)

    async def off(self) -> None:
        await self.adapter.set_circuit(self.id, False)

    async def is_on(self) -> bool | None:
        """Current state from a fresh status snapshot; None if the controller doesn't report it."""
        return (await self.adapter.get_status()).status_for_id(self.id)

    def operations(self) -> dict[str, Callable[[], Awaitable[None]]]:
        return {"on": self.on, "off": self.off}

    def operations_help(self) -> dict[str, str]:
        return {
            "on": "turn the circuit on",
            "off": "turn the circuit off",
        }

    def __repr__(self) -> str:
        return f"Circuit(id={self.id}, name={self.name!r})"
