"""Unit tests for config/status lookups."""

from __future__ import annotations

from screenlogic.protocol.codes import ControllerState, EquipmentFlags
from screenlogic.protocol.models import Circuit, CircuitStatus, ControllerConfig, ControllerStatus


def make_config() -> ControllerConfig:
    return ControllerConfig(
        model="EasyTouch2 8",
        id=100,
        equipment=EquipmentFlags(0),
        circuits=[Circuit(id=0, name="Aux 0"), Circuit(id=505, name="Pool"), Circuit(id=506, name="Pool")],
    )


def test_circuit_by_id() -> None:
    cfg = make_config()
    found = cfg.circuit_by_id(505)
    assert found is not None
    assert found.name == "Pool"
    assert cfg.circuit_by_id(1) is None


def test_circuit_id_zero_is_found() -> None:
    found = make_config().circuit_by_id(0)
    assert found is not None
    assert found.name == "Aux 0"


def test_circuit_by_name_returns_first_match() -> None:
    cfg = make_config()
    found = cfg.circuit_by_name("Pool")
    assert found is not None
    assert found.id == 505
    assert cfg.circuit_by_name("pool") is None


def test_circuit_name() -> None:
    cfg = make_config()
    assert cfg.circuit_name(506) == "Pool"
    assert cfg.circuit_name(7) is None


def test_status_for_id() -> None:
    status = ControllerStatus(
        state=ControllerState.READY,
        circuits=[CircuitStatus(id=0, state=False), CircuitStatus(id=505, state=True)],
    )
    assert status.status_for_id(505) is True
    assert status.status_for_id(0) is False
    assert status.status_for_id(506) is None
