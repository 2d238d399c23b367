"""Controller configuration and status record decoding.

Both records are variable length: counted lists of circuits, bodies and
colours sit between fixed fields. Decoding runs the whole record through a
single Decoder and fails with MessageDecodeError on any short read, or when
bytes are left over after the final field (protocol drift guard).
"""

from __future__ import annotations

import logging

from screenlogic.protocol.codec import Decoder
from screenlogic.protocol.codes import (
    INTELLIFLO_SLOTS,
    ControllerState,
    EquipmentFlags,
    circuit_function,
    circuit_interface,
)
from screenlogic.protocol.exceptions import UnknownControllerError
from screenlogic.protocol.models import (
    Circuit,
    CircuitStatus,
    ControllerConfig,
    ControllerStatus,
    IntelliFlo,
)

logger = logging.getLogger(__name__)

# Controller type -> {hardware type: model name}. Empty dicts are slots the
# controller firmware reserves but never reports.
CONTROLLER_TYPES: tuple[dict[int, str], ...] = (
    {0: "IntelliTouch i5+3S"},  # 0
    {0: "IntelliTouch i7+3"},  # 1
    {0: "IntelliTouch i9+3"},  # 2
    {0: "IntelliTouch i5+3S"},  # 3
    {0: "IntelliTouch i9+3S"},  # 4
    {0: "IntelliTouch i10+3D", 1: "IntelliTouch i10X"},  # 5
    {0: "IntelliTouch i10X"},  # 6
    {},  # 7
    {},  # 8
    {},  # 9
    {0: "SunTouch"},  # 10
    {0: "Suntouch/Intellicom"},  # 11
    {},  # 12
    {  # 13
        0: "EasyTouch2 8",
        1: "EasyTouch2 8P",
        2: "EasyTouch2 4",
        3: "EasyTouch2 4P",
        5: "EasyTouch2 PL4",
        6: "EasyTouch2 PSL4",
    },
    {  # 14
        0: "EasyTouch1 8",
        1: "EasyTouch1 8P",
        2: "EasyTouch1 4",
        3: "EasyTouch1 4P",
    },
)

# get-config fixed skips
_SETPOINT_BYTES = 4
_UNITS_BYTES = 1
_CONTROLLER_DATA_BYTES = 1
_CIRCUIT_TRAILER_BYTES = 2  # after the u16 runtime

# get-status fixed skips: freeze mode, remotes, pool/spa/cleaner delay,
# 3 unknown bytes, air temperature (u32)
_STATUS_ENVIRONMENT_BYTES = 5 + 3 + 4
# body type (u32) + last temp, heat status, heat set point, cool set point,
# heat mode (5 x i32)
_BODY_RECORD_BYTES = 4 + 5 * 4
_STATUS_TRAILER_FIELDS = 7  # pH, ORP, saturation, salt PPM, pH tank, ORP tank, alert


def decode_controller_hardware(controller: int, hardware: int) -> str:
    """Resolve controller/hardware type bytes to a model name.

    Raises:
        UnknownControllerError: If either value is not in the model table

    """
    if controller >= len(CONTROLLER_TYPES):
        reason = f"unknown controller type {controller}"
        raise UnknownControllerError(controller, hardware, reason)
    name = CONTROLLER_TYPES[controller].get(hardware)
    if name is None:
        reason = f"unknown hardware type {hardware} for controller type {controller}"
        raise UnknownControllerError(controller, hardware, reason)
    return name


def _decode_circuit(dec: Decoder) -> Circuit:
    circuit_id = dec.uint32()
    name = dec.string()
    index = dec.uint8()
    # function, interface, flags, colour set, colour position, colour stagger
    function, interface, _flags, _color_set, _color_pos, _color_stagger = dec.uint8s(6)
    device_id = dec.uint8()
    _runtime = dec.uint16()
    dec.skip(_CIRCUIT_TRAILER_BYTES)
    return Circuit(
        id=circuit_id,
        name=name,
        function=circuit_function(function),
        interface=circuit_interface(interface),
        index=index,
        device_id=device_id,
    )


def decode_controller_config(payload: bytes | memoryview) -> ControllerConfig:
    """Decode a get-config response payload.

    Raises:
        MessageDecodeError: On a short read at any stage or trailing bytes
        UnknownControllerError: If the controller model is not recognised

    """
    context = "decode_controller_config"
    dec = Decoder(payload)

    controller_id = dec.uint32()
    dec.skip(_SETPOINT_BYTES)
    dec.skip(_UNITS_BYTES)
    controller_type, hardware_type = dec.uint8s(2)
    dec.require(context)
    model = decode_controller_hardware(controller_type, hardware_type)
    dec.skip(_CONTROLLER_DATA_BYTES)

    equipment = EquipmentFlags(dec.uint32())
    _circuit_name = dec.string()

    circuits: list[Circuit] = []
    circuit_count = dec.uint32()
    for _ in range(circuit_count):
        circuit = _decode_circuit(dec)
        if not dec.ok:
            break
        circuits.append(circuit)
    dec.require(context)

    color_count = dec.uint32()
    for _ in range(color_count):
        _color_name = dec.string()
        _rgb = dec.uint32s(3)
        if not dec.ok:
            break
    dec.require(context)

    pumps: list[IntelliFlo] = []
    for slot in range(INTELLIFLO_SLOTS):
        value = dec.uint8()
        if equipment.has_intelliflo(slot):
            pumps.append(IntelliFlo(value=value))
    dec.require(context)

    _flags2, _alarms = dec.uint32s(2)
    dec.require(context, exhaustive=True)

    logger.debug(
        "✓ Controller config decoded",
        extra={
            "model": model,
            "controller_id": controller_id,
            "circuits": len(circuits),
            "pumps": len(pumps),
        },
    )
    return ControllerConfig(
        model=model,
        id=controller_id,
        equipment=equipment,
        circuits=circuits,
        intelliflo=pumps,
    )


def decode_controller_status(payload: bytes | memoryview) -> ControllerStatus:
    """Decode a get-status response payload.

    Raises:
        MessageDecodeError: On a short read at any stage or trailing bytes

    """
    context = "decode_controller_status"
    dec = Decoder(payload)

    state = ControllerState.from_wire(dec.uint32())
    dec.skip(_STATUS_ENVIRONMENT_BYTES)

    body_count = dec.uint32()
    for _ in range(body_count):
        dec.skip(_BODY_RECORD_BYTES)
        if not dec.ok:
            break
    dec.require(context)

    circuits: list[CircuitStatus] = []
    circuit_count = dec.uint32()
    for _ in range(circuit_count):
        circuit_id = dec.uint32()
        value = dec.uint32()
        _color_set, _color_pos, _color_stagger, _delay = dec.uint8s(4)
        if not dec.ok:
            break
        circuits.append(CircuitStatus(id=circuit_id, state=value != 0))

    trailer = dec.int32s(_STATUS_TRAILER_FIELDS)
    dec.require(context, exhaustive=True)

    return ControllerStatus(state=state, circuits=circuits, alert=trailer[-1])
