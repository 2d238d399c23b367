"""ScreenLogic protocol package - codec, message envelope, records and operations.

This package implements the ScreenLogic binary protocol: little-endian
field encoding with 4-byte aligned strings, the 8-byte message header,
decoding of configuration and status records, and the request/response
operations built on them.

Public API:
- Message codes and enumerations (MsgCode, ControllerState, ...)
- Message envelope (Message, HEADER_SIZE)
- Codec (Decoder, PayloadWriter)
- Decoded records (ControllerConfig, ControllerStatus, ...)

Operations live in ``screenlogic.protocol.operations`` and are not
re-exported here because they depend on the transport package.
"""

from screenlogic.protocol.codec import Decoder, PayloadWriter, round_to_4, string_size
from screenlogic.protocol.codes import (
    CircuitFunction,
    CircuitInterface,
    ColorMode,
    ControllerState,
    EquipmentFlags,
    MsgCode,
)
from screenlogic.protocol.message import HEADER_SIZE, Message
from screenlogic.protocol.models import (
    Circuit,
    CircuitStatus,
    ControllerConfig,
    ControllerStatus,
    IntelliFlo,
)

__all__ = [
    # Codec
    "Decoder",
    "PayloadWriter",
    "round_to_4",
    "string_size",
    # Codes
    "CircuitFunction",
    "CircuitInterface",
    "ColorMode",
    "ControllerState",
    "EquipmentFlags",
    "MsgCode",
    # Envelope
    "HEADER_SIZE",
    "Message",
    # Records
    "Circuit",
    "CircuitStatus",
    "ControllerConfig",
    "ControllerStatus",
    "IntelliFlo",
]
