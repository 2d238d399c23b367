"""ScreenLogic message envelope.

Every message is an 8-byte header followed by the payload:
- Bytes 0-1: sequence id (u16 LE)
- Bytes 2-3: message code (u16 LE)
- Bytes 4-7: payload size (u32 LE)
"""

from __future__ import annotations

import struct

HEADER_SIZE = 8

_HEADER = struct.Struct("<HHI")


class Message:
    """Header plus payload held in one mutable buffer.

    Accessors read and mutators write the header in place. Building a
    message never fails; a size that disagrees with the payload is a caller
    bug.
    """

    __slots__ = ("_buf",)

    def __init__(self, buf: bytearray) -> None:
        self._buf = buf

    @classmethod
    def new(cls, msg_id: int, code: int, payload: bytes) -> Message:
        """Build a message whose payload is a copy of ``payload``."""
        msg = cls(bytearray(HEADER_SIZE + len(payload)))
        msg.set_id(msg_id)
        msg.set_code(code)
        msg.set_size(len(payload))
        msg._buf[HEADER_SIZE:] = payload
        return msg

    @classmethod
    def new_empty(cls, msg_id: int, code: int, size: int) -> Message:
        """Build a message with a zero-filled payload of ``size`` bytes."""
        msg = cls(bytearray(HEADER_SIZE + size))
        msg.set_id(msg_id)
        msg.set_code(code)
        msg.set_size(size)
        return msg

    @classmethod
    def from_bytes(cls, data: bytes) -> Message:
        """Wrap received bytes (copied) as a message."""
        return cls(bytearray(data))

    @property
    def id(self) -> int:
        return _HEADER.unpack_from(self._buf)[0]

    @property
    def code(self) -> int:
        return _HEADER.unpack_from(self._buf)[1]

    @property
    def size(self) -> int:
        return _HEADER.unpack_from(self._buf)[2]

    @property
    def payload(self) -> memoryview:
        return memoryview(self._buf)[HEADER_SIZE:]

    def set_id(self, msg_id: int) -> None:
        struct.pack_into("<H", self._buf, 0, msg_id & 0xFFFF)

    def set_code(self, code: int) -> None:
        struct.pack_into("<H", self._buf, 2, code & 0xFFFF)

    def set_size(self, size: int) -> None:
        struct.pack_into("<I", self._buf, 4, size)

    def __len__(self) -> int:
        return len(self._buf)

    def __bytes__(self) -> bytes:
        return bytes(self._buf)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Message):
            return self._buf == other._buf
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        if len(self._buf) < HEADER_SIZE:
            return f"Message(truncated, {len(self._buf)} bytes)"
        return f"Message(id={self.id}, code={self.code}, size={self.size})"
