"""ScreenLogic wire codec.

Little-endian integer fields, length-prefixed 4-byte aligned strings and
byte blobs, and a short-circuiting decode pipeline.

Field encoding:
- Integers: u8/u16/u32 and signed variants, little-endian
- Strings: u32 length, then bytes, then zero padding to a multiple of 4.
  The encoder writes the rounded-up length.
- If the top bit of a string length is set the body is UTF-16LE and the
  low 31 bits hold its byte count. No padding follows a UTF-16 body.

Decoding mirrors the controller's "decode as far as possible, check once"
style: every Decoder primitive becomes inert after the first short read, so
a record can be decoded field by field and validated with a single check.
"""

from __future__ import annotations

import logging
import struct

from screenlogic.protocol.exceptions import MessageDecodeError

logger = logging.getLogger(__name__)

UTF16_FLAG = 0x80000000
_LENGTH_MASK = 0x7FFFFFFF
_ALIGNMENT = 4

_U8 = struct.Struct("<B")
_I8 = struct.Struct("<b")
_U16 = struct.Struct("<H")
_I16 = struct.Struct("<h")
_U32 = struct.Struct("<I")
_I32 = struct.Struct("<i")


def round_to_4(size: int) -> int:
    """Round ``size`` up to the next multiple of 4."""
    remainder = size % _ALIGNMENT
    if remainder:
        return size + _ALIGNMENT - remainder
    return size


def bytes_size(data: bytes) -> int:
    """Wire size of a byte blob: length prefix plus padded body."""
    return round_to_4(len(data)) + 4


def string_size(value: str) -> int:
    """Wire size of a UTF-8 string field."""
    return bytes_size(value.encode("utf-8"))


class PayloadWriter:
    """Sequential writer over a pre-sized payload buffer.

    Mirrors the append-and-advance encoders: each append writes at the
    current offset and moves it forward. Writing past the end of the buffer
    is a caller bug and raises ``struct.error``/``ValueError``.
    """

    def __init__(self, buf: bytearray | memoryview) -> None:
        self._buf = memoryview(buf)
        self._offset = 0

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def remaining(self) -> int:
        return len(self._buf) - self._offset

    def _pack(self, layout: struct.Struct, value: int) -> PayloadWriter:
        layout.pack_into(self._buf, self._offset, value)
        self._offset += layout.size
        return self

    def append_uint8(self, value: int) -> PayloadWriter:
        return self._pack(_U8, value & 0xFF)

    def append_int8(self, value: int) -> PayloadWriter:
        return self._pack(_I8, value)

    def append_uint16(self, value: int) -> PayloadWriter:
        return self._pack(_U16, value & 0xFFFF)

    def append_int16(self, value: int) -> PayloadWriter:
        return self._pack(_I16, value)

    def append_uint32(self, value: int) -> PayloadWriter:
        return self._pack(_U32, value & 0xFFFFFFFF)

    def append_int32(self, value: int) -> PayloadWriter:
        return self._pack(_I32, value)

    def append_bytes(self, data: bytes) -> PayloadWriter:
        """Append a length-prefixed blob padded to a 4-byte boundary."""
        size = round_to_4(len(data))
        self.append_uint32(size)
        end = self._offset + size
        if end > len(self._buf):
            msg = f"blob of {size} bytes overruns payload ({self.remaining} left)"
            raise ValueError(msg)
        self._buf[self._offset : self._offset + len(data)] = data
        self._buf[self._offset + len(data) : end] = bytes(size - len(data))
        self._offset = end
        return self

    def append_string(self, value: str) -> PayloadWriter:
        return self.append_bytes(value.encode("utf-8"))

    def append_utf16_string(self, value: str) -> PayloadWriter:
        """Append a UTF-16LE string (high-bit length, no padding)."""
        body = value.encode("utf-16-le")
        self.append_uint32(UTF16_FLAG | len(body))
        end = self._offset + len(body)
        if end > len(self._buf):
            msg = f"string of {len(body)} bytes overruns payload ({self.remaining} left)"
            raise ValueError(msg)
        self._buf[self._offset : end] = body
        self._offset = end
        return self


class Decoder:
    """Short-circuiting decoder over a payload buffer.

    Every primitive returns zero values and leaves the buffer untouched once
    ``ok`` is False, so callers decode a whole record and check once.

    Example:
        >>> dec = Decoder(bytes([1, 0, 2, 0]))
        >>> dec.uint16s(2)
        (1, 2)
        >>> dec.uint32()
        0
        >>> dec.ok
        False

    """

    def __init__(self, data: bytes | bytearray | memoryview) -> None:
        self._buf = memoryview(data)
        self.ok = True

    @property
    def remaining(self) -> int:
        """Number of bytes not yet consumed."""
        return len(self._buf)

    def _take(self, size: int) -> memoryview | None:
        if not self.ok or len(self._buf) < size:
            self.ok = False
            return None
        chunk = self._buf[:size]
        self._buf = self._buf[size:]
        return chunk

    def _unpack(self, fmt: str, count: int) -> tuple[int, ...]:
        layout = struct.Struct(f"<{count}{fmt}")
        chunk = self._take(layout.size)
        if chunk is None:
            return (0,) * count
        return layout.unpack(chunk)

    def uint8(self) -> int:
        return self._unpack("B", 1)[0]

    def uint8s(self, count: int) -> tuple[int, ...]:
        return self._unpack("B", count)

    def int8(self) -> int:
        return self._unpack("b", 1)[0]

    def int8s(self, count: int) -> tuple[int, ...]:
        return self._unpack("b", count)

    def uint16(self) -> int:
        return self._unpack("H", 1)[0]

    def uint16s(self, count: int) -> tuple[int, ...]:
        return self._unpack("H", count)

    def int16(self) -> int:
        return self._unpack("h", 1)[0]

    def int16s(self, count: int) -> tuple[int, ...]:
        return self._unpack("h", count)

    def uint32(self) -> int:
        return self._unpack("I", 1)[0]

    def uint32s(self, count: int) -> tuple[int, ...]:
        return self._unpack("I", count)

    def int32(self) -> int:
        return self._unpack("i", 1)[0]

    def int32s(self, count: int) -> tuple[int, ...]:
        return self._unpack("i", count)

    def skip(self, size: int) -> None:
        self._take(size)

    def _length_prefix(self) -> int | None:
        if not self.ok or len(self._buf) < _U32.size:
            self.ok = False
            return None
        return _U32.unpack_from(self._buf)[0]

    def blob(self) -> bytes:
        """Decode a length-prefixed, 4-byte padded byte blob."""
        size = self._length_prefix()
        if size is None or size & UTF16_FLAG:
            self.ok = False
            return b""
        if len(self._buf) < _U32.size + round_to_4(size):
            self.ok = False
            return b""
        self._buf = self._buf[_U32.size :]
        body = bytes(self._buf[:size])
        self._buf = self._buf[round_to_4(size) :]
        return body

    def string(self) -> str:
        """Decode a string field.

        UTF-8 bodies consume their alignment padding; UTF-16 bodies do not.
        Trailing NULs written as padding by the encoder are stripped.
        """
        size = self._length_prefix()
        if size is None:
            return ""
        if not size & UTF16_FLAG:
            body = self.blob()
            return body.decode("utf-8", errors="replace").rstrip("\x00")

        units = (size & _LENGTH_MASK) // 2
        if len(self._buf) < _U32.size + units * 2:
            self.ok = False
            return ""
        self._buf = self._buf[_U32.size :]
        body = bytes(self._buf[: units * 2])
        self._buf = self._buf[units * 2 :]
        return body.decode("utf-16-le", errors="replace")

    def require(self, context: str, *, exhaustive: bool = False) -> None:
        """Raise MessageDecodeError if any step failed (or bytes remain).

        Args:
            context: Name of the record being decoded, used in the error
            exhaustive: Also reject unconsumed trailing bytes

        """
        if not self.ok:
            logger.debug("✗ %s: message too small", context)
            msg = f"{context}: message too small"
            raise MessageDecodeError(msg)
        if exhaustive and self.remaining:
            logger.debug(
                "✗ %s: %d spurious trailing bytes",
                context,
                self.remaining,
                extra={"trailing_bytes": self.remaining},
            )
            msg = f"{context}: spurious data ({self.remaining} trailing bytes)"
            raise MessageDecodeError(msg, bytes(self._buf))
