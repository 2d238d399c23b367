"""Unit tests for the ScreenLogic field codec."""

from __future__ import annotations

import struct

import pytest

from screenlogic.protocol.codec import (
    UTF16_FLAG,
    Decoder,
    PayloadWriter,
    bytes_size,
    round_to_4,
    string_size,
)
from screenlogic.protocol.exceptions import MessageDecodeError
from tests.helpers.expectations import assert_reason, expect_exception
from tests.helpers.payloads import wire_string, wire_utf16


class TestSizes:
    """Alignment and wire-size helpers."""

    @pytest.mark.parametrize(
        ("size", "expected"),
        [(0, 0), (1, 4), (3, 4), (4, 4), (5, 8), (10, 12), (16, 16)],
    )
    def test_round_to_4(self, size: int, expected: int) -> None:
        assert round_to_4(size) == expected

    def test_string_size_includes_prefix_and_padding(self) -> None:
        assert string_size("automation") == 16
        assert string_size("0000000000000000") == 20
        assert string_size("") == 4

    def test_bytes_size_counts_encoded_length(self) -> None:
        assert bytes_size("é".encode()) == 8


class TestPayloadWriter:
    """Sequential payload encoding."""

    def test_integers_are_little_endian(self) -> None:
        buf = bytearray(6)
        PayloadWriter(buf).append_uint16(0x1234).append_uint32(0xA1B2C3D4)
        assert bytes(buf) == b"\x34\x12\xd4\xc3\xb2\xa1"

    def test_string_writes_rounded_length_and_zero_padding(self) -> None:
        buf = bytearray(string_size("abcde"))
        writer = PayloadWriter(buf).append_string("abcde")
        assert bytes(buf) == struct.pack("<I", 8) + b"abcde\x00\x00\x00"
        assert writer.remaining == 0
        assert writer.offset == len(buf)

    def test_aligned_string_has_no_padding(self) -> None:
        buf = bytearray(string_size("abcd"))
        PayloadWriter(buf).append_string("abcd")
        assert bytes(buf) == struct.pack("<I", 4) + b"abcd"

    def test_utf16_string_sets_high_bit_without_padding(self) -> None:
        buf = bytearray(4 + 6)
        PayloadWriter(buf).append_utf16_string("Spa")
        assert bytes(buf) == wire_utf16("Spa")

    def test_overrun_raises(self) -> None:
        writer = PayloadWriter(bytearray(6))
        _ = expect_exception(writer.append_string, ValueError, "abcdef")

    def test_writes_through_memoryview(self) -> None:
        buf = bytearray(12)
        PayloadWriter(memoryview(buf)[4:]).append_uint32(7).append_uint32(9)
        assert buf[:4] == bytes(4)
        assert struct.unpack_from("<II", buf, 4) == (7, 9)


class TestDecoder:
    """Short-circuiting decoder primitives."""

    def test_integers(self) -> None:
        data = bytes([0xFF]) + struct.pack("<H", 513) + struct.pack("<I", 70000) + struct.pack("<2h", -1, 2)
        dec = Decoder(data)
        assert dec.uint8() == 0xFF
        assert dec.uint16() == 513
        assert dec.uint32() == 70000
        assert dec.int16s(2) == (-1, 2)
        assert dec.ok
        assert dec.remaining == 0

    def test_short_read_returns_zeros_and_goes_inert(self) -> None:
        dec = Decoder(bytes([1, 0, 2]))
        assert dec.uint16() == 1
        assert dec.uint32() == 0
        assert not dec.ok
        # The remaining byte is not consumed by later calls either
        assert dec.uint8() == 0
        assert dec.remaining == 1

    def test_multi_value_short_read(self) -> None:
        dec = Decoder(struct.pack("<2I", 1, 2))
        assert dec.uint32s(3) == (0, 0, 0)
        assert not dec.ok

    def test_skip_past_end_fails(self) -> None:
        dec = Decoder(bytes(3))
        dec.skip(4)
        assert not dec.ok

    def test_string_consumes_padding(self) -> None:
        dec = Decoder(wire_string("Pool") + wire_string("Spa") + struct.pack("<I", 9))
        assert dec.string() == "Pool"
        assert dec.string() == "Spa"
        assert dec.uint32() == 9
        assert dec.ok

    def test_string_strips_trailing_nuls(self) -> None:
        dec = Decoder(struct.pack("<I", 8) + b"Jets\x00\x00\x00\x00")
        assert dec.string() == "Jets"

    def test_utf16_string_consumes_no_padding(self) -> None:
        dec = Decoder(wire_utf16("Spa") + bytes([0x2A]))
        assert dec.string() == "Spa"
        assert dec.uint8() == 0x2A
        assert dec.ok

    def test_utf16_length_is_masked(self) -> None:
        dec = Decoder(struct.pack("<I", UTF16_FLAG | 4) + "Hi".encode("utf-16-le"))
        assert dec.string() == "Hi"
        assert dec.remaining == 0

    def test_truncated_string_fails(self) -> None:
        dec = Decoder(struct.pack("<I", 8) + b"abc")
        assert dec.string() == ""
        assert not dec.ok

    def test_truncated_length_prefix_fails(self) -> None:
        dec = Decoder(b"\x04\x00")
        assert dec.string() == ""
        assert not dec.ok

    def test_blob_rejects_utf16_length(self) -> None:
        dec = Decoder(wire_utf16("ab"))
        assert dec.blob() == b""
        assert not dec.ok

    def test_blob_keeps_declared_bytes(self) -> None:
        dec = Decoder(struct.pack("<I", 3) + b"xyz\x00")
        assert dec.blob() == b"xyz"
        assert dec.remaining == 0


class TestRequire:
    """Single validation point after decoding a record."""

    def test_require_passes_when_ok(self) -> None:
        dec = Decoder(bytes(4))
        dec.uint32()
        dec.require("record", exhaustive=True)

    def test_require_raises_after_short_read(self) -> None:
        dec = Decoder(bytes(2))
        dec.uint32()
        err = expect_exception(dec.require, MessageDecodeError, "record")
        assert err.reason == "record: message too small"

    def test_exhaustive_rejects_trailing_bytes(self) -> None:
        dec = Decoder(bytes(6))
        dec.uint32()
        err = expect_exception(dec.require, MessageDecodeError, "record", exhaustive=True)
        assert_reason(err, "spurious data")
        assert err.data_preview == bytes(2)

    def test_trailing_bytes_allowed_when_not_exhaustive(self) -> None:
        dec = Decoder(bytes(6))
        dec.uint32()
        dec.require("record")


SENTINEL = 0xA5A5A5A5

INTEGER_FIELDS = [
    ("append_uint8", "uint8", 1, [0, 1, 0x7F, 0xFF]),
    ("append_int8", "int8", 1, [-128, -1, 0, 127]),
    ("append_uint16", "uint16", 2, [0, 0x1234, 0xFFFF]),
    ("append_int16", "int16", 2, [-32768, -2, 0, 32767]),
    ("append_uint32", "uint32", 4, [0, 12526, 0xFFFFFFFF]),
    ("append_int32", "int32", 4, [-(2**31), -7, 0, 2**31 - 1]),
]


class TestRoundTrip:
    """Writer output decodes back to the original field values."""

    @pytest.mark.parametrize("value", ["", "a", "ab", "abc", "abcd", "abcde", "Pool Light", "Spa é"])
    def test_string(self, value: str) -> None:
        buf = bytearray(string_size(value) + 4)
        PayloadWriter(buf).append_string(value).append_uint32(SENTINEL)

        dec = Decoder(buf)
        assert dec.string() == value
        assert dec.uint32() == SENTINEL
        dec.require("round trip", exhaustive=True)

    @pytest.mark.parametrize("value", ["", "a", "ab", "abc", "abcd", "abcde", "Bañera"])
    def test_utf16_string(self, value: str) -> None:
        body_size = len(value.encode("utf-16-le"))
        buf = bytearray(4 + body_size + 1)
        PayloadWriter(buf).append_utf16_string(value).append_uint8(0x5A)

        dec = Decoder(buf)
        assert dec.string() == value
        # No alignment padding is consumed after a UTF-16 body
        assert dec.uint8() == 0x5A
        dec.require("round trip", exhaustive=True)

    @pytest.mark.parametrize(("append", "read", "width", "values"), INTEGER_FIELDS)
    def test_integers(self, append: str, read: str, width: int, values: list[int]) -> None:
        buf = bytearray(width * len(values))
        writer = PayloadWriter(buf)
        for value in values:
            getattr(writer, append)(value)
        assert writer.remaining == 0

        dec = Decoder(buf)
        assert [getattr(dec, read)() for _ in values] == values
        dec.require("round trip", exhaustive=True)

    def test_signed_reads_of_raw_bytes(self) -> None:
        dec = Decoder(b"\xff" + struct.pack("<h", -300) + struct.pack("<i", -70000))
        assert dec.int8() == -1
        assert dec.int16() == -300
        assert dec.int32() == -70000
        assert dec.remaining == 0

    def test_signed_reads_go_inert_after_short_read(self) -> None:
        dec = Decoder(b"\x01")
        assert dec.int16() == 0
        assert dec.int8() == 0
        assert dec.int8s(2) == (0, 0)
        assert dec.ok is False

    def test_unsigned_writers_mask_to_width(self) -> None:
        buf = bytearray(3)
        PayloadWriter(buf).append_uint8(0x1FF).append_uint16(-1)
        assert bytes(buf) == b"\xff\xff\xff"
