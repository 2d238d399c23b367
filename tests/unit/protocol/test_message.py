"""Unit tests for the message envelope."""

from __future__ import annotations

from screenlogic.protocol.message import HEADER_SIZE, Message


def test_new_writes_header_and_payload() -> None:
    msg = Message.new(7, 8120, b"\x01\x02\x03")
    assert bytes(msg) == b"\x07\x00\xb8\x1f\x03\x00\x00\x00\x01\x02\x03"
    assert msg.id == 7
    assert msg.code == 8120
    assert msg.size == 3
    assert bytes(msg.payload) == b"\x01\x02\x03"
    assert len(msg) == HEADER_SIZE + 3


def test_new_empty_zero_fills_payload() -> None:
    msg = Message.new_empty(1, 12526, 4)
    assert msg.size == 4
    assert bytes(msg.payload) == bytes(4)


def test_setters_rewrite_header_in_place() -> None:
    msg = Message.new_empty(1, 27, 0)
    msg.set_id(0x1234)
    msg.set_code(28)
    msg.set_size(0)
    assert bytes(msg) == b"\x34\x12\x1c\x00\x00\x00\x00\x00"


def test_set_id_truncates_to_16_bits() -> None:
    msg = Message.new_empty(0, 27, 0)
    msg.set_id(65536 + 5)
    assert msg.id == 5


def test_payload_view_writes_through() -> None:
    msg = Message.new_empty(1, 12530, 4)
    msg.payload[0] = 9
    assert bytes(msg)[HEADER_SIZE] == 9


def test_from_bytes_copies() -> None:
    raw = bytearray(b"\x02\x00\x1c\x00\x00\x00\x00\x00")
    msg = Message.from_bytes(bytes(raw))
    raw[0] = 0xFF
    assert msg.id == 2
    assert msg.code == 28


def test_equality_compares_bytes() -> None:
    assert Message.new(1, 2, b"x") == Message.new(1, 2, b"x")
    assert Message.new(1, 2, b"x") != Message.new(2, 2, b"x")


def test_repr() -> None:
    assert repr(Message.new(3, 8111, b"")) == "Message(id=3, code=8111, size=0)"
    assert repr(Message.from_bytes(b"\x01")) == "Message(truncated, 1 bytes)"
