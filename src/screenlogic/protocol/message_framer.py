"""TCP stream message framing with buffer overflow protection.

This module provides MessageFramer for extracting complete messages from a
TCP byte stream, handling partial messages and multi-message reads.
"""

import logging
import struct

from screenlogic.protocol.exceptions import MessageFramingError
from screenlogic.protocol.message import HEADER_SIZE

logger = logging.getLogger(__name__)


class MessageFramer:
    r"""Extract complete messages from a TCP byte stream.

    TCP reads may return partial messages, multiple messages, or exact
    boundaries. MessageFramer buffers incoming bytes and extracts complete
    messages based on the payload size in the 8-byte header.

    Algorithm:

    1. Buffer all incoming bytes
    2. Check if buffer has at least 8 bytes (header)
    3. Read payload size from header bytes 4-7 (u32 LE)
    4. Validate size <= MAX_PAYLOAD_SIZE
    5. If buffer has full message (8 + size), extract it
    6. Repeat until buffer exhausted

    The protocol carries no frame markers, so an oversized length cannot be
    skipped over; the buffer is discarded and MessageFramingError raised.

    Example:
        framer = MessageFramer()
        # First read: header only
        messages = framer.feed(b'\\x01\\x00\\xaf\\x1f\\x04\\x00\\x00\\x00')
        assert messages == []  # Incomplete

        # Second read: payload
        messages = framer.feed(b'\\x00\\x00\\x00\\x00')
        assert len(messages) == 1  # Now complete

    """

    MAX_PAYLOAD_SIZE: int = 65536  # config responses observed well under 4KB

    def __init__(self) -> None:
        """Initialize message framer with empty buffer."""
        self.buffer: bytearray = bytearray()

    def feed(self, data: bytes) -> list[bytes]:
        """Add data to buffer and return list of complete messages.

        Args:
            data: Incoming bytes from TCP read

        Returns:
            List of complete message bytes (may be empty if no complete messages)

        Raises:
            MessageFramingError: If a header declares an oversized payload

        """
        self.buffer.extend(data)
        return self._extract_messages()

    def reset(self) -> None:
        """Drop any buffered partial message."""
        self.buffer = bytearray()

    def _extract_messages(self) -> list[bytes]:
        messages: list[bytes] = []

        while len(self.buffer) >= HEADER_SIZE:
            (payload_size,) = struct.unpack_from("<I", self.buffer, 4)

            if payload_size > self.MAX_PAYLOAD_SIZE:
                buffer_size = len(self.buffer)
                logger.error(
                    "Invalid message size: %d (max %d), discarding buffer",
                    payload_size,
                    self.MAX_PAYLOAD_SIZE,
                    extra={"buffer_size": buffer_size, "payload_size": payload_size},
                )
                self.buffer = bytearray()
                error_reason = "message_too_large"
                raise MessageFramingError(error_reason, buffer_size)

            total_length = HEADER_SIZE + payload_size
            if len(self.buffer) < total_length:
                # Incomplete message, wait for more data
                break

            messages.append(bytes(self.buffer[:total_length]))
            self.buffer = self.buffer[total_length:]

        return messages
