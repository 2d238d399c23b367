"""Asyncio TCP socket abstraction with deadlines and message framing."""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from typing import TypeVar

from screenlogic.protocol.message_framer import MessageFramer
from screenlogic.transport.exceptions import (
    DialError,
    ReceiveError,
    ReceiveTimeoutError,
    ScreenLogicConnectionError,
    SendError,
)

logger = logging.getLogger(__name__)

_Stream = TypeVar("_Stream", asyncio.StreamReader, asyncio.StreamWriter)


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class TCPConnection:
    """One TCP stream to a controller.

    Every blocking step is bounded: ``connect`` by ``connect_timeout``,
    ``send`` and ``read_message`` by ``io_timeout`` unless the caller passes
    its own deadline. Reads are framed, so ``read_message()`` yields exactly
    one protocol message (header + payload) per call and keeps any surplus
    for the next call.
    """

    def __init__(
        self,
        host: str,
        port: int,
        connect_timeout: float = 5.0,
        io_timeout: float = 5.0,
        max_read_size: int = 4096,
    ):
        self.host = host
        self.port = port
        self.connect_timeout = connect_timeout
        self.io_timeout = io_timeout
        self.max_read_size = max_read_size
        self.reader: asyncio.StreamReader | None = None
        self.writer: asyncio.StreamWriter | None = None
        self.framer = MessageFramer()
        self._pending: deque[bytes] = deque()
        self._connected = False

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    def _context(self, **fields: object) -> dict[str, object]:
        return {"address": self.address, **fields}

    def _open(self, stream: _Stream | None, action: str) -> _Stream:
        if not self._connected or stream is None:
            reason = f"cannot {action}: not connected"
            raise ScreenLogicConnectionError(reason, state="disconnected")
        return stream

    def _reset(self) -> None:
        self._connected = False
        self.reader = None
        self.writer = None
        self.framer.reset()
        self._pending.clear()

    async def connect(self) -> None:
        """Open the stream.

        Raises:
            DialError: If the connection times out or is refused
        """
        start = time.perf_counter()
        logger.info("→ Dialling %s", self.address, extra=self._context(timeout=self.connect_timeout))
        try:
            async with asyncio.timeout(self.connect_timeout):
                reader, writer = await asyncio.open_connection(self.host, self.port)
        except TimeoutError as e:
            reason = f"timed out after {self.connect_timeout:.1f}s"
            logger.warning("✗ Dial %s: %s", self.address, reason, extra=self._context(elapsed_ms=_elapsed_ms(start)))
            raise DialError(reason, self.address) from e
        except OSError as e:
            logger.warning("✗ Dial %s: %s", self.address, e, extra=self._context(elapsed_ms=_elapsed_ms(start)))
            raise DialError(str(e), self.address) from e

        self._reset()
        self.reader, self.writer = reader, writer
        self._connected = True
        logger.info("✓ Dialled %s", self.address, extra=self._context(elapsed_ms=_elapsed_ms(start)))

    async def send(self, data: bytes) -> None:
        """Write ``data`` and wait for the transport to drain.

        Raises:
            ScreenLogicConnectionError: If not connected
            SendError: If the write fails or times out
        """
        writer = self._open(self.writer, "send")
        start = time.perf_counter()
        try:
            writer.write(data)
            async with asyncio.timeout(self.io_timeout):
                await writer.drain()
        except TimeoutError as e:
            reason = f"timed out after {self.io_timeout:.1f}s"
            raise SendError(reason) from e
        except OSError as e:
            raise SendError(str(e)) from e
        logger.debug("Sent %d bytes", len(data), extra=self._context(elapsed_ms=_elapsed_ms(start)))

    async def recv(self, max_bytes: int | None = None) -> bytes:
        """Read one raw chunk of at most ``max_bytes`` (default ``max_read_size``).

        Raises:
            ScreenLogicConnectionError: If not connected
            ReceiveError: If the peer closed the connection or the socket failed
        """
        reader = self._open(self.reader, "receive")
        try:
            chunk = await reader.read(max_bytes or self.max_read_size)
        except OSError as e:
            raise ReceiveError(str(e)) from e
        if chunk:
            return chunk

        self._connected = False
        logger.warning("✗ Connection closed by %s", self.address, extra=self._context())
        reason = "connection closed by peer"
        raise ReceiveError(reason)

    async def read_message(self, timeout: float | None = None) -> bytes:
        """Return the next complete message from the stream.

        Raises:
            ReceiveTimeoutError: If no complete message arrives in time
            ReceiveError: If the connection closes or fails
            MessageFramingError: If the stream carries an oversized header
        """
        deadline = self.io_timeout if timeout is None else timeout
        start = time.perf_counter()
        try:
            async with asyncio.timeout(deadline):
                while not self._pending:
                    self._pending.extend(self.framer.feed(await self.recv()))
        except TimeoutError as e:
            logger.warning(
                "✗ No complete message from %s within %.1fs",
                self.address,
                deadline,
                extra=self._context(elapsed_ms=_elapsed_ms(start), buffered_bytes=len(self.framer.buffer)),
            )
            raise ReceiveTimeoutError(deadline) from e

        data = self._pending.popleft()
        logger.debug("Received %d byte message", len(data), extra=self._context())
        return data

    async def close(self) -> None:
        """Close the stream. Idempotent; state is reset even if closing fails."""
        writer = self.writer
        if writer is None:
            return
        logger.info("Closing connection to %s", self.address, extra=self._context())
        try:
            writer.close()
            await writer.wait_closed()
        except OSError as e:
            logger.warning(
                "Error closing connection: %s",
                e,
                extra=self._context(error_type=type(e).__name__),
            )
        finally:
            self._reset()

    @property
    def is_connected(self) -> bool:
        return self._connected

    def __repr__(self) -> str:
        status = "connected" if self._connected else "disconnected"
        return f"TCPConnection({self.address}, {status})"
