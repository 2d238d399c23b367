"""Authenticated controller session and its error-carrying placeholder.

A Session owns one TCPConnection and the request-id sequence for it. Only one
request/response exchange may be on the wire at a time, so callers wrap
"send request, await matching response" in ``session.exchange()``.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import AsyncIterator, Callable

from screenlogic.metrics import registry
from screenlogic.protocol.exceptions import MessageFramingError, NoValidResponseError
from screenlogic.transport.exceptions import ScreenLogicConnectionError, SessionClosedError
from screenlogic.transport.socket_abstraction import TCPConnection

logger = logging.getLogger(__name__)

ID_MODULUS = 1 << 16

# Errors after which request/response ids can no longer be trusted to line up.
_DESYNC_ERRORS = (ScreenLogicConnectionError, MessageFramingError, NoValidResponseError)


class Session:
    """One live, authenticated logical connection.

    Attributes:
        conn: Underlying TCP connection
        read_timeout: Default deadline for reading one response
        last_used: ``time.monotonic()`` of the most recent completed exchange

    """

    def __init__(
        self,
        conn: TCPConnection,
        read_timeout: float,
        on_activity: Callable[[], None] | None = None,
    ) -> None:
        self.conn: TCPConnection = conn
        self.read_timeout: float = read_timeout
        self.last_used: float = time.monotonic()
        self._on_activity: Callable[[], None] | None = on_activity
        self._last_id: int = 0
        self._exchange_lock: asyncio.Lock = asyncio.Lock()
        self._closed: bool = False
        self._close_reason: str = ""

    @property
    def err(self) -> None:
        """Live sessions carry no error."""
        return None

    @property
    def alive(self) -> bool:
        return not self._closed and self.conn.is_connected

    @property
    def busy(self) -> bool:
        """True while an exchange holds the wire."""
        return self._exchange_lock.locked()

    def next_id(self) -> int:
        """Return the next request id (1, 2, ... wrapping modulo 65536)."""
        self._last_id = (self._last_id + 1) % ID_MODULUS
        return self._last_id

    def invalidate(self, reason: str) -> None:
        """Mark the session unusable; the next acquire reconnects."""
        if self._closed:
            return
        self._closed = True
        self._close_reason = reason
        logger.info(
            "Session invalidated",
            extra={"address": self.conn.address, "reason": reason, "last_id": self._last_id},
        )

    def touch(self) -> None:
        """Record activity and re-arm the owner's idle timer."""
        self.last_used = time.monotonic()
        if self._on_activity is not None:
            self._on_activity()

    @contextlib.asynccontextmanager
    async def exchange(self) -> AsyncIterator[Session]:
        """Hold the wire for one request/response exchange.

        A cancelled exchange, or one failing with a transport, framing or
        exhausted-read error, invalidates the session because the stream may
        still hold a late response for the abandoned request.

        Raises:
            SessionClosedError: If the session was closed before the wire was free

        """
        wait_start = time.perf_counter()
        async with self._exchange_lock:
            registry.record_lock_wait("exchange", time.perf_counter() - wait_start)
            if self._closed:
                raise SessionClosedError(self._close_reason or "session closed")
            try:
                yield self
            except asyncio.CancelledError:
                self.invalidate("exchange cancelled")
                raise
            except _DESYNC_ERRORS as e:
                self.invalidate(type(e).__name__)
                raise
            finally:
                self.touch()

    async def wait_idle(self) -> None:
        """Wait until no exchange is in flight."""
        async with self._exchange_lock:
            pass

    async def send(self, data: bytes) -> None:
        if self._closed:
            raise SessionClosedError(self._close_reason or "session closed")
        await self.conn.send(data)

    async def read_message(self, timeout: float | None = None) -> bytes:
        if self._closed:
            raise SessionClosedError(self._close_reason or "session closed")
        return await self.conn.read_message(self.read_timeout if timeout is None else timeout)

    async def close(self) -> None:
        """Close the underlying connection."""
        self.invalidate("closed")
        await self.conn.close()

    def __repr__(self) -> str:
        status = "alive" if self.alive else "closed"
        return f"Session({self.conn.address}, {status}, last_id={self._last_id})"


class ErrorSession:
    """Placeholder returned when dial or login fails.

    It presents the Session interface so call sites stay uniform: every
    operation on it raises the stored error.
    """

    def __init__(self, err: Exception) -> None:
        self._err = err

    @property
    def err(self) -> Exception:
        return self._err

    @property
    def alive(self) -> bool:
        return False

    @property
    def busy(self) -> bool:
        return False

    def next_id(self) -> int:
        return 0

    def invalidate(self, reason: str) -> None:
        pass

    def touch(self) -> None:
        pass

    @contextlib.asynccontextmanager
    async def exchange(self) -> AsyncIterator[ErrorSession]:
        raise self._err
        yield self  # pragma: no cover

    async def wait_idle(self) -> None:
        pass

    async def send(self, data: bytes) -> None:
        raise self._err

    async def read_message(self, timeout: float | None = None) -> bytes:
        raise self._err

    async def close(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"ErrorSession({self._err!r})"
