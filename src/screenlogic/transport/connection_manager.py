"""Connection lifecycle management: lazy dial + login, idle disconnect.

This module implements the ConnectionManager class which hands out the single
authenticated Session for a controller, establishing it on first use and
tearing it down after a period of inactivity.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from enum import Enum

from screenlogic.metrics import registry
from screenlogic.protocol.exceptions import ScreenLogicError
from screenlogic.protocol.operations import login
from screenlogic.transport.session import ErrorSession, Session
from screenlogic.transport.socket_abstraction import TCPConnection

logger = logging.getLogger(__name__)

# Lock wait threshold (seconds) above which acquire() logs a warning
_LOCK_WAIT_WARNING_THRESHOLD = 1.0


class ConnectionState(Enum):
    """Connection state enumeration."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSING = "closing"


class ConnectionManager:
    """Supplies a live, logged-in Session on demand.

    **State machine**: DISCONNECTED → CONNECTING (dial + login) → CONNECTED →
    CLOSING → DISCONNECTED, on idle timeout or ``close()``. A failed dial or
    login returns to DISCONNECTED and hands the caller an ErrorSession
    carrying the error; there is no background reconnect.

    **Serialization**: ``_state_lock`` (asyncio.Lock) guards the session
    handle, the state and the idle-close path. Callers that queue on the lock
    while a connection attempt is in flight share that attempt's outcome
    instead of dialling again.

    **Idle timer**: re-armed on every acquire and every completed exchange.
    When it fires, the session is closed only if it is still idle and no
    exchange holds the wire; the next acquire dials afresh and request ids
    restart at 1.
    """

    def __init__(
        self,
        host: str,
        port: int,
        timeout: float = 5.0,
        keep_alive: float = 60.0,
        connection_factory: Callable[[], TCPConnection] | None = None,
    ) -> None:
        """Initialize connection manager.

        Args:
            host: Controller host
            port: Controller port
            timeout: Deadline for dial, each send and each read (seconds)
            keep_alive: Idle period after which the session is closed (seconds)
            connection_factory: Builds the TCPConnection for each dial

        """
        self.host: str = host
        self.port: int = port
        self.timeout: float = timeout
        self.keep_alive: float = keep_alive
        self._connection_factory: Callable[[], TCPConnection] = connection_factory or self._new_connection
        self.state: ConnectionState = ConnectionState.DISCONNECTED
        self._state_lock: asyncio.Lock = asyncio.Lock()
        self._session: Session | None = None
        self._idle_handle: asyncio.TimerHandle | None = None
        self._idle_task: asyncio.Task[None] | None = None
        self._completed_attempts: int = 0
        self._last_error: Exception | None = None

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    def _new_connection(self) -> TCPConnection:
        return TCPConnection(
            self.host,
            self.port,
            connect_timeout=self.timeout,
            io_timeout=self.timeout,
        )

    def _set_state(self, state: ConnectionState) -> None:
        """Transition state. Caller holds ``_state_lock``."""
        self.state = state
        registry.record_connection_state(self.address, state.value)

    async def acquire(self) -> Session | ErrorSession:
        """Return the live session, dialling and logging in if there is none.

        Returns:
            A live Session, or an ErrorSession carrying the dial/login error

        """
        attempts_seen = self._completed_attempts
        wait_start = time.perf_counter()
        async with self._state_lock:
            wait_seconds = time.perf_counter() - wait_start
            registry.record_lock_wait("connection", wait_seconds)
            if wait_seconds > _LOCK_WAIT_WARNING_THRESHOLD:
                logger.warning(
                    "Waited %.3fs for connection lock",
                    wait_seconds,
                    extra={"address": self.address, "wait_seconds": wait_seconds},
                )

            session = self._session
            if session is not None and session.alive:
                session.touch()
                return session
            if session is not None:
                await self._discard_session("session no longer usable")

            # A connection attempt completed while this caller queued: share its outcome.
            if self._completed_attempts != attempts_seen and self._last_error is not None:
                return ErrorSession(self._last_error)

            return await self._connect()

    async def _connect(self) -> Session | ErrorSession:
        """Dial and log in. Caller holds ``_state_lock``."""
        self._set_state(ConnectionState.CONNECTING)
        logger.info(
            "→ Connecting to controller",
            extra={"address": self.address, "attempt": self._completed_attempts + 1},
        )
        start_time = time.perf_counter()
        conn = self._connection_factory()
        session = Session(conn, read_timeout=self.timeout, on_activity=self._arm_idle_timer)
        try:
            await conn.connect()
            await login(session, self.timeout)
        except ScreenLogicError as e:
            await conn.close()
            self._completed_attempts += 1
            self._last_error = e
            self._set_state(ConnectionState.DISCONNECTED)
            logger.warning(
                "✗ Connection failed",
                extra={
                    "address": self.address,
                    "error": str(e),
                    "error_type": type(e).__name__,
                },
            )
            return ErrorSession(e)
        except asyncio.CancelledError:
            await conn.close()
            self._set_state(ConnectionState.DISCONNECTED)
            raise

        self._completed_attempts += 1
        self._last_error = None
        self._session = session
        self._set_state(ConnectionState.CONNECTED)
        self._arm_idle_timer()
        logger.info(
            "✓ Connected to controller",
            extra={"address": self.address, "elapsed_ms": (time.perf_counter() - start_time) * 1000},
        )
        return session

    def _arm_idle_timer(self, delay: float | None = None) -> None:
        if self._idle_handle is not None:
            self._idle_handle.cancel()
        loop = asyncio.get_running_loop()
        self._idle_handle = loop.call_later(
            self.keep_alive if delay is None else delay,
            self._on_idle_timer,
        )

    def _cancel_idle_timer(self) -> None:
        if self._idle_handle is not None:
            self._idle_handle.cancel()
            self._idle_handle = None

    def _on_idle_timer(self) -> None:
        self._idle_handle = None
        if self._idle_task is None or self._idle_task.done():
            self._idle_task = asyncio.create_task(self._close_if_idle())

    async def _close_if_idle(self) -> None:
        async with self._state_lock:
            session = self._session
            if session is None or session.busy:
                # A completed exchange re-arms the timer.
                return
            idle_for = time.monotonic() - session.last_used
            if idle_for < self.keep_alive:
                if self._idle_handle is None:
                    self._arm_idle_timer(self.keep_alive - idle_for)
                return
            logger.info(
                "Closing idle session",
                extra={"address": self.address, "idle_seconds": idle_for},
            )
            registry.record_idle_disconnect()
            await self._discard_session("idle timeout")

    async def _discard_session(self, reason: str) -> None:
        """Close and forget the current session. Caller holds ``_state_lock``."""
        session = self._session
        self._session = None
        self._cancel_idle_timer()
        if session is None:
            return
        self._set_state(ConnectionState.CLOSING)
        session.invalidate(reason)
        await session.close()
        self._set_state(ConnectionState.DISCONNECTED)

    async def close(self, grace: float = 60.0) -> None:
        """Close the session, waiting up to ``grace`` seconds for an in-flight exchange.

        The manager remains usable: a later acquire() dials again.
        """
        logger.info("Disconnecting...", extra={"address": self.address, "grace": grace})
        self._cancel_idle_timer()
        async with self._state_lock:
            session = self._session
            self._session = None
            if session is None:
                logger.info("Disconnect complete")
                return
            self._set_state(ConnectionState.CLOSING)
            try:
                await asyncio.wait_for(session.wait_idle(), timeout=grace)
            except TimeoutError:
                logger.warning(
                    "Exchange still in flight after %.1fs grace, forcing close",
                    grace,
                    extra={"address": self.address, "grace": grace},
                )
            await session.close()
            # The drained exchange re-armed the timer on its way out.
            self._cancel_idle_timer()
            self._set_state(ConnectionState.DISCONNECTED)
        logger.info("Disconnect complete")

    def is_connected(self) -> bool:
        """Check if a session is established (best effort, may be stale)."""
        return self.state == ConnectionState.CONNECTED

    def __repr__(self) -> str:
        return f"ConnectionManager({self.address}, {self.state.value})"
