"""Public controller API.

An Adapter owns exactly one logical connection to one controller. Each
operation acquires the session from the connection manager (dialling and
logging in on first use or after an idle disconnect), runs one exchange and
returns a typed result or raises a typed error.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import TextIO, TypeVar

from screenlogic.config import AdapterConfig
from screenlogic.correlation import correlation_context
from screenlogic.instrumentation import timed_async
from screenlogic.protocol import operations
from screenlogic.protocol.models import ControllerConfig, ControllerStatus
from screenlogic.transport.connection_manager import ConnectionManager
from screenlogic.transport.exceptions import SessionClosedError
from screenlogic.transport.session import ErrorSession, Session
from screenlogic.transport.socket_abstraction import TCPConnection

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CLOSE_GRACE_SECONDS = 60.0

Operation = Callable[[TextIO], Awaitable[None]]


class Adapter:
    """Client for one ScreenLogic controller.

    Usage:
        >>> async with Adapter(AdapterConfig(ip_address="192.168.1.50")) as adapter:
        ...     status = await adapter.get_status()
    """

    def __init__(
        self,
        config: AdapterConfig,
        connection_factory: Callable[[], TCPConnection] | None = None,
    ) -> None:
        self.config: AdapterConfig = config
        self.manager: ConnectionManager = ConnectionManager(
            config.host,
            config.port,
            timeout=config.timeout,
            keep_alive=config.keep_alive,
            connection_factory=connection_factory,
        )

    async def __aenter__(self) -> Adapter:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def session(self) -> Session | ErrorSession:
        """Return the live session, or an ErrorSession if dial/login failed."""
        return await self.manager.acquire()

    async def _run(self, name: str, op: Callable[[Session | ErrorSession], Awaitable[T]]) -> T:
        with correlation_context(name):
            logger.debug("→ %s", name, extra={"address": self.manager.address})
            session = await self.manager.acquire()
            try:
                result = await op(session)
            except SessionClosedError:
                # Idle close won the race for this session; reconnect once.
                logger.info(
                    "Session closed before %s could run, reconnecting",
                    name,
                    extra={"address": self.manager.address},
                )
                session = await self.manager.acquire()
                result = await op(session)
            logger.debug("✓ %s", name, extra={"address": self.manager.address})
            return result

    def _options(self) -> dict[str, int | bool]:
        return {
            "max_retries": self.config.max_retries,
            "match_id": self.config.match_response_ids,
        }

    @timed_async("get_time")
    async def get_time(self) -> datetime:
        """Controller wall-clock time."""
        return await self._run(
            "get_time",
            lambda s: operations.get_time_and_date(s, **self._options()),
        )

    @timed_async("get_version")
    async def get_version(self) -> str:
        return await self._run(
            "get_version",
            lambda s: operations.get_version_info(s, **self._options()),
        )

    @timed_async("get_config")
    async def get_config(self) -> ControllerConfig:
        return await self._run(
            "get_config",
            lambda s: operations.get_controller_config(s, **self._options()),
        )

    @timed_async("get_status")
    async def get_status(self) -> ControllerStatus:
        return await self._run(
            "get_status",
            lambda s: operations.get_controller_status(s, **self._options()),
        )

    @timed_async("set_circuit")
    async def set_circuit(self, circuit_id: int, on: bool) -> None:
        """Switch a circuit on or off."""
        await self._run(
            "set_circuit",
            lambda s: operations.set_circuit_state(s, circuit_id, on, **self._options()),
        )

    async def close(self, grace: float = DEFAULT_CLOSE_GRACE_SECONDS) -> None:
        """Close the connection, waiting up to ``grace`` seconds for an in-flight exchange."""
        await self.manager.close(grace)

    def operations(self) -> dict[str, Operation]:
        """Named operations that print their result to a writer."""

        async def gettime(out: TextIO) -> None:
            out.write(f"gettime: {await self.get_time()}\n")

        async def getversion(out: TextIO) -> None:
            out.write(f"version: {await self.get_version()}\n")

        async def getconfig(out: TextIO) -> None:
            self.format_config(out, await self.get_config())

        async def getstatus(out: TextIO) -> None:
            self.format_status(out, await self.get_status())

        return {
            "gettime": gettime,
            "getversion": getversion,
            "getconfig": getconfig,
            "getstatus": getstatus,
        }

    def operations_help(self) -> dict[str, str]:
        return {
            "gettime": "get the current time and date",
            "getconfig": "get the current system configuration",
            "getstatus": "get the current system status",
            "getversion": "get the adapter version",
        }

    def format_config(self, out: TextIO | None, cfg: ControllerConfig) -> None:
        if out is None:
            return
        out.write(f"Address  : {self.config.ip_address}\n")
        out.write(f"Model    : {cfg.model}\n")
        out.write(f"ID       : {cfg.id}\n")
        out.write(f"Circuits : #{len(cfg.circuits)}\n")
        for c in cfg.circuits:
            out.write(f"  {c.id:5} : {c.name:>10}")
            out.write(f"  {c.function!s:>20} {c.interface!s:>20}\n")
        out.write(f"#Pumps   : {len(cfg.intelliflo)}\n")
        for i, pump in enumerate(cfg.intelliflo):
            out.write(f"  {i:2} : {pump.value}\n")

    def format_status(self, out: TextIO | None, status: ControllerStatus) -> None:
        if out is None:
            return
        out.write(f"Address  : {self.config.ip_address}\n")
        out.write(f"State    : {status.state}\n")
        out.write(f"Circuits : #{len(status.circuits)}\n")
        for c in status.circuits:
            out.write(f"  {c.id:5} : {'On' if c.state else 'Off'}\n")

    def __repr__(self) -> str:
        return f"Adapter({self.config.ip_address})"
