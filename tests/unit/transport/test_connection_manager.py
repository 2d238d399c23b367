"""Unit tests for ConnectionManager lazy connect and idle disconnect."""

from __future__ import annotations

import asyncio
from collections.abc import Iterator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from screenlogic.protocol.exceptions import BadLoginError
from screenlogic.transport.connection_manager import ConnectionManager, ConnectionState
from screenlogic.transport.exceptions import DialError
from screenlogic.transport.session import ErrorSession, Session


def make_conn() -> MagicMock:
    conn = MagicMock()
    conn.address = "10.0.0.5:80"
    conn.is_connected = True
    conn.connect = AsyncMock()
    conn.close = AsyncMock()
    conn.send = AsyncMock()
    conn.read_message = AsyncMock()
    return conn


class ConnFactory:
    """Connection factory that records every connection it builds."""

    def __init__(self) -> None:
        self.built: list[MagicMock] = []
        self.connect_side_effect: object = None

    def __call__(self) -> MagicMock:
        conn = make_conn()
        if self.connect_side_effect is not None:
            conn.connect.side_effect = self.connect_side_effect
        self.built.append(conn)
        return conn


@pytest.fixture
def mock_login() -> Iterator[AsyncMock]:
    with patch("screenlogic.transport.connection_manager.login", new_callable=AsyncMock) as login:
        yield login


@pytest.fixture
def factory() -> ConnFactory:
    return ConnFactory()


def make_manager(factory: ConnFactory, keep_alive: float = 60.0) -> ConnectionManager:
    return ConnectionManager("10.0.0.5", 80, timeout=1.0, keep_alive=keep_alive, connection_factory=factory)


class TestAcquire:
    @pytest.mark.asyncio
    async def test_first_acquire_dials_and_logs_in(self, factory: ConnFactory, mock_login: AsyncMock) -> None:
        manager = make_manager(factory)

        session = await manager.acquire()

        assert isinstance(session, Session)
        assert session.alive
        assert len(factory.built) == 1
        factory.built[0].connect.assert_awaited_once()
        mock_login.assert_awaited_once_with(session, 1.0)
        assert manager.state is ConnectionState.CONNECTED
        assert manager.is_connected()
        await manager.close()

    @pytest.mark.asyncio
    async def test_live_session_is_reused(self, factory: ConnFactory, mock_login: AsyncMock) -> None:
        manager = make_manager(factory)

        first = await manager.acquire()
        second = await manager.acquire()

        assert first is second
        assert len(factory.built) == 1
        assert mock_login.await_count == 1
        await manager.close()

    @pytest.mark.asyncio
    async def test_dead_session_is_replaced(self, factory: ConnFactory, mock_login: AsyncMock) -> None:
        manager = make_manager(factory)

        first = await manager.acquire()
        first.invalidate("ReceiveTimeoutError")
        second = await manager.acquire()

        assert second is not first
        assert len(factory.built) == 2
        factory.built[0].close.assert_awaited()
        assert second.next_id() == 1
        await manager.close()

    @pytest.mark.asyncio
    async def test_dial_failure_returns_error_session(self, factory: ConnFactory, mock_login: AsyncMock) -> None:
        factory.connect_side_effect = DialError("connection refused", "10.0.0.5:80")
        manager = make_manager(factory)

        session = await manager.acquire()

        assert isinstance(session, ErrorSession)
        assert isinstance(session.err, DialError)
        assert manager.state is ConnectionState.DISCONNECTED
        factory.built[0].close.assert_awaited_once()
        mock_login.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_login_failure_returns_error_session(self, factory: ConnFactory, mock_login: AsyncMock) -> None:
        mock_login.side_effect = BadLoginError()
        manager = make_manager(factory)

        session = await manager.acquire()

        assert isinstance(session.err, BadLoginError)
        assert not manager.is_connected()
        factory.built[0].close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failure_is_not_sticky(self, factory: ConnFactory, mock_login: AsyncMock) -> None:
        mock_login.side_effect = [BadLoginError(), None]
        manager = make_manager(factory)

        failed = await manager.acquire()
        recovered = await manager.acquire()

        assert isinstance(failed, ErrorSession)
        assert isinstance(recovered, Session)
        assert len(factory.built) == 2
        await manager.close()

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_attempt(self, factory: ConnFactory, mock_login: AsyncMock) -> None:
        async def slow_refusal() -> None:
            await asyncio.sleep(0.02)
            raise DialError("connection refused", "10.0.0.5:80")

        factory.connect_side_effect = slow_refusal
        manager = make_manager(factory)

        sessions = await asyncio.gather(*(manager.acquire() for _ in range(3)))

        assert len(factory.built) == 1
        assert all(isinstance(s, ErrorSession) for s in sessions)
        assert len({id(s.err) for s in sessions}) == 1

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_session(self, factory: ConnFactory, mock_login: AsyncMock) -> None:
        async def slow_login(*_args: object) -> None:
            await asyncio.sleep(0.02)

        mock_login.side_effect = slow_login
        manager = make_manager(factory)

        sessions = await asyncio.gather(*(manager.acquire() for _ in range(3)))

        assert len(factory.built) == 1
        assert sessions[0] is sessions[1] is sessions[2]
        await manager.close()

    @pytest.mark.asyncio
    async def test_cancelled_connect_closes_connection(self, factory: ConnFactory, mock_login: AsyncMock) -> None:
        async def hang() -> None:
            await asyncio.sleep(10)

        factory.connect_side_effect = hang
        manager = make_manager(factory)

        task = asyncio.create_task(manager.acquire())
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        factory.built[0].close.assert_awaited_once()
        assert manager.state is ConnectionState.DISCONNECTED


class TestIdleTimeout:
    @pytest.mark.asyncio
    async def test_idle_session_is_closed(self, factory: ConnFactory, mock_login: AsyncMock) -> None:
        manager = make_manager(factory, keep_alive=0.05)

        session = await manager.acquire()
        await asyncio.sleep(0.2)

        assert not session.alive
        assert manager.state is ConnectionState.DISCONNECTED
        factory.built[0].close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_reconnects_after_idle_close(self, factory: ConnFactory, mock_login: AsyncMock) -> None:
        manager = make_manager(factory, keep_alive=0.05)

        first = await manager.acquire()
        first.next_id()
        await asyncio.sleep(0.2)
        second = await manager.acquire()

        assert second is not first
        assert len(factory.built) == 2
        assert mock_login.await_count == 2
        assert second.next_id() == 1
        await manager.close()

    @pytest.mark.asyncio
    async def test_activity_postpones_idle_close(self, factory: ConnFactory, mock_login: AsyncMock) -> None:
        manager = make_manager(factory, keep_alive=0.1)

        session = await manager.acquire()
        for _ in range(4):
            await asyncio.sleep(0.05)
            async with session.exchange():
                pass

        assert session.alive
        assert len(factory.built) == 1
        await manager.close()

    @pytest.mark.asyncio
    async def test_busy_session_is_not_closed(self, factory: ConnFactory, mock_login: AsyncMock) -> None:
        manager = make_manager(factory, keep_alive=0.05)

        session = await manager.acquire()
        async with session.exchange():
            await asyncio.sleep(0.15)
            assert session.alive

        assert session.alive
        await asyncio.sleep(0.2)
        assert not session.alive


class TestClose:
    @pytest.mark.asyncio
    async def test_close_without_session(self, factory: ConnFactory) -> None:
        manager = make_manager(factory)
        await manager.close()
        assert manager.state is ConnectionState.DISCONNECTED

    @pytest.mark.asyncio
    async def test_close_waits_for_inflight_exchange(self, factory: ConnFactory, mock_login: AsyncMock) -> None:
        manager = make_manager(factory)
        session = await manager.acquire()
        entered = asyncio.Event()
        finished: list[bool] = []

        async def exchange() -> None:
            async with session.exchange():
                entered.set()
                await asyncio.sleep(0.05)
                finished.append(True)

        task = asyncio.create_task(exchange())
        await entered.wait()
        await manager.close(grace=1.0)

        assert finished == [True]
        assert not session.alive
        await task

    @pytest.mark.asyncio
    async def test_close_forces_after_grace(self, factory: ConnFactory, mock_login: AsyncMock) -> None:
        manager = make_manager(factory)
        session = await manager.acquire()
        entered = asyncio.Event()

        async def stuck() -> None:
            async with session.exchange():
                entered.set()
                await asyncio.sleep(10)

        task = asyncio.create_task(stuck())
        await entered.wait()
        await manager.close(grace=0.05)

        factory.built[0].close.assert_awaited_once()
        assert manager.state is ConnectionState.DISCONNECTED
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    @pytest.mark.asyncio
    async def test_manager_reusable_after_close(self, factory: ConnFactory, mock_login: AsyncMock) -> None:
        manager = make_manager(factory)
        await manager.acquire()
        await manager.close()

        session = await manager.acquire()

        assert isinstance(session, Session)
        assert len(factory.built) == 2
        await manager.close()

    def test_repr(self, factory: ConnFactory) -> None:
        assert repr(make_manager(factory)) == "ConnectionManager(10.0.0.5:80, disconnected)"
