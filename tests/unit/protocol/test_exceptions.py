"""Unit tests for protocol and transport exception types."""

from __future__ import annotations

import pytest

from screenlogic.protocol.exceptions import (
    BadLoginError,
    BadParameterError,
    InvalidRequestError,
    InvalidResponseError,
    MessageDecodeError,
    MessageFramingError,
    NoValidResponseError,
    ScreenLogicError,
    ScreenLogicProtocolError,
    UnexpectedResponseCodeError,
    UnexpectedResponseIDError,
    UnknownControllerError,
)
from screenlogic.transport.exceptions import (
    DialError,
    ReceiveError,
    ReceiveTimeoutError,
    ScreenLogicConnectionError,
    SendError,
    SessionClosedError,
)
from tests.helpers.expectations import assert_reason


class TestExceptionHierarchy:
    @pytest.mark.parametrize(
        "exc_type",
        [
            BadLoginError,
            BadParameterError,
            InvalidRequestError,
            InvalidResponseError,
            MessageDecodeError,
            MessageFramingError,
            NoValidResponseError,
            UnexpectedResponseCodeError,
            UnexpectedResponseIDError,
            UnknownControllerError,
        ],
    )
    def test_protocol_errors(self, exc_type: type[Exception]) -> None:
        assert issubclass(exc_type, ScreenLogicProtocolError)

    @pytest.mark.parametrize(
        "exc_type",
        [DialError, SendError, ReceiveError, ReceiveTimeoutError, SessionClosedError],
    )
    def test_connection_errors(self, exc_type: type[Exception]) -> None:
        assert issubclass(exc_type, ScreenLogicConnectionError)
        assert issubclass(exc_type, ScreenLogicError)
        assert not issubclass(exc_type, ScreenLogicProtocolError)


class TestProtocolErrors:
    def test_controller_error_defaults(self) -> None:
        assert str(BadLoginError()) == "bad login"
        assert str(InvalidRequestError()) == "invalid request"
        assert str(BadParameterError()) == "bad parameter"

    def test_unexpected_id(self) -> None:
        err = UnexpectedResponseIDError(expected_id=3, actual_id=4)
        assert err.expected_id == 3
        assert err.actual_id == 4
        assert str(err) == "unexpected response id (4 != 3)"

    def test_unexpected_code(self) -> None:
        err = UnexpectedResponseCodeError(expected_code=8120, actual_code=8111)
        assert str(err) == "unexpected response code (8111 != 8121)"

    def test_no_valid_response(self) -> None:
        err = NoValidResponseError(3)
        assert err.attempts == 3
        assert_reason(err, "3 reads")

    def test_decode_error_keeps_short_preview(self) -> None:
        err = MessageDecodeError("spurious data", bytes(range(40)))
        assert err.data_preview == bytes(range(16))
        assert err.reason == "spurious data"

    def test_framing_error(self) -> None:
        err = MessageFramingError("message_too_large", buffer_size=12)
        assert err.buffer_size == 12


class TestConnectionErrors:
    def test_str_includes_state(self) -> None:
        err = ScreenLogicConnectionError("lost", state="connected")
        assert str(err) == "Connection error: lost (state: connected)"

    def test_dial_error(self) -> None:
        err = DialError("connection refused", "10.0.0.5:80")
        assert err.address == "10.0.0.5:80"
        assert err.state == "connecting"
        assert err.reason == "dial 10.0.0.5:80: connection refused"

    def test_receive_timeout(self) -> None:
        err = ReceiveTimeoutError(2.5)
        assert err.timeout_seconds == 2.5
        assert err.reason == "receive failed: timed out after 2.5s"
        assert isinstance(err, ReceiveError)

    def test_session_closed(self) -> None:
        err = SessionClosedError("idle timeout")
        assert err.state == "disconnected"
        assert err.reason == "idle timeout"
