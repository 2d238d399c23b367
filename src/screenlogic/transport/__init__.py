"""Transport layer - TCP connection, sessions, correlation and lifecycle.

The connection manager is imported from
``screenlogic.transport.connection_manager`` directly: it depends on the
protocol operations, which in turn depend on the correlator here.
"""

from screenlogic.transport.exceptions import (
    DialError,
    ReceiveError,
    ReceiveTimeoutError,
    ScreenLogicConnectionError,
    SendError,
    SessionClosedError,
)
from screenlogic.transport.retry_policy import RetryPolicy
from screenlogic.transport.session import ErrorSession, Session
from screenlogic.transport.socket_abstraction import TCPConnection

__all__ = [
    "DialError",
    "ErrorSession",
    "ReceiveError",
    "ReceiveTimeoutError",
    "RetryPolicy",
    "ScreenLogicConnectionError",
    "SendError",
    "Session",
    "SessionClosedError",
    "TCPConnection",
]
