"""Custom exception types for transport layer errors.

This module defines the exception hierarchy for transport-related errors,
extending the protocol exceptions.
"""

from __future__ import annotations

from screenlogic.protocol.exceptions import ScreenLogicError


class ScreenLogicConnectionError(ScreenLogicError):
    """Connection state error (not connected, connection lost, etc.).

    Raised when:
    - Attempting to send or read while disconnected
    - Connection lost during operation

    Note: Named ScreenLogicConnectionError to avoid shadowing Python's built-in ConnectionError.

    Attributes:
        reason: Specific failure reason
        state: Connection state when error occurred

    """

    def __init__(self, reason: str, state: str = "unknown") -> None:
        self.state: str = state
        super().__init__(reason)

    def __str__(self) -> str:
        return f"Connection error: {self.reason} (state: {self.state})"


class DialError(ScreenLogicConnectionError):
    """TCP connection to the controller could not be established.

    Attributes:
        address: host:port that was dialled

    """

    def __init__(self, reason: str, address: str) -> None:
        self.address: str = address
        super().__init__(f"dial {address}: {reason}", state="connecting")


class SendError(ScreenLogicConnectionError):
    """Write to the controller failed or timed out."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"send failed: {reason}", state="connected")


class ReceiveError(ScreenLogicConnectionError):
    """Error receiving a message (connection closed, socket error, etc.)."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"receive failed: {reason}", state="connected")


class ReceiveTimeoutError(ReceiveError):
    """No complete message arrived before the read deadline.

    Attributes:
        timeout_seconds: Deadline that was exceeded

    """

    def __init__(self, timeout_seconds: float) -> None:
        self.timeout_seconds: float = timeout_seconds
        super().__init__(f"timed out after {timeout_seconds:.1f}s")


class SessionClosedError(ScreenLogicConnectionError):
    """Session was closed (idle timeout or shutdown) before it could be used."""

    def __init__(self, reason: str = "session closed") -> None:
        super().__init__(reason, state="disconnected")
