"""Custom exception types for ScreenLogic protocol errors.

This module defines the exception hierarchy for protocol-related errors,
following the "No Nullability" principle where errors raise exceptions
instead of returning None.
"""

from __future__ import annotations


class ScreenLogicError(Exception):
    """Base exception for all ScreenLogic client errors.

    All protocol, decode and transport exceptions inherit from this base
    class, enabling catch-all error handling when needed while maintaining
    specific exception types for detailed handling.

    Attributes:
        reason: Specific failure reason

    """

    def __init__(self, reason: str = "") -> None:
        self.reason: str = reason
        super().__init__(reason)


class ScreenLogicProtocolError(ScreenLogicError):
    """Protocol-level failure reported by, or detected in, a controller exchange."""


class BadLoginError(ScreenLogicProtocolError):
    """Controller answered the login (or any request) with the bad-login code."""

    def __init__(self, reason: str = "bad login") -> None:
        super().__init__(reason)


class InvalidRequestError(ScreenLogicProtocolError):
    """Controller answered with the invalid-request code."""

    def __init__(self, reason: str = "invalid request") -> None:
        super().__init__(reason)


class BadParameterError(ScreenLogicProtocolError):
    """Controller answered with the bad-parameter code."""

    def __init__(self, reason: str = "bad parameter") -> None:
        super().__init__(reason)


class UnexpectedResponseIDError(ScreenLogicProtocolError):
    """Response carried a sequence id other than the one requested.

    Attributes:
        expected_id: Sequence id of the request
        actual_id: Sequence id found in the response

    """

    def __init__(self, expected_id: int, actual_id: int) -> None:
        self.expected_id: int = expected_id
        self.actual_id: int = actual_id
        super().__init__(f"unexpected response id ({actual_id} != {expected_id})")


class UnexpectedResponseCodeError(ScreenLogicProtocolError):
    """Response carried a message code other than request code + 1.

    Attributes:
        expected_code: Message code of the request
        actual_code: Message code found in the response

    """

    def __init__(self, expected_code: int, actual_code: int) -> None:
        self.expected_code: int = expected_code
        self.actual_code: int = actual_code
        super().__init__(f"unexpected response code ({actual_code} != {expected_code + 1})")


class InvalidResponseError(ScreenLogicProtocolError):
    """Response payload too small, malformed, or followed by trailing bytes."""


class NoValidResponseError(ScreenLogicProtocolError):
    """No matching response arrived within the read attempt budget.

    Attributes:
        attempts: Number of responses read before giving up

    """

    def __init__(self, attempts: int) -> None:
        self.attempts: int = attempts
        super().__init__(f"no valid response received after {attempts} reads")


class MessageDecodeError(InvalidResponseError):
    """Response payload cannot be decoded.

    Attributes:
        reason: Specific failure reason (e.g., "message too small", "spurious data")
        data_preview: First 16 bytes of payload data (security: prevents credential leakage)

    """

    def __init__(self, reason: str, data: bytes = b"") -> None:
        # Security: Only store first 16 bytes to prevent credential leakage in logs/tracebacks
        self.data_preview: bytes = bytes(data[:16]) if data else b""
        super().__init__(reason)


class UnknownControllerError(MessageDecodeError):
    """Controller/hardware type pair is absent from the model table.

    Attributes:
        controller: Controller type byte
        hardware: Hardware type byte

    """

    def __init__(self, controller: int, hardware: int, reason: str) -> None:
        self.controller: int = controller
        self.hardware: int = hardware
        super().__init__(reason)


class MessageFramingError(ScreenLogicProtocolError):
    """TCP stream framing error.

    Raised by MessageFramer when a header declares a payload larger than
    the framer accepts. The stream has no resynchronisation markers, so the
    connection cannot be trusted afterwards.

    Attributes:
        reason: Specific failure reason (e.g., "message_too_large")
        buffer_size: Size of buffer when error occurred

    """

    def __init__(self, reason: str, buffer_size: int = 0) -> None:
        self.buffer_size: int = buffer_size
        super().__init__(reason)
