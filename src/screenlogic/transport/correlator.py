"""Request/response correlation over a session.

The wire has no multiplexing: a request is written, then responses are read
until one carries the request's id and code + 1. Recognised error codes end
the exchange immediately; anything else that does not match is logged and
read past, up to a fixed budget.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Protocol

from screenlogic.metrics import registry
from screenlogic.protocol.codes import MsgCode
from screenlogic.protocol.exceptions import (
    BadLoginError,
    BadParameterError,
    InvalidRequestError,
    InvalidResponseError,
    NoValidResponseError,
    ScreenLogicProtocolError,
    UnexpectedResponseCodeError,
    UnexpectedResponseIDError,
)
from screenlogic.protocol.message import HEADER_SIZE, Message
from screenlogic.transport.exceptions import SendError
from screenlogic.transport.retry_policy import RetryPolicy

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3

# Total mapping from controller error codes to the exceptions they surface as.
ERROR_CODES: dict[int, type[ScreenLogicProtocolError]] = {
    MsgCode.BAD_LOGIN: BadLoginError,
    MsgCode.INVALID_REQUEST: InvalidRequestError,
    MsgCode.BAD_PARAMETER: BadParameterError,
}


class SessionLike(Protocol):
    """What the correlator needs from a session."""

    async def send(self, data: bytes) -> None: ...

    async def read_message(self, timeout: float | None = None) -> bytes: ...


def error_for_code(code: int) -> ScreenLogicProtocolError | None:
    """Return the exception for a controller error code, or None if ``code`` is not one."""
    error_cls = ERROR_CODES.get(code)
    return error_cls() if error_cls is not None else None


def _check_size(response: Message) -> None:
    if len(response) < HEADER_SIZE:
        reason = f"message too small: ({len(response)} < {HEADER_SIZE})"
        raise InvalidResponseError(reason)


def is_response(response: Message, msg_id: int, code: int, *, match_id: bool = True) -> bool:
    """Return True if ``response`` answers request ``msg_id``/``code``.

    Raises:
        InvalidResponseError: If the message is shorter than a header
        ScreenLogicProtocolError: If the response carries an error code

    """
    _check_size(response)
    err = error_for_code(response.code)
    if err is not None:
        raise err
    return response.code == code + 1 and (not match_id or response.id == msg_id)


def validate_response(response: Message, msg_id: int, code: int) -> None:
    """Check a single response against its request, raising the matching error.

    Raises:
        InvalidResponseError: If the message is shorter than a header
        UnexpectedResponseIDError: If the code is wrong and the id differs
        ScreenLogicProtocolError: If the response carries an error code
        UnexpectedResponseCodeError: For any other code

    """
    _check_size(response)
    if response.code == code + 1:
        return
    if response.id != msg_id:
        raise UnexpectedResponseIDError(msg_id, response.id)
    err = error_for_code(response.code)
    if err is not None:
        raise err
    raise UnexpectedResponseCodeError(code, response.code)


async def send_with_retry(
    session: SessionLike,
    message: Message,
    max_retries: int = DEFAULT_MAX_RETRIES,
    retry_policy: RetryPolicy | None = None,
) -> None:
    """Write ``message``, retrying write failures up to ``max_retries`` attempts.

    Raises:
        SendError: The last write error if every attempt failed

    """
    policy = retry_policy or RetryPolicy()
    data = bytes(message)
    last_error: SendError | None = None
    for attempt in range(max_retries):
        try:
            await session.send(data)
        except SendError as e:
            last_error = e
            registry.record_message_sent(message.code, "error")
            if attempt < max_retries - 1:
                delay = policy.get_delay(attempt)
                registry.record_send_retry(attempt + 1)
                logger.info(
                    "Retrying send",
                    extra={
                        "code": message.code,
                        "id": message.id,
                        "attempt": attempt + 1,
                        "max_retries": max_retries,
                        "delay": delay,
                        "error": str(e),
                    },
                )
                await asyncio.sleep(delay)
            continue
        registry.record_message_sent(message.code, "success")
        return

    logger.warning(
        "✗ Send failed after %d attempts",
        max_retries,
        extra={"code": message.code, "id": message.id, "max_retries": max_retries},
    )
    if last_error is None:
        reason = "no send attempts made"
        raise SendError(reason)
    raise last_error


async def send_and_validate(
    session: SessionLike,
    message: Message,
    msg_id: int,
    code: int,
    max_retries: int = DEFAULT_MAX_RETRIES,
    *,
    match_id: bool = True,
    timeout: float | None = None,
    retry_policy: RetryPolicy | None = None,
) -> Message:
    """Send ``message`` once (with write retries) and read until a matching response.

    Args:
        session: Session to exchange on; the caller holds its exchange lock
        message: Request to send
        msg_id: Sequence id stamped into the request
        code: Request message code
        max_retries: Bound for both write attempts and response reads
        match_id: Require the response id to equal ``msg_id``
        timeout: Per-read deadline (default: the session's read timeout)
        retry_policy: Backoff between write attempts

    Returns:
        The matching response

    Raises:
        SendError: If every write attempt failed
        ReceiveError: If a read times out or the connection closes
        ScreenLogicProtocolError: Immediately, for a response carrying an error code
        NoValidResponseError: If ``max_retries`` reads produced no match

    """
    start_time = time.perf_counter()
    await send_with_retry(session, message, max_retries, retry_policy)

    for attempt in range(max_retries):
        response = Message.from_bytes(await session.read_message(timeout))
        try:
            matched = is_response(response, msg_id, code, match_id=match_id)
        except ScreenLogicProtocolError as e:
            registry.record_message_recv(response.code if len(response) >= HEADER_SIZE else 0, "error")
            registry.record_protocol_error(type(e).__name__)
            logger.warning(
                "✗ Controller returned error",
                extra={"expected_code": code, "expected_id": msg_id, "error": str(e)},
            )
            raise
        if not matched:
            registry.record_message_recv(response.code, "mismatch")
            registry.record_response_mismatch("id" if response.code == code + 1 else "code")
            logger.info(
                "Discarding unmatched response",
                extra={
                    "expected_code": code,
                    "expected_id": msg_id,
                    "actual_code": response.code,
                    "actual_id": response.id,
                    "attempt": attempt + 1,
                    "max_retries": max_retries,
                },
            )
            continue
        registry.record_message_recv(response.code, "success")
        registry.record_request_latency(_operation_name(code), time.perf_counter() - start_time)
        return response

    registry.record_protocol_error("NoValidResponseError")
    logger.warning(
        "✗ No valid response",
        extra={"expected_code": code, "expected_id": msg_id, "attempts": max_retries},
    )
    raise NoValidResponseError(max_retries)


def _operation_name(code: int) -> str:
    try:
        return MsgCode(code).name.lower()
    except ValueError:
        return str(code)
