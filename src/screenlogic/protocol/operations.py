"""Request/response operations against a logged-in controller session.

Each operation takes a fresh request id from the session, builds its request
envelope, runs one exchange through the correlator and decodes the response
payload into a typed result.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING

from screenlogic.const import LOGIN_CLIENT_NAME, LOGIN_PASSWORD, LOGIN_PREAMBLE
from screenlogic.metrics import registry
from screenlogic.protocol.codec import Decoder, PayloadWriter, string_size
from screenlogic.protocol.codes import MsgCode
from screenlogic.protocol.equipment import (
    decode_controller_config,
    decode_controller_hardware,
    decode_controller_status,
)
from screenlogic.protocol.exceptions import (
    BadLoginError,
    InvalidResponseError,
    MessageDecodeError,
    ScreenLogicProtocolError,
)
from screenlogic.protocol.message import HEADER_SIZE, Message
from screenlogic.protocol.models import ControllerConfig, ControllerStatus
from screenlogic.transport.correlator import (
    DEFAULT_MAX_RETRIES,
    send_and_validate,
    validate_response,
)

if TYPE_CHECKING:
    from screenlogic.transport.session import ErrorSession, Session

logger = logging.getLogger(__name__)

__all__ = [
    "decode_controller_config",
    "decode_controller_hardware",
    "decode_controller_status",
    "decode_date_time",
    "decode_version",
    "get_controller_config",
    "get_controller_status",
    "get_time_and_date",
    "get_version_info",
    "login",
    "set_circuit_state",
]

_DATE_TIME_FIELDS = 9
_GET_CONFIG_REQUEST_SIZE = 8  # two reserved u32 zeros
_GET_STATUS_REQUEST_SIZE = 4  # one reserved u32 zero
_BUTTON_PRESS_REQUEST_SIZE = 12


def _login_message(msg_id: int) -> Message:
    size = string_size(LOGIN_CLIENT_NAME) + string_size(LOGIN_PASSWORD) + 12
    msg = Message.new_empty(msg_id, MsgCode.LOCAL_LOGIN, size)
    (
        PayloadWriter(msg.payload)
        .append_uint32(0)
        .append_uint32(0)
        .append_string(LOGIN_CLIENT_NAME)
        .append_string(LOGIN_PASSWORD)
        .append_uint32(0)
    )
    return msg


async def login(session: Session | ErrorSession, timeout: float | None = None) -> None:
    """Send the connect preamble and login message, then check the single reply.

    Raises:
        BadLoginError: If the controller answers with the bad-login code
        ScreenLogicProtocolError: If the reply fails generic validation
        ScreenLogicConnectionError: On send or read failure

    """
    async with session.exchange():
        msg_id = session.next_id()
        logger.debug("→ Logging in", extra={"id": msg_id, "client": LOGIN_CLIENT_NAME})
        await session.send(LOGIN_PREAMBLE)
        await session.send(bytes(_login_message(msg_id)))
        response = Message.from_bytes(await session.read_message(timeout))
        if len(response) >= HEADER_SIZE and response.code == MsgCode.BAD_LOGIN:
            registry.record_login("bad_login")
            logger.warning("✗ Login rejected", extra={"id": msg_id})
            raise BadLoginError
        try:
            validate_response(response, msg_id, MsgCode.LOCAL_LOGIN)
        except ScreenLogicProtocolError as e:
            registry.record_login(type(e).__name__)
            logger.warning("✗ Login failed", extra={"id": msg_id, "error": str(e)})
            raise
    registry.record_login("success")
    logger.debug("✓ Logged in", extra={"id": msg_id})


async def _request(
    session: Session | ErrorSession,
    code: MsgCode,
    size: int,
    *,
    max_retries: int,
    match_id: bool,
    build: Callable[[PayloadWriter], object] | None = None,
) -> Message:
    async with session.exchange():
        msg_id = session.next_id()
        request = Message.new_empty(msg_id, code, size)
        if build is not None:
            build(PayloadWriter(request.payload))
        return await send_and_validate(
            session,
            request,
            msg_id,
            code,
            max_retries,
            match_id=match_id,
        )


def decode_date_time(response: Message) -> datetime:
    """Decode a get-time response into a naive wall-clock timestamp.

    Fields: year, month, (unused), day, hour, minute, second, millisecond,
    auto-DST flag. The auto-DST flag is ignored.

    Raises:
        MessageDecodeError: If the payload is short or the fields are not a valid date

    """
    payload = response.payload
    dec = Decoder(payload)
    year, month, _unused, day, hour, minute, second, millisecond, _auto_dst = dec.uint16s(
        _DATE_TIME_FIELDS,
    )
    dec.require("decode_date_time")
    try:
        return datetime(year, month, day, hour, minute, second, millisecond * 1000)
    except ValueError as e:
        reason = f"decode_date_time: {e}"
        raise MessageDecodeError(reason, bytes(payload)) from e


def decode_version(response: Message) -> str:
    """Decode a get-version response (a single length-prefixed string)."""
    dec = Decoder(response.payload)
    version = dec.string()
    dec.require("decode_version")
    return version


async def get_time_and_date(
    session: Session | ErrorSession,
    *,
    max_retries: int = DEFAULT_MAX_RETRIES,
    match_id: bool = True,
) -> datetime:
    response = await _request(session, MsgCode.GET_DATE_TIME, 0, max_retries=max_retries, match_id=match_id)
    try:
        return decode_date_time(response)
    except MessageDecodeError:
        registry.record_decode_error("date_time")
        raise


async def get_version_info(
    session: Session | ErrorSession,
    *,
    max_retries: int = DEFAULT_MAX_RETRIES,
    match_id: bool = True,
) -> str:
    response = await _request(session, MsgCode.GET_VERSION, 0, max_retries=max_retries, match_id=match_id)
    try:
        return decode_version(response)
    except MessageDecodeError:
        registry.record_decode_error("version")
        raise


async def get_controller_config(
    session: Session | ErrorSession,
    *,
    max_retries: int = DEFAULT_MAX_RETRIES,
    match_id: bool = True,
) -> ControllerConfig:
    response = await _request(
        session,
        MsgCode.GET_CONFIG,
        _GET_CONFIG_REQUEST_SIZE,
        max_retries=max_retries,
        match_id=match_id,
    )
    try:
        return decode_controller_config(response.payload)
    except MessageDecodeError:
        registry.record_decode_error("controller_config")
        raise


async def get_controller_status(
    session: Session | ErrorSession,
    *,
    max_retries: int = DEFAULT_MAX_RETRIES,
    match_id: bool = True,
) -> ControllerStatus:
    response = await _request(
        session,
        MsgCode.GET_STATUS,
        _GET_STATUS_REQUEST_SIZE,
        max_retries=max_retries,
        match_id=match_id,
    )
    try:
        return decode_controller_status(response.payload)
    except MessageDecodeError:
        registry.record_decode_error("controller_status")
        raise


async def set_circuit_state(
    session: Session | ErrorSession,
    circuit_id: int,
    on: bool,
    *,
    max_retries: int = DEFAULT_MAX_RETRIES,
    match_id: bool = True,
) -> None:
    """Switch circuit ``circuit_id`` on or off.

    Raises:
        InvalidResponseError: If the controller's reply carries a payload
        BadParameterError: If the controller rejects the circuit id

    """

    def build(writer: PayloadWriter) -> None:
        writer.append_uint32(0).append_uint32(circuit_id).append_uint32(1 if on else 0)

    response = await _request(
        session,
        MsgCode.BUTTON_PRESS,
        _BUTTON_PRESS_REQUEST_SIZE,
        max_retries=max_retries,
        match_id=match_id,
        build=build,
    )
    if len(response.payload) != 0:
        reason = f"set_circuit_state: unexpected {len(response.payload)} byte response payload"
        raise InvalidResponseError(reason)
    logger.info(
        "✓ Circuit state set",
        extra={"circuit_id": circuit_id, "on": on},
    )
