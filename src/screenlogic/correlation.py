"""
Correlation ID tracking for controller operations.

Every adapter operation runs inside a correlation context so that the log
lines it produces (acquire, dial, login, send, read, decode) can be grouped,
even when several operations interleave on one event loop.
"""

from __future__ import annotations

import contextvars
import uuid
from collections.abc import Generator
from contextlib import contextmanager

__all__ = [
    "correlation_context",
    "generate_correlation_id",
    "get_correlation_id",
    "get_operation",
]

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "screenlogic_correlation_id",
    default=None,
)
_operation: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "screenlogic_operation",
    default=None,
)


def generate_correlation_id() -> str:
    """Return a new correlation ID (UUID4 hex without dashes)."""
    return uuid.uuid4().hex


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def get_operation() -> str | None:
    """Name of the adapter operation running in this context, if any."""
    return _operation.get()


@contextmanager
def correlation_context(
    operation: str | None = None,
    correlation_id: str | None = None,
) -> Generator[str]:
    """
    Scope a correlation ID (and operation name) to a block.

    A nested context without an explicit ID keeps the enclosing ID, so an
    operation that triggers a reconnect logs the dial and login under the
    caller's ID.

    Args:
        operation: Operation name, e.g. "get_status"
        correlation_id: Specific correlation ID to use (None to inherit or generate)

    Yields:
        The correlation ID used in this context

    Example:
        with correlation_context("get_config") as corr_id:
            logger.info("Fetching config")  # Includes corr_id
    """
    if correlation_id is None:
        correlation_id = get_correlation_id() or generate_correlation_id()

    id_token = _correlation_id.set(correlation_id)
    op_token = _operation.set(operation if operation is not None else _operation.get())
    try:
        yield correlation_id
    finally:
        _operation.reset(op_token)
        _correlation_id.reset(id_token)
