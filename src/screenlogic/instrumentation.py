"""
Performance instrumentation for controller operations.

``timed_async`` logs how long an operation took, at WARNING when it exceeds
SCREENLOGIC_PERF_THRESHOLD_MS, and can be disabled with
SCREENLOGIC_PERF_TRACKING.
"""

from __future__ import annotations

import functools
import logging
import time
from collections.abc import Callable, Coroutine, Iterator
from contextlib import contextmanager
from typing import Any, ParamSpec, TypeVar

from screenlogic import const

__all__ = [
    "measure_time",
    "timed_async",
]

P = ParamSpec("P")
T = TypeVar("T")

logger = logging.getLogger(__name__)


def measure_time(start_time: float) -> float:
    """Return milliseconds elapsed since ``start_time`` (a ``time.perf_counter()`` value)."""
    return (time.perf_counter() - start_time) * 1000


@contextmanager
def _timing(operation: str) -> Iterator[None]:
    start = time.perf_counter()
    outcome = "error"
    try:
        yield
        outcome = "success"
    finally:
        elapsed_ms = measure_time(start)
        threshold_ms = const.SCREENLOGIC_PERF_THRESHOLD_MS
        slow = elapsed_ms > threshold_ms
        logger.log(
            logging.WARNING if slow else logging.DEBUG,
            "⏱️ [%s] %s in %.1fms%s",
            operation,
            outcome,
            elapsed_ms,
            f" (threshold: {threshold_ms}ms)" if slow else "",
            extra={
                "operation": operation,
                "outcome": outcome,
                "duration_ms": round(elapsed_ms, 2),
                "threshold_ms": threshold_ms,
                "exceeded_threshold": slow,
            },
        )


def timed_async(
    operation_name: str | None = None,
) -> Callable[[Callable[P, Coroutine[Any, Any, T]]], Callable[P, Coroutine[Any, Any, T]]]:
    """Time every call of the decorated coroutine function.

    Example:
        @timed_async("get_status")
        async def get_status(self):
            ...
    """

    def decorator(func: Callable[P, Coroutine[Any, Any, T]]) -> Callable[P, Coroutine[Any, Any, T]]:
        name = operation_name or func.__name__

        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            if not const.SCREENLOGIC_PERF_TRACKING:
                return await func(*args, **kwargs)
            with _timing(name):
                return await func(*args, **kwargs)

        return wrapper

    return decorator
