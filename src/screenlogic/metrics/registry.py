"""Prometheus metrics registry for controller communication."""

import threading
from typing import Final

from prometheus_client import (  # type: ignore[import-untyped]
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

CONNECTION_STATES: Final = ("disconnected", "connecting", "connected", "closing")

# Metric definitions
screenlogic_message_sent_total: Final = Counter(  # type: ignore[assignment]
    "screenlogic_message_sent_total",
    "Total messages sent",
    ["code", "outcome"],
)

screenlogic_message_recv_total: Final = Counter(  # type: ignore[assignment]
    "screenlogic_message_recv_total",
    "Total messages received",
    ["code", "outcome"],
)

screenlogic_request_latency_seconds: Final = Histogram(  # type: ignore[assignment]
    "screenlogic_request_latency_seconds",
    "Request/response round-trip latency in seconds",
    ["operation"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

screenlogic_send_retry_total: Final = Counter(  # type: ignore[assignment]
    "screenlogic_send_retry_total",
    "Total send retries",
    ["attempt_number"],
)

screenlogic_response_mismatch_total: Final = Counter(  # type: ignore[assignment]
    "screenlogic_response_mismatch_total",
    "Total received messages discarded because id or code did not match",
    ["reason"],
)

screenlogic_protocol_errors_total: Final = Counter(  # type: ignore[assignment]
    "screenlogic_protocol_errors_total",
    "Total protocol error responses and exhausted reads",
    ["kind"],
)

screenlogic_decode_errors_total: Final = Counter(  # type: ignore[assignment]
    "screenlogic_decode_errors_total",
    "Total decode errors",
    ["record"],
)

# Connection metrics
screenlogic_connection_state: Final = Gauge(  # type: ignore[assignment]
    "screenlogic_connection_state",
    "Current connection state",
    ["address", "state"],
)

screenlogic_login_total: Final = Counter(  # type: ignore[assignment]
    "screenlogic_login_total",
    "Total login attempts",
    ["outcome"],
)

screenlogic_idle_disconnect_total: Final = Counter(  # type: ignore[assignment]
    "screenlogic_idle_disconnect_total",
    "Total sessions closed by the idle timer",
)

# Performance metrics
screenlogic_lock_wait_seconds: Final = Histogram(  # type: ignore[assignment]
    "screenlogic_lock_wait_seconds",
    "Time spent waiting for the connection or exchange lock in seconds",
    ["lock"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 5.0),
)

_server_state = {"started": False}
_server_lock = threading.Lock()


def start_metrics_server(port: int = 9400) -> None:
    """Start Prometheus HTTP metrics server (idempotent)."""
    with _server_lock:
        if not _server_state["started"]:
            start_http_server(port)  # type: ignore[no-untyped-call]
            _server_state["started"] = True


def record_message_sent(code: int, outcome: str) -> None:
    """Record a sent message."""
    screenlogic_message_sent_total.labels(code=str(code), outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_message_recv(code: int, outcome: str) -> None:
    """Record a received message."""
    screenlogic_message_recv_total.labels(code=str(code), outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_request_latency(operation: str, latency_seconds: float) -> None:
    """Record request latency."""
    screenlogic_request_latency_seconds.labels(operation=operation).observe(latency_seconds)  # type: ignore[no-untyped-call]


def record_send_retry(attempt_number: int) -> None:
    """Record a send retry."""
    screenlogic_send_retry_total.labels(attempt_number=str(attempt_number)).inc()  # type: ignore[no-untyped-call]


def record_response_mismatch(reason: str) -> None:
    """Record a discarded response."""
    screenlogic_response_mismatch_total.labels(reason=reason).inc()  # type: ignore[no-untyped-call]


def record_protocol_error(kind: str) -> None:
    """Record a protocol error."""
    screenlogic_protocol_errors_total.labels(kind=kind).inc()  # type: ignore[no-untyped-call]


def record_decode_error(record: str) -> None:
    """Record a decode error."""
    screenlogic_decode_errors_total.labels(record=record).inc()  # type: ignore[no-untyped-call]


def record_connection_state(address: str, state: str) -> None:
    """Record connection state change."""
    # Set gauge to 1 for current state, 0 for all others
    for s in CONNECTION_STATES:
        value = 1 if s == state else 0
        screenlogic_connection_state.labels(address=address, state=s).set(value)  # type: ignore[no-untyped-call]


def record_login(outcome: str) -> None:
    """Record a login attempt."""
    screenlogic_login_total.labels(outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_idle_disconnect() -> None:
    """Record an idle-timer disconnect."""
    screenlogic_idle_disconnect_total.inc()  # type: ignore[no-untyped-call]


def record_lock_wait(lock: str, wait_seconds: float) -> None:
    """Record lock wait duration."""
    screenlogic_lock_wait_seconds.labels(lock=lock).observe(wait_seconds)  # type: ignore[no-untyped-call]
