"""Metrics module."""

from .registry import (
    record_connection_state,
    record_decode_error,
    record_idle_disconnect,
    record_lock_wait,
    record_login,
    record_message_recv,
    record_message_sent,
    record_protocol_error,
    record_request_latency,
    record_response_mismatch,
    record_send_retry,
    start_metrics_server,
)

__all__ = [
    "record_connection_state",
    "record_decode_error",
    "record_idle_disconnect",
    "record_lock_wait",
    "record_login",
    "record_message_recv",
    "record_message_sent",
    "record_protocol_error",
    "record_request_latency",
    "record_response_mismatch",
    "record_send_retry",
    "start_metrics_server",
]
