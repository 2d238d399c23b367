"""Unit tests for RetryPolicy backoff."""

from __future__ import annotations

import pytest

from screenlogic.transport.retry_policy import RetryPolicy
from tests.helpers.expectations import expect_exception


def test_exponential_growth_without_jitter() -> None:
    policy = RetryPolicy(base_delay_seconds=0.1, max_delay_seconds=10.0, jitter_factor=0.0)
    assert [policy.get_delay(n) for n in range(4)] == pytest.approx([0.1, 0.2, 0.4, 0.8])


def test_delay_is_capped() -> None:
    policy = RetryPolicy(base_delay_seconds=0.5, max_delay_seconds=1.0, jitter_factor=0.0)
    assert policy.get_delay(10) == pytest.approx(1.0)


def test_jitter_bounds() -> None:
    policy = RetryPolicy(base_delay_seconds=1.0, max_delay_seconds=1.0, jitter_factor=0.1)
    for _ in range(50):
        delay = policy.get_delay(0)
        assert 1.0 <= delay <= 1.1


def test_immediate_policy() -> None:
    policy = RetryPolicy.immediate()
    assert policy.get_delay(0) == 0.0
    assert policy.get_delay(5) == 0.0


def test_negative_delays_rejected() -> None:
    _ = expect_exception(RetryPolicy, ValueError, base_delay_seconds=-1.0)


def test_negative_jitter_rejected() -> None:
    _ = expect_exception(RetryPolicy, ValueError, jitter_factor=-0.1)
