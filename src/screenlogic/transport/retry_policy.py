"""Backoff between send attempts.

The attempt count belongs to the caller (``max_retries``); a policy only
answers how long to wait before the next attempt.
"""

from __future__ import annotations

import random
from dataclasses import dataclass


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff, capped, plus up to ``jitter_factor`` of random extra delay.

    ``get_delay(n)`` is ``min(base * 2**n, cap) * (1 + U(0, jitter_factor))``
    where ``n`` counts retries from 0.
    """

    base_delay_seconds: float = 0.05
    max_delay_seconds: float = 1.0
    jitter_factor: float = 0.1

    def __post_init__(self) -> None:
        if min(self.base_delay_seconds, self.max_delay_seconds, self.jitter_factor) < 0:
            msg = "retry delays and jitter must be non-negative"
            raise ValueError(msg)

    def get_delay(self, attempt: int) -> float:
        capped = min(self.base_delay_seconds * 2**attempt, self.max_delay_seconds)
        return capped * (1 + random.uniform(0, self.jitter_factor))

    @classmethod
    def immediate(cls) -> RetryPolicy:
        """Policy with no wait between attempts."""
        return cls(0.0, 0.0, 0.0)
