"""
Retry policy for throttled Admin API calls.

The policy is fixed-interval, bounded-attempt and server-directed: the wait
comes from the 429 response's ``Retry-After`` header (seconds), falling back
to a default when the header is missing. There is no jitter and no
exponential growth.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

RETRY_AFTER_HEADER = "Retry-After"
DEFAULT_RETRY_AFTER_SECONDS = 2
DEFAULT_MAX_ATTEMPTS = 3


@dataclass(frozen=True)
class RetryAttempt:
    """One throttled attempt of a logical request."""

    request_id: str
    attempt_number: int
    waited_ms: int


def parse_retry_after(value: Optional[str], default_seconds: float) -> float:
    """Parse a Retry-After value in seconds.

    Accepts integer or decimal seconds. Missing or unparsable values yield
    the default; negative values are floored to zero.
    """
    if value is None or not str(value).strip():
        return float(default_seconds)
    try:
        seconds = float(str(value).strip())
    except ValueError:
        return float(default_seconds)
    if math.isnan(seconds) or math.isinf(seconds):
        return float(default_seconds)
    return max(0.0, seconds)


@dataclass(frozen=True)
class BackoffPolicy:
    """Decides whether and how long to wait before resending a 429'd call."""

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    default_retry_after_seconds: int = DEFAULT_RETRY_AFTER_SECONDS

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    @staticmethod
    def should_retry(attempt_number: int, max_attempts: int) -> bool:
        """True if another attempt may follow attempt ``attempt_number``."""
        return attempt_number < max_attempts

    def allows_retry(self, attempt_number: int) -> bool:
        return self.should_retry(attempt_number, self.max_attempts)

    def wait_ms(self, retry_after_header: Optional[str]) -> int:
        """Milliseconds to wait for a given Retry-After header value."""
        seconds = parse_retry_after(retry_after_header, self.default_retry_after_seconds)
        return int(round(seconds * 1000))
