"""
REST call budget tracking.

Shopify reports the shop's leaky-bucket budget on every REST response as
``X-Shopify-Shop-Api-Call-Limit: <used>/<limit>``. The gateway keeps the
last observed value per instance and uses it as the only signal for
deciding whether a new REST call must wait in the request queue.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

logger = logging.getLogger(__name__)

CALL_LIMIT_HEADER = "X-Shopify-Shop-Api-Call-Limit"


@dataclass(frozen=True)
class RateLimitState:
    """Last observed REST call budget.

    Invariant: ``0 <= calls_remaining <= call_limit``.
    """

    call_limit: int
    calls_remaining: int
    observed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def calls_used(self) -> int:
        return self.call_limit - self.calls_remaining

    def to_dict(self) -> dict[str, Any]:
        return {
            "call_limit": self.call_limit,
            "calls_remaining": self.calls_remaining,
            "observed_at": self.observed_at.isoformat(),
        }


def parse_call_limit_header(
    value: Optional[str], observed_at: Optional[datetime] = None
) -> Optional[RateLimitState]:
    """Parse a ``"<used>/<limit>"`` header value.

    Returns None when the header is absent or cannot be parsed, which callers
    treat as "no update". A used count above the limit is clamped so that
    calls_remaining never goes negative.
    """
    if not value:
        return None

    used_text, sep, limit_text = value.strip().partition("/")
    if not sep:
        logger.debug(f"Ignoring malformed call limit header: {value!r}")
        return None
    try:
        used = int(used_text.strip())
        limit = int(limit_text.strip())
    except ValueError:
        logger.debug(f"Ignoring malformed call limit header: {value!r}")
        return None
    if limit <= 0 or used < 0:
        logger.debug(f"Ignoring out-of-range call limit header: {value!r}")
        return None

    remaining = max(0, limit - used)
    return RateLimitState(
        call_limit=limit,
        calls_remaining=remaining,
        observed_at=observed_at or datetime.now(timezone.utc),
    )


class RateLimitTracker:
    """Thread-safe holder of the last RateLimitState seen by one gateway.

    Starts empty (unknown budget, so calls are sent optimistically). Stale
    reads are acceptable: Shopify remains the authority and answers 429 when
    the local view is wrong.
    """

    def __init__(self, queue_threshold: int = 1):
        self.queue_threshold = queue_threshold
        self._state: Optional[RateLimitState] = None
        self._lock = threading.Lock()

    @property
    def state(self) -> Optional[RateLimitState]:
        with self._lock:
            return self._state

    def update(self, state: Optional[RateLimitState]) -> bool:
        """Store a new state. None leaves the previous state untouched.

        Returns:
            True if the stored state changed.
        """
        if state is None:
            return False
        with self._lock:
            self._state = state
        return True

    def update_from_headers(self, headers: Mapping[str, str]) -> bool:
        """Update from a response's headers (absent header means no change)."""
        return self.update(parse_call_limit_header(headers.get(CALL_LIMIT_HEADER)))

    def should_queue(self) -> bool:
        """Whether a new REST call should be deferred to the request queue."""
        with self._lock:
            state = self._state
        return state is not None and state.calls_remaining <= self.queue_threshold

    def reset(self) -> None:
        with self._lock:
            self._state = None
