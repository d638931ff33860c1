"""
Gateway configuration module.

Provides the tunables of an Admin API gateway (dispatch pacing, retry
ceiling, API version) with validation and environment variable overrides.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

DEFAULT_API_VERSION = "2024-01"


@dataclass(frozen=True)
class GatewayConfig:
    """Configuration for an AdminAPIGateway instance.

    Immutable for the lifetime of the gateway that receives it. Credentials
    are not part of the config; they are resolved per tenant at initialize().

    Attributes:
        api_version: Admin API release used in every URL (``YYYY-MM``).
        min_dispatch_interval_ms: Pause between two queued dispatches.
        max_retries: Total attempts for a throttled (429) request.
        default_retry_after_seconds: Wait used when a 429 has no Retry-After.
        queue_threshold: Calls remaining at or below which REST calls queue.
        cost_warning_threshold: GraphQL cost score above which a warning is logged.
        request_timeout_seconds: Total aiohttp timeout for one HTTP exchange.

    Example:
        # Slower pacing for a shop on a basic plan
        config = GatewayConfig(min_dispatch_interval_ms=500)
    """

    api_version: str = DEFAULT_API_VERSION
    min_dispatch_interval_ms: int = 250
    max_retries: int = 3
    default_retry_after_seconds: int = 2
    queue_threshold: int = 1
    cost_warning_threshold: int = 1000
    request_timeout_seconds: float = 30.0

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if not self.api_version:
            raise ValueError("api_version must not be empty")
        if self.min_dispatch_interval_ms < 0:
            raise ValueError("min_dispatch_interval_ms must be non-negative")
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        if self.default_retry_after_seconds < 0:
            raise ValueError("default_retry_after_seconds must be non-negative")
        if self.queue_threshold < 0:
            raise ValueError("queue_threshold must be non-negative")
        if self.request_timeout_seconds <= 0:
            raise ValueError("request_timeout_seconds must be positive")

    @property
    def min_dispatch_interval_seconds(self) -> float:
        return self.min_dispatch_interval_ms / 1000

    def with_overrides(
        self,
        api_version: Optional[str] = None,
        min_dispatch_interval_ms: Optional[int] = None,
        max_retries: Optional[int] = None,
        request_timeout_seconds: Optional[float] = None,
    ) -> GatewayConfig:
        """Create a new config with specified overrides.

        Args:
            api_version: Override for api_version
            min_dispatch_interval_ms: Override for min_dispatch_interval_ms
            max_retries: Override for max_retries
            request_timeout_seconds: Override for request_timeout_seconds

        Returns:
            New GatewayConfig with overrides applied
        """
        return GatewayConfig(
            api_version=api_version if api_version is not None else self.api_version,
            min_dispatch_interval_ms=(
                min_dispatch_interval_ms
                if min_dispatch_interval_ms is not None
                else self.min_dispatch_interval_ms
            ),
            max_retries=max_retries if max_retries is not None else self.max_retries,
            default_retry_after_seconds=self.default_retry_after_seconds,
            queue_threshold=self.queue_threshold,
            cost_warning_threshold=self.cost_warning_threshold,
            request_timeout_seconds=(
                request_timeout_seconds
                if request_timeout_seconds is not None
                else self.request_timeout_seconds
            ),
        )


def _get_env_int(name: str) -> Optional[int]:
    """Get an integer from environment variable, or None if not set/invalid."""
    value = os.environ.get(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _get_env_float(name: str) -> Optional[float]:
    """Get a float from environment variable, or None if not set/invalid."""
    value = os.environ.get(name)
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def get_gateway_config(base: Optional[GatewayConfig] = None) -> GatewayConfig:
    """Get gateway configuration with environment overrides applied.

    Environment variables:
        SHOPGATE_API_VERSION: Override the Admin API version
        SHOPGATE_MIN_DISPATCH_INTERVAL_MS: Override queued dispatch pacing
        SHOPGATE_MAX_RETRIES: Override the 429 retry ceiling
        SHOPGATE_REQUEST_TIMEOUT_SECONDS: Override the HTTP timeout

    Args:
        base: Config to start from (defaults to GatewayConfig()).

    Returns:
        GatewayConfig with any environment overrides applied.
    """
    base_config = base or GatewayConfig()

    env_version = os.environ.get("SHOPGATE_API_VERSION") or None
    env_interval = _get_env_int("SHOPGATE_MIN_DISPATCH_INTERVAL_MS")
    env_retries = _get_env_int("SHOPGATE_MAX_RETRIES")
    env_timeout = _get_env_float("SHOPGATE_REQUEST_TIMEOUT_SECONDS")

    if any(v is not None for v in [env_version, env_interval, env_retries, env_timeout]):
        return base_config.with_overrides(
            api_version=env_version,
            min_dispatch_interval_ms=env_interval,
            max_retries=env_retries,
            request_timeout_seconds=env_timeout,
        )

    return base_config


def current_api_version(now: Optional[datetime] = None) -> str:
    """Return the quarterly Admin API release name for a date (YYYY-01/04/07/10).

    'now' is optional (useful for tests); defaults to the current UTC time.
    """
    dt = now or datetime.now(timezone.utc)
    quarter_start = ((dt.month - 1) // 3) * 3 + 1
    return f"{dt.year}-{quarter_start:02d}"
