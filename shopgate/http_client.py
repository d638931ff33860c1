"""
HTTP session configuration for Admin API traffic.

Provides consistent timeout and session management for every aiohttp
session the gateway opens. Transport code should use these utilities
instead of creating sessions directly.

Usage:
    from shopgate.http_client import create_client_session, timeout_for

    async with create_client_session(timeout=timeout_for(15)) as session:
        async with session.get(url) as resp:
            data = await resp.json()
"""

from __future__ import annotations

import aiohttp
from aiohttp import ClientTimeout

__all__ = [
    "DEFAULT_TIMEOUT",
    "USER_AGENT",
    "timeout_for",
    "create_client_session",
]

# Default timeout for Admin API calls (30 seconds total)
DEFAULT_TIMEOUT = ClientTimeout(
    total=30,  # Total time for the entire request
    connect=10,  # Time to establish connection
    sock_read=20,  # Time to read response
)

USER_AGENT = "shopgate/AdminAPIGateway"


def timeout_for(total_seconds: float) -> ClientTimeout:
    """Build a ClientTimeout for a total budget, keeping the connect cap.

    Args:
        total_seconds: Total time allowed for one HTTP exchange.

    Returns:
        ClientTimeout with connect capped at 10s and the remainder for reads.
    """
    if total_seconds == DEFAULT_TIMEOUT.total:
        return DEFAULT_TIMEOUT
    connect = min(10.0, total_seconds)
    return ClientTimeout(total=total_seconds, connect=connect, sock_read=total_seconds)


def create_client_session(
    timeout: ClientTimeout | None = None,
    **kwargs,
) -> aiohttp.ClientSession:
    """Create an aiohttp ClientSession with proper timeout configuration.

    Args:
        timeout: Optional custom timeout. Uses DEFAULT_TIMEOUT if not specified.
        **kwargs: Additional arguments passed to ClientSession.

    Returns:
        Configured aiohttp.ClientSession.
    """
    if timeout is None:
        timeout = DEFAULT_TIMEOUT
    headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}
    headers.update(kwargs.pop("headers", None) or {})
    return aiohttp.ClientSession(timeout=timeout, headers=headers, **kwargs)
