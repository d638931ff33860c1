"""
HTTP transport for Admin API calls.

Performs a single HTTP exchange: attaches the auth and content-type headers,
reads the body, and records the REST call budget from the response headers
whatever the status. Retry and queueing decisions belong to the gateway.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any, Optional

import aiohttp
from multidict import CIMultiDict, CIMultiDictProxy

from shopgate.exceptions import TransportError
from shopgate.http_client import create_client_session, timeout_for
from shopgate.logging_config import get_logger
from shopgate.rate_limit import RateLimitTracker

logger = get_logger(__name__)

ACCESS_TOKEN_HEADER = "X-Shopify-Access-Token"


@dataclass
class TransportResponse:
    """Status, headers and body of one HTTP exchange."""

    status: int
    reason: str = ""
    headers: CIMultiDictProxy = field(
        default_factory=lambda: CIMultiDictProxy(CIMultiDict())
    )
    text: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        """Parse the body as JSON. An empty body parses to ``{}``.

        Raises:
            ValueError: If the body is not valid JSON.
        """
        if not self.text.strip():
            return {}
        return json.loads(self.text)

    def json_or_text(self) -> Any:
        """Best-effort body: parsed JSON when possible, raw text otherwise."""
        try:
            return self.json()
        except ValueError:
            return self.text


class Transport:
    """
    Sends authenticated requests over a shared aiohttp session.

    The session is created lazily on first use and closed by close() unless
    it was injected by the caller, in which case the caller owns it.
    """

    def __init__(
        self,
        access_token: str,
        rate_limits: RateLimitTracker,
        session: Optional[aiohttp.ClientSession] = None,
        timeout_seconds: float = 30.0,
    ):
        self.access_token = access_token
        self._rate_limits = rate_limits
        self._session = session
        self._owns_session = session is None
        self._timeout_seconds = timeout_seconds

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = create_client_session(timeout=timeout_for(self._timeout_seconds))
            self._owns_session = True
        return self._session

    def build_headers(self, extra: Optional[dict[str, str]] = None) -> CIMultiDict:
        """Default headers with ``extra`` replacing them by case-insensitive name."""
        headers = CIMultiDict(
            {ACCESS_TOKEN_HEADER: self.access_token, "Content-Type": "application/json"}
        )
        for name, value in (extra or {}).items():
            headers[name] = value
        return headers

    async def send(
        self,
        method: str,
        url: str,
        body: Any = None,
        headers: Optional[dict[str, str]] = None,
        endpoint: Optional[str] = None,
    ) -> TransportResponse:
        """Issue one HTTP request and return its response.

        Bodies that are not valid in the declared charset are decoded with
        replacement characters rather than failing the exchange.

        Args:
            method: HTTP method.
            url: Absolute URL.
            body: JSON-serializable payload, a pre-encoded string, or None.
            headers: Extra headers merged over the defaults.
            endpoint: Path reported in errors; defaults to ``url``.

        Raises:
            TransportError: If no HTTP response could be obtained.
        """
        target = endpoint or url
        data = body if body is None or isinstance(body, (str, bytes)) else json.dumps(body)
        session = self._get_session()
        try:
            async with session.request(
                method.upper(), url, data=data, headers=self.build_headers(headers)
            ) as resp:
                text = await resp.text(errors="replace")
                response = TransportResponse(
                    status=resp.status,
                    reason=resp.reason or "",
                    headers=resp.headers,
                    text=text,
                )
        except asyncio.TimeoutError as e:
            logger.error("Shopify API request timed out", method=method, endpoint=target)
            raise TransportError(target, "timeout") from e
        except aiohttp.ClientError as e:
            logger.error(
                "Shopify API request failed",
                method=method,
                endpoint=target,
                error=type(e).__name__,
            )
            raise TransportError(target, f"{type(e).__name__}: {e}") from e

        self._rate_limits.update_from_headers(response.headers)
        logger.debug("HTTP exchange completed", method=method, url=url, status=response.status)
        return response

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
