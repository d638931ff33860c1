"""
Admin API gateway.

One AdminAPIGateway per tenant session. It is the only object callers use to
talk to a shop: it checks the observed REST call budget before every REST
call, defers calls to the request queue when the budget is nearly spent,
resends throttled (429) calls after the server-directed wait, and turns every
other failure into a typed error.

Usage:
    gateway = AdminAPIGateway("user-1", resolver=resolver)
    if await gateway.initialize():
        shop = await gateway.request("/shop.json")
        data = await gateway.graphql_request("{ shop { name } }")
    await gateway.close()
"""

from __future__ import annotations

import asyncio
import uuid
from typing import Any, Optional

import aiohttp

from shopgate.backoff import RETRY_AFTER_HEADER, BackoffPolicy, RetryAttempt
from shopgate.cancellation import sleep_or_cancel
from shopgate.config import GatewayConfig, get_gateway_config
from shopgate.cost import warn_if_expensive
from shopgate.credentials import CredentialResolver
from shopgate.exceptions import (
    ConfigurationError,
    CredentialError,
    GraphQLError,
    RateLimitExhaustedError,
    ShopgateError,
    UninitializedError,
    UpstreamError,
)
from shopgate.logging_config import LogContext, get_logger
from shopgate.rate_limit import RateLimitState, RateLimitTracker
from shopgate.request_queue import RequestQueue
from shopgate.transport import Transport, TransportResponse

logger = get_logger(__name__)

GRAPHQL_ENDPOINT = "/graphql.json"


def _new_request_id() -> str:
    return uuid.uuid4().hex[:12]


def normalize_shop_domain(shop_domain: str) -> str:
    """Strip scheme and trailing slashes from a shop domain."""
    domain = shop_domain.strip()
    for prefix in ("https://", "http://"):
        if domain.startswith(prefix):
            domain = domain[len(prefix):]
    return domain.rstrip("/")


class AdminAPIGateway:
    """
    Rate-limit aware client for one shop's Admin API.

    State (call budget, queue, HTTP session) is private to the instance;
    separate tenants get separate gateways.
    """

    def __init__(
        self,
        user_id: str,
        resolver: Optional[CredentialResolver] = None,
        config: Optional[GatewayConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.user_id = user_id
        self.config = config or get_gateway_config()
        self._resolver = resolver
        self._session = session
        self._access_token: Optional[str] = None
        self._shop_domain: Optional[str] = None
        self._base_url = ""
        self._transport: Optional[Transport] = None
        self._rate_limits = RateLimitTracker(queue_threshold=self.config.queue_threshold)
        self._queue = RequestQueue(
            min_dispatch_interval=self.config.min_dispatch_interval_seconds,
            name=f"shopify-rest-{user_id}",
        )
        self._backoff = BackoffPolicy(
            max_attempts=self.config.max_retries,
            default_retry_after_seconds=self.config.default_retry_after_seconds,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_initialized(self) -> bool:
        return bool(self._access_token and self._base_url)

    @property
    def shop_domain(self) -> Optional[str]:
        return self._shop_domain

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def queue(self) -> RequestQueue:
        return self._queue

    async def initialize(self, shop_domain: Optional[str] = None) -> bool:
        """Load the tenant's credentials through the configured resolver.

        Args:
            shop_domain: Pick this shop; otherwise the user's first connection.

        Returns:
            True when a usable connection was found, False otherwise.
        """
        if self._resolver is None:
            logger.warning("No credential resolver configured", user_id=self.user_id)
            return False

        try:
            credentials = await self._resolver.resolve(self.user_id, shop_domain)
        except CredentialError as e:
            logger.error("Failed to initialize Shopify API", user_id=self.user_id, error=str(e))
            return False

        if credentials is None or not credentials.access_token:
            logger.warning("No Shopify connection found for user", user_id=self.user_id)
            return False

        try:
            self.configure(credentials.access_token, credentials.shop_domain)
        except ConfigurationError as e:
            logger.error("Resolved Shopify connection is unusable", user_id=self.user_id, error=str(e))
            return False
        return True

    def configure(self, access_token: str, shop_domain: str) -> None:
        """Use an already-resolved token and shop domain.

        Raises:
            ConfigurationError: If either value is empty.
        """
        if not access_token:
            raise ConfigurationError("AdminAPIGateway", "access token is empty")
        domain = normalize_shop_domain(shop_domain or "")
        if not domain:
            raise ConfigurationError("AdminAPIGateway", "shop domain is empty")

        self._access_token = access_token
        self._shop_domain = domain
        self._base_url = f"https://{domain}/admin/api/{self.config.api_version}"
        if self._transport is None:
            self._transport = Transport(
                access_token,
                self._rate_limits,
                session=self._session,
                timeout_seconds=self.config.request_timeout_seconds,
            )
        else:
            self._transport.access_token = access_token
        logger.info("Shopify API configured", shop_domain=domain, api_version=self.config.api_version)

    async def close(self) -> None:
        """Fail queued calls and release the HTTP session."""
        await self._queue.close()
        if self._transport is not None:
            await self._transport.close()

    async def __aenter__(self) -> "AdminAPIGateway":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Primitives
    # ------------------------------------------------------------------

    def get_rate_limit_info(self) -> Optional[RateLimitState]:
        """Last observed REST call budget (observability only)."""
        return self._rate_limits.state

    def _require_initialized(self, operation: str) -> Transport:
        if not self.is_initialized or self._transport is None:
            raise UninitializedError(operation)
        return self._transport

    def _url(self, endpoint: str) -> str:
        if not endpoint.startswith("/"):
            endpoint = "/" + endpoint
        return f"{self._base_url}{endpoint}"

    async def request(
        self,
        endpoint: str,
        method: str = "GET",
        body: Any = None,
        headers: Optional[dict[str, str]] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Any:
        """Call a REST endpoint (path relative to the versioned admin URL).

        Returns:
            The parsed JSON body.

        Raises:
            UninitializedError: Before initialize()/configure().
            RateLimitExhaustedError: 429 persisted past max_retries attempts.
            UpstreamError: Any other non-2xx response.
            TransportError: No response could be obtained.
            RequestCancelledError: cancel_event fired during a wait.
        """
        transport = self._require_initialized("request")
        request_id = _new_request_id()
        url = self._url(endpoint)

        async def send() -> Any:
            with LogContext(request_id=request_id, shop_domain=self._shop_domain):
                response = await self._send_with_retry(
                    transport, request_id, method, url, endpoint, body, headers, cancel_event
                )
                return self._parse_json(response, endpoint)

        if self._rate_limits.should_queue():
            state = self._rate_limits.state
            with LogContext(request_id=request_id, shop_domain=self._shop_domain):
                logger.warning(
                    "Approaching Shopify API rate limit, queuing request",
                    endpoint=endpoint,
                    calls_remaining=state.calls_remaining if state else None,
                    queued=self._queue.pending,
                )
            return await self._queue.submit(send, cancel_event=cancel_event, entry_id=request_id)
        return await send()

    async def graphql_request(
        self,
        query: str,
        variables: Optional[dict[str, Any]] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Any:
        """Run a GraphQL document against the Admin API.

        GraphQL has its own cost-based budget upstream, so these calls never
        wait in the REST queue; the local cost estimate is only logged.

        Returns:
            The ``data`` member of the response.

        Raises:
            GraphQLError: The response carried a non-empty ``errors`` list.
            (plus the errors listed on request())
        """
        transport = self._require_initialized("graphql_request")
        warn_if_expensive(query, self.config.cost_warning_threshold)

        request_id = _new_request_id()
        payload: dict[str, Any] = {"query": query}
        if variables is not None:
            payload["variables"] = variables

        with LogContext(request_id=request_id, shop_domain=self._shop_domain):
            response = await self._send_with_retry(
                transport,
                request_id,
                "POST",
                self._url(GRAPHQL_ENDPOINT),
                GRAPHQL_ENDPOINT,
                payload,
                None,
                cancel_event,
            )
            result = self._parse_json(response, GRAPHQL_ENDPOINT)
            if not isinstance(result, dict):
                raise UpstreamError(
                    GRAPHQL_ENDPOINT, response.status, "unexpected GraphQL payload", result
                )

            errors = result.get("errors")
            if errors:
                error = GraphQLError(errors if isinstance(errors, list) else [errors])
                logger.error("Shopify GraphQL request failed", errors=error.messages)
                raise error

            cost = (result.get("extensions") or {}).get("cost")
            if cost:
                self._log_query_cost(cost)
            return result.get("data")

    async def test_connection(self) -> bool:
        """Fetch /shop.json; False on any gateway error."""
        try:
            await self.request("/shop.json")
            return True
        except ShopgateError as e:
            logger.error("Shopify connection test failed", error=str(e))
            return False

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _send_with_retry(
        self,
        transport: Transport,
        request_id: str,
        method: str,
        url: str,
        endpoint: str,
        body: Any,
        headers: Optional[dict[str, str]],
        cancel_event: Optional[asyncio.Event],
    ) -> TransportResponse:
        attempts: list[RetryAttempt] = []
        attempt = 1
        while True:
            response = await transport.send(
                method, url, body=body, headers=headers, endpoint=endpoint
            )

            if response.status == 429:
                if not self._backoff.allows_retry(attempt):
                    attempts.append(RetryAttempt(request_id, attempt, 0))
                    logger.error(
                        "Max retry attempts reached for rate limited request",
                        endpoint=endpoint,
                        attempt=attempt,
                        status=response.status,
                    )
                    raise RateLimitExhaustedError(endpoint, attempts, self._backoff.max_attempts)

                wait_ms = self._backoff.wait_ms(response.headers.get(RETRY_AFTER_HEADER))
                logger.warning(
                    f"Shopify API rate limited, retrying after {wait_ms / 1000:g} seconds",
                    endpoint=endpoint,
                    attempt=attempt,
                    status=response.status,
                )
                await sleep_or_cancel(
                    wait_ms / 1000, cancel_event, request_id=request_id, stage="backoff"
                )
                attempts.append(RetryAttempt(request_id, attempt, wait_ms))
                attempt += 1
                continue

            if not response.ok:
                error = UpstreamError(
                    endpoint, response.status, response.reason, response.json_or_text()
                )
                logger.error(
                    "Shopify API request failed",
                    endpoint=endpoint,
                    attempt=attempt,
                    status=response.status,
                )
                raise error

            return response

    @staticmethod
    def _parse_json(response: TransportResponse, endpoint: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(
                endpoint, response.status, "malformed JSON response", response.text
            ) from e

    @staticmethod
    def _log_query_cost(cost: dict[str, Any]) -> None:
        throttle = cost.get("throttleStatus") or {}
        logger.info(
            f"GraphQL query cost: {cost.get('actualQueryCost')}/"
            f"{throttle.get('maximumAvailable')}",
            requested=cost.get("requestedQueryCost"),
            actual=cost.get("actualQueryCost"),
            currently_available=throttle.get("currentlyAvailable"),
        )


async def create_admin_api(
    user_id: str,
    access_token: Optional[str] = None,
    shop_domain: Optional[str] = None,
    resolver: Optional[CredentialResolver] = None,
    config: Optional[GatewayConfig] = None,
) -> Optional[AdminAPIGateway]:
    """Create a gateway for a user.

    With both access_token and shop_domain the credentials are used directly;
    otherwise they are resolved through ``resolver``.

    Returns:
        A ready gateway, or None when no usable connection exists.
    """
    gateway = AdminAPIGateway(user_id, resolver=resolver, config=config)

    if access_token and shop_domain:
        gateway.configure(access_token, shop_domain)
        return gateway

    if not await gateway.initialize(shop_domain):
        return None
    return gateway
