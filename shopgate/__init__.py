"""
shopgate: rate-limit aware Shopify Admin API gateway

Lets many concurrent callers (agent handlers) issue REST and GraphQL calls
against one shop on behalf of a tenant:

- REST call budget tracking from X-Shopify-Shop-Api-Call-Limit
- FIFO backpressure queue with a minimum dispatch interval
- Server-directed retry of throttled (429) calls, bounded attempts
- Advisory GraphQL cost estimation
- Typed errors for every failure mode
"""

from __future__ import annotations

import importlib
from typing import Any

from shopgate.__version__ import __version__

_EXPORT_MAP = {
    'AdminAPIGateway': ('shopgate.gateway', 'AdminAPIGateway'),
    'BackoffPolicy': ('shopgate.backoff', 'BackoffPolicy'),
    'ConfigurationError': ('shopgate.exceptions', 'ConfigurationError'),
    'CostEstimate': ('shopgate.cost', 'CostEstimate'),
    'CredentialError': ('shopgate.exceptions', 'CredentialError'),
    'CredentialResolver': ('shopgate.credentials', 'CredentialResolver'),
    'GatewayConfig': ('shopgate.config', 'GatewayConfig'),
    'GraphQLError': ('shopgate.exceptions', 'GraphQLError'),
    'InMemoryCredentialResolver': ('shopgate.credentials', 'InMemoryCredentialResolver'),
    'QueueEntry': ('shopgate.request_queue', 'QueueEntry'),
    'RateLimitExhaustedError': ('shopgate.exceptions', 'RateLimitExhaustedError'),
    'RateLimitState': ('shopgate.rate_limit', 'RateLimitState'),
    'RequestCancelledError': ('shopgate.exceptions', 'RequestCancelledError'),
    'RequestQueue': ('shopgate.request_queue', 'RequestQueue'),
    'ResolvedCredentials': ('shopgate.credentials', 'ResolvedCredentials'),
    'RetryAttempt': ('shopgate.backoff', 'RetryAttempt'),
    'ShopgateError': ('shopgate.exceptions', 'ShopgateError'),
    'ShopifyAdminAPI': ('shopgate.admin', 'ShopifyAdminAPI'),
    'TransportError': ('shopgate.exceptions', 'TransportError'),
    'UninitializedError': ('shopgate.exceptions', 'UninitializedError'),
    'UpstreamError': ('shopgate.exceptions', 'UpstreamError'),
    'create_admin_api': ('shopgate.gateway', 'create_admin_api'),
    'estimate_query_cost': ('shopgate.cost', 'estimate_query_cost'),
    'parse_call_limit_header': ('shopgate.rate_limit', 'parse_call_limit_header'),
}


def __getattr__(name: str) -> Any:
    """Lazily import public symbols to avoid pulling in aiohttp on bare import."""
    try:
        module_name, attr_name = _EXPORT_MAP[name]
    except KeyError as exc:
        raise AttributeError(f"module 'shopgate' has no attribute {name!r}") from exc
    module = importlib.import_module(module_name)
    value = getattr(module, attr_name)
    globals()[name] = value
    return value


def __dir__() -> list[str]:
    return sorted(set(globals()) | set(__all__))


__all__ = [
    "__version__",
    # Gateway
    "AdminAPIGateway",
    "create_admin_api",
    "ShopifyAdminAPI",
    "GatewayConfig",
    # Building blocks
    "RateLimitState",
    "parse_call_limit_header",
    "BackoffPolicy",
    "RetryAttempt",
    "CostEstimate",
    "estimate_query_cost",
    "RequestQueue",
    "QueueEntry",
    # Credentials
    "CredentialResolver",
    "ResolvedCredentials",
    "InMemoryCredentialResolver",
    # Errors
    "ShopgateError",
    "ConfigurationError",
    "CredentialError",
    "UninitializedError",
    "RateLimitExhaustedError",
    "UpstreamError",
    "GraphQLError",
    "TransportError",
    "RequestCancelledError",
]
