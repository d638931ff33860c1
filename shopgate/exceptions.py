"""
Custom exception types for shopgate.

This module defines the hierarchy of exceptions raised by the Admin API
gateway. Using specific exception types enables:
- Precise handling of throttling versus upstream rejections
- Better error messages carrying endpoint, status and attempt context
- Catching every gateway failure with a single ``except ShopgateError``
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from shopgate.backoff import RetryAttempt


class ShopgateError(Exception):
    """Base exception for all shopgate errors.

    All custom exceptions in shopgate inherit from this class so callers can
    catch every gateway-specific error with a single handler.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (details: {self.details})"
        return self.message


# ============================================================================
# Configuration Errors
# ============================================================================


class ConfigurationError(ShopgateError):
    """Raised when a component's configuration is missing or invalid."""

    def __init__(self, component: str, reason: str):
        super().__init__(
            f"Configuration error in {component}: {reason}",
            {"component": component, "reason": reason},
        )
        self.component = component
        self.reason = reason


class UninitializedError(ShopgateError):
    """Raised when a request is issued before credentials were loaded."""

    def __init__(self, operation: str):
        super().__init__(
            "Shopify API not initialized. Call initialize() first.",
            {"operation": operation},
        )
        self.operation = operation


class CredentialError(ShopgateError):
    """Raised when credentials for a tenant cannot be resolved."""

    def __init__(self, user_id: str, reason: str):
        super().__init__(
            f"Failed to resolve Shopify credentials for {user_id}: {reason}",
            {"user_id": user_id, "reason": reason},
        )
        self.user_id = user_id
        self.reason = reason


# ============================================================================
# Request Errors
# ============================================================================


class RequestError(ShopgateError):
    """Base exception for failures of a single Admin API call."""

    pass


class RateLimitExhaustedError(RequestError):
    """Raised when HTTP 429 responses persist past the retry ceiling."""

    def __init__(self, endpoint: str, attempts: list[RetryAttempt], max_attempts: int):
        super().__init__(
            f"Max retry attempts reached for rate limited request to {endpoint}",
            {"endpoint": endpoint, "max_attempts": max_attempts},
        )
        self.endpoint = endpoint
        self.attempts = attempts
        self.max_attempts = max_attempts


class UpstreamError(RequestError):
    """Raised for a non-2xx, non-429 response from the Admin API."""

    def __init__(self, endpoint: str, status: int, reason: str = "", body: Any = None):
        message = f"Shopify API error: {status} {reason}".rstrip()
        if isinstance(body, dict):
            if body.get("errors"):
                message += f" - {json.dumps(body['errors'])}"
        elif body:
            message += f" - {body}"
        super().__init__(message, {"endpoint": endpoint, "status": status})
        self.endpoint = endpoint
        self.status = status
        self.reason = reason
        self.body = body


class GraphQLError(RequestError):
    """Raised when a successful GraphQL response carries an ``errors`` list."""

    def __init__(self, errors: list[Any]):
        messages = [
            str(err.get("message", err)) if isinstance(err, dict) else str(err) for err in errors
        ]
        super().__init__(f"GraphQL errors: {', '.join(messages)}", {"count": len(messages)})
        self.errors = errors
        self.messages = messages


class TransportError(RequestError):
    """Raised when no HTTP response was obtained (DNS, refused, timeout)."""

    def __init__(self, endpoint: str, reason: str):
        super().__init__(
            f"Shopify API request to {endpoint} failed: {reason}",
            {"endpoint": endpoint, "reason": reason},
        )
        self.endpoint = endpoint
        self.reason = reason


class RequestCancelledError(RequestError):
    """Raised when the caller's cancel event fires during a wait."""

    def __init__(self, request_id: str, stage: str):
        super().__init__(
            f"Request {request_id} cancelled during {stage}",
            {"request_id": request_id, "stage": stage},
        )
        self.request_id = request_id
        self.stage = stage


__all__ = [
    "ShopgateError",
    "ConfigurationError",
    "UninitializedError",
    "CredentialError",
    "RequestError",
    "RateLimitExhaustedError",
    "UpstreamError",
    "GraphQLError",
    "TransportError",
    "RequestCancelledError",
]
