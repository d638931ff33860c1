"""Tests for gateway configuration."""

import os
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from shopgate.config import (
    DEFAULT_API_VERSION,
    GatewayConfig,
    current_api_version,
    get_gateway_config,
)


class TestGatewayConfig:
    """Tests for GatewayConfig dataclass."""

    def test_default_values(self):
        """Config defaults match Shopify's REST pacing."""
        config = GatewayConfig()
        assert config.api_version == DEFAULT_API_VERSION == "2024-01"
        assert config.min_dispatch_interval_ms == 250
        assert config.max_retries == 3
        assert config.default_retry_after_seconds == 2
        assert config.queue_threshold == 1
        assert config.cost_warning_threshold == 1000
        assert config.request_timeout_seconds == 30.0

    def test_interval_in_seconds(self):
        assert GatewayConfig(min_dispatch_interval_ms=500).min_dispatch_interval_seconds == 0.5

    def test_is_frozen(self):
        config = GatewayConfig()
        with pytest.raises(AttributeError):
            config.max_retries = 10

    @pytest.mark.parametrize(
        "kwargs,message",
        [
            ({"api_version": ""}, "api_version must not be empty"),
            ({"min_dispatch_interval_ms": -1}, "min_dispatch_interval_ms must be non-negative"),
            ({"max_retries": 0}, "max_retries must be at least 1"),
            ({"default_retry_after_seconds": -1}, "default_retry_after_seconds must be non-negative"),
            ({"queue_threshold": -1}, "queue_threshold must be non-negative"),
            ({"request_timeout_seconds": 0}, "request_timeout_seconds must be positive"),
        ],
    )
    def test_validation(self, kwargs, message):
        with pytest.raises(ValueError, match=message):
            GatewayConfig(**kwargs)

    def test_with_overrides(self):
        """with_overrides returns a new config and keeps the rest."""
        original = GatewayConfig(queue_threshold=3)
        updated = original.with_overrides(api_version="2024-04", max_retries=5)
        assert updated.api_version == "2024-04"
        assert updated.max_retries == 5
        assert updated.queue_threshold == 3
        assert original.max_retries == 3


class TestGetGatewayConfig:
    """Tests for environment overrides."""

    def test_no_env_returns_base(self):
        base = GatewayConfig(max_retries=4)
        with patch.dict(os.environ, {}, clear=True):
            assert get_gateway_config(base) is base

    def test_env_overrides(self):
        env = {
            "SHOPGATE_API_VERSION": "2024-07",
            "SHOPGATE_MIN_DISPATCH_INTERVAL_MS": "500",
            "SHOPGATE_MAX_RETRIES": "5",
            "SHOPGATE_REQUEST_TIMEOUT_SECONDS": "12.5",
        }
        with patch.dict(os.environ, env, clear=True):
            config = get_gateway_config()
        assert config.api_version == "2024-07"
        assert config.min_dispatch_interval_ms == 500
        assert config.max_retries == 5
        assert config.request_timeout_seconds == 12.5

    def test_invalid_env_values_ignored(self):
        with patch.dict(os.environ, {"SHOPGATE_MAX_RETRIES": "lots"}, clear=True):
            assert get_gateway_config().max_retries == 3


class TestCurrentApiVersion:
    @pytest.mark.parametrize(
        "month,expected",
        [(1, "2025-01"), (3, "2025-01"), (4, "2025-04"), (8, "2025-07"), (12, "2025-10")],
    )
    def test_quarter_start(self, month, expected):
        assert current_api_version(datetime(2025, month, 15, tzinfo=timezone.utc)) == expected
