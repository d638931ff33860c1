"""
Shared pytest fixtures for the shopgate test suite.

This module provides common fixtures used across multiple test files,
reducing duplication and ensuring consistent test setup. The aiohttp
doubles themselves live in tests/utils.py.
"""

import logging

import pytest

from shopgate.config import GatewayConfig
from shopgate.logging_config import JSONFormatter, TextFormatter


# ============================================================================
# Test Tier Configuration
# ============================================================================


def pytest_configure(config):
    """Register custom pytest markers for test tiers.

    Usage:
        @pytest.mark.unit
        def test_parse_header():
            ...

        @pytest.mark.slow
        def test_dispatch_pacing():
            ...
    """
    config.addinivalue_line("markers", "unit: isolated unit tests with no external dependencies")
    config.addinivalue_line("markers", "slow: tests that wait on real timers")
    config.addinivalue_line(
        "markers", "network: tests requiring a live shop (skip with -m 'not network')"
    )


# ============================================================================
# Global Test Setup
# ============================================================================


@pytest.fixture(autouse=True)
def reset_logging_state():
    """Undo logger tweaks made by configure_logging()."""
    root = logging.getLogger()
    saved_level = root.level
    yield
    for handler in root.handlers[:]:
        if isinstance(handler.formatter, (JSONFormatter, TextFormatter)):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(saved_level)
    shopgate_logger = logging.getLogger("shopgate")
    shopgate_logger.setLevel(logging.NOTSET)
    shopgate_logger.propagate = True


@pytest.fixture
def fast_config() -> GatewayConfig:
    """Gateway config with a short dispatch interval for queue tests."""
    return GatewayConfig(min_dispatch_interval_ms=10)
