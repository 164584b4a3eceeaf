"""
Shared test fixtures for the alert relay tests.

Provides reusable fixtures for:
- Settings records with test-friendly defaults
- Mock upstream responses
- Sample orders and credentials
"""

import pytest
from unittest.mock import MagicMock

from alert_relay.config import Settings
from alert_relay.models import Credentials, Order, OrderType, Side

# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture
def make_settings():
    """Factory for Settings that ignores .env and the process environment."""
    def _make(**overrides):
        values = {
            "exchange_base_url": "https://exchange.test",
            "exchange_api_key": "shared-key",
            "exchange_api_secret": "shared-secret",
            "auth_mode": "shared",
            "api_whitelist": {"/api/orders": {"methods": ["POST"]}},
            "max_retries": 3,
            "cooldown_seconds": 1,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)
    return _make


# ---------------------------------------------------------------------------
# Upstream responses
# ---------------------------------------------------------------------------


@pytest.fixture
def make_response():
    """Factory for mock httpx responses with a status and text body."""
    def _make(status_code, text=""):
        response = MagicMock()
        response.status_code = status_code
        response.text = text
        return response
    return _make


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------


@pytest.fixture
def market_order():
    return Order(market="BTC-PERP", side=Side.BUY, type=OrderType.MARKET, size=0.5)


@pytest.fixture
def limit_order():
    return Order(market="ETH/USD", side=Side.SELL, type=OrderType.LIMIT, size=2.0, price=1850.5)


@pytest.fixture
def credentials():
    return Credentials(api_key="test-key", secret="test-secret")
