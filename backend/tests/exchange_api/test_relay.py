"""
Tests for backend/alert_relay/exchange_api/relay.py

Covers the RelayExecutor retry state machine: pass-through of <500
responses, fixed-interval retry on 5xx, exhaustion as 504, the one-second
cooldown floor, per-attempt re-signing and transport errors.
"""

import json

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from alert_relay.exchange_api.relay import ORDERS_PATH, RelayExecutor
from alert_relay.models import Credentials, RelayState


def _executor(client, max_retries=3, cooldown_seconds=1):
    return RelayExecutor(client, "https://exchange.test", max_retries=max_retries, cooldown_seconds=cooldown_seconds)


def _client(responses):
    client = AsyncMock()
    client.request.side_effect = responses
    return client


class TestRelayExecutorInit:
    """Tests for RelayExecutor configuration handling"""

    def test_cooldown_floor(self):
        """Cooldowns under one second are raised to one second."""
        assert _executor(AsyncMock(), cooldown_seconds=0).cooldown_seconds == 1.0
        assert _executor(AsyncMock(), cooldown_seconds=0.25).cooldown_seconds == 1.0

    def test_cooldown_above_floor_kept(self):
        assert _executor(AsyncMock(), cooldown_seconds=5).cooldown_seconds == 5

    @pytest.mark.parametrize("max_retries", [0, -3])
    def test_non_positive_max_retries_means_one_attempt(self, max_retries):
        """Edge case: max_retries <= 0 still sends one request."""
        assert _executor(AsyncMock(), max_retries=max_retries).max_retries == 1

    def test_base_url_trailing_slash_stripped(self):
        assert RelayExecutor(AsyncMock(), "https://exchange.test/").base_url == "https://exchange.test"


class TestRelay:
    """Tests for RelayExecutor.relay()"""

    @pytest.mark.asyncio
    async def test_success_first_attempt(self, credentials, make_response):
        """Happy path: 200 is returned verbatim after one attempt."""
        client = _client([make_response(200, '{"success": true}')])

        with patch("alert_relay.exchange_api.relay.asyncio") as mock_asyncio:
            mock_asyncio.sleep = AsyncMock()
            outcome = await _executor(client).relay(credentials, "POST", ORDERS_PATH, "{}")

        assert outcome.status == 200
        assert outcome.body == '{"success": true}'
        assert outcome.attempts == 1
        assert outcome.state == RelayState.SUCCEEDED
        mock_asyncio.sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_client_error_is_terminal(self, credentials, make_response):
        """4xx responses pass through and are never retried."""
        client = _client([make_response(400, '{"success": false, "error": "Not enough balances"}')])

        with patch("alert_relay.exchange_api.relay.asyncio") as mock_asyncio:
            mock_asyncio.sleep = AsyncMock()
            outcome = await _executor(client).relay(credentials, "POST", ORDERS_PATH, "{}")

        assert outcome.status == 400
        assert "Not enough balances" in outcome.body
        assert outcome.succeeded
        assert client.request.await_count == 1
        mock_asyncio.sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self, credentials, make_response):
        """503, 503, 200 with max_retries=3: two one-second sleeps, 200 returned."""
        client = _client([
            make_response(503, "unavailable"),
            make_response(503, "unavailable"),
            make_response(200, '{"result": {"id": 1}}'),
        ])

        with patch("alert_relay.exchange_api.relay.asyncio") as mock_asyncio:
            mock_asyncio.sleep = AsyncMock()
            outcome = await _executor(client, max_retries=3, cooldown_seconds=1).relay(
                credentials, "POST", ORDERS_PATH, "{}"
            )

        assert outcome.status == 200
        assert outcome.body == '{"result": {"id": 1}}'
        assert outcome.attempts == 3
        assert mock_asyncio.sleep.await_count == 2
        for call in mock_asyncio.sleep.await_args_list:
            assert call.args[0] >= 1.0

    @pytest.mark.asyncio
    async def test_exhausted_returns_504_with_last_body(self, credentials, make_response):
        """Every attempt 5xx: 504 carrying the last upstream body."""
        client = _client([
            make_response(500, "first"),
            make_response(502, "second"),
            make_response(500, "last"),
        ])

        with patch("alert_relay.exchange_api.relay.asyncio") as mock_asyncio:
            mock_asyncio.sleep = AsyncMock()
            outcome = await _executor(client, max_retries=3).relay(credentials, "POST", ORDERS_PATH, "{}")

        assert outcome.status == 504
        assert outcome.body == "last"
        assert outcome.state == RelayState.EXHAUSTED
        assert outcome.attempts == 3
        assert client.request.await_count == 3
        # No sleep after the final attempt
        assert mock_asyncio.sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_sub_one_second_cooldown_sleeps_one_second(self, credentials, make_response):
        """Configured cooldown below the floor sleeps for exactly one second."""
        client = _client([make_response(500), make_response(200, "ok")])

        with patch("alert_relay.exchange_api.relay.asyncio") as mock_asyncio:
            mock_asyncio.sleep = AsyncMock()
            await _executor(client, cooldown_seconds=0.1).relay(credentials, "POST", ORDERS_PATH, "{}")

        mock_asyncio.sleep.assert_awaited_once_with(1.0)

    @pytest.mark.asyncio
    async def test_single_attempt_when_max_retries_zero(self, credentials, make_response):
        """Edge case: max_retries=0 sends exactly one request."""
        client = _client([make_response(500, "down")])

        with patch("alert_relay.exchange_api.relay.asyncio") as mock_asyncio:
            mock_asyncio.sleep = AsyncMock()
            outcome = await _executor(client, max_retries=0).relay(credentials, "POST", ORDERS_PATH, "{}")

        assert outcome.status == 504
        assert outcome.body == "down"
        assert client.request.await_count == 1
        mock_asyncio.sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_each_attempt_is_resigned(self, credentials, make_response):
        """Every attempt gets a fresh timestamp and signature."""
        client = _client([make_response(503), make_response(200, "ok")])

        with patch("alert_relay.exchange_api.relay.asyncio") as mock_asyncio, \
                patch("alert_relay.exchange_api.auth.current_timestamp_ms", side_effect=[1000, 2000]):
            mock_asyncio.sleep = AsyncMock()
            await _executor(client).relay(credentials, "POST", ORDERS_PATH, "{}")

        first = client.request.await_args_list[0].kwargs["headers"]
        second = client.request.await_args_list[1].kwargs["headers"]
        assert first["FTX-TS"] == "1000"
        assert second["FTX-TS"] == "2000"
        assert first["FTX-SIGN"] != second["FTX-SIGN"]

    @pytest.mark.asyncio
    async def test_request_shape(self, make_response):
        """URL, method, body and sub-account header reach the client."""
        client = _client([make_response(200, "ok")])
        creds = Credentials(api_key="k", secret="s", sub_account="bot")

        await _executor(client).relay(creds, "POST", ORDERS_PATH, '{"a": 1}')

        call = client.request.await_args
        assert call.args == ("POST", "https://exchange.test/api/orders")
        assert call.kwargs["content"] == '{"a": 1}'
        assert call.kwargs["headers"]["FTX-KEY"] == "k"
        assert call.kwargs["headers"]["FTX-SUBACCOUNT"] == "bot"

    @pytest.mark.asyncio
    async def test_empty_body_sends_no_content(self, credentials, make_response):
        """GET without a body sends no content."""
        client = _client([make_response(200, "[]")])

        await _executor(client).relay(credentials, "GET", "/api/markets")

        assert client.request.await_args.kwargs["content"] is None

    @pytest.mark.asyncio
    async def test_transport_error_is_retried(self, credentials, make_response):
        """Connection failures count as failed attempts and are retried."""
        client = _client([
            httpx.ConnectError("connection refused", request=MagicMock()),
            make_response(200, "ok"),
        ])

        with patch("alert_relay.exchange_api.relay.asyncio") as mock_asyncio:
            mock_asyncio.sleep = AsyncMock()
            outcome = await _executor(client).relay(credentials, "POST", ORDERS_PATH, "{}")

        assert outcome.status == 200
        assert outcome.attempts == 2
        mock_asyncio.sleep.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_transport_errors_exhaust_with_empty_body(self, credentials):
        """Failure: only transport errors ends in 504 with an empty body."""
        client = _client([httpx.ReadTimeout("timed out", request=MagicMock())] * 2)

        with patch("alert_relay.exchange_api.relay.asyncio") as mock_asyncio:
            mock_asyncio.sleep = AsyncMock()
            outcome = await _executor(client, max_retries=2).relay(credentials, "POST", ORDERS_PATH, "{}")

        assert outcome.status == 504
        assert outcome.body == ""


class TestRelayOrder:
    """Tests for RelayExecutor.relay_order()"""

    @pytest.mark.asyncio
    async def test_posts_order_payload(self, credentials, limit_order, make_response):
        """Order is sent as JSON to POST /api/orders and signed over that body."""
        client = _client([make_response(200, '{"success": true}')])

        with patch("alert_relay.exchange_api.auth.current_timestamp_ms", return_value=1234):
            outcome = await _executor(client).relay_order(credentials, limit_order)

        assert outcome.status == 200
        call = client.request.await_args
        assert call.args == ("POST", "https://exchange.test/api/orders")
        body = call.kwargs["content"]
        assert json.loads(body) == {
            "market": "ETH/USD",
            "side": "sell",
            "price": 1850.5,
            "type": "limit",
            "size": 2.0,
        }

        from alert_relay.exchange_api.auth import generate_hmac_signature
        assert call.kwargs["headers"]["FTX-SIGN"] == generate_hmac_signature(
            "test-secret", "1234", "POST", "/api/orders", body
        )

    @pytest.mark.asyncio
    async def test_market_order_has_null_price(self, credentials, market_order, make_response):
        client = _client([make_response(200, "{}")])

        await _executor(client).relay_order(credentials, market_order)

        payload = json.loads(client.request.await_args.kwargs["content"])
        assert payload["price"] is None
        assert payload["type"] == "market"
