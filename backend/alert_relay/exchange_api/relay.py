"""
Order relay to the exchange REST API

RelayExecutor signs and sends one call, retrying on 5xx responses at a fixed
cadence until the attempt budget runs out:

    ATTEMPTING(1) -> ... -> ATTEMPTING(max_retries)
         |  status < 500                |  status >= 500 on last attempt
         v                              v
     SUCCEEDED (status, body)        EXHAUSTED (504, last body)

4xx responses are the exchange rejecting the order. They are terminal and
passed through verbatim, never retried.
"""

import asyncio
import json
import logging
import time
from typing import Optional

import httpx

from alert_relay.exchange_api.auth import generate_request_headers, redact_headers
from alert_relay.models import Credentials, Order, RelayOutcome, RelayState

logger = logging.getLogger(__name__)

ORDERS_PATH = "/api/orders"
MIN_COOLDOWN_SECONDS = 1.0
EXHAUSTED_STATUS = 504


class RelayExecutor:
    """Signs, sends and retries a single exchange call"""

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        max_retries: int = 3,
        cooldown_seconds: float = 1.0,
    ):
        self.client = client
        self.base_url = base_url.rstrip("/")
        if max_retries <= 0:
            logger.warning(f"max_retries={max_retries} is not positive, using a single attempt")
        self.max_retries = max(max_retries, 1)
        self.cooldown_seconds = max(cooldown_seconds, MIN_COOLDOWN_SECONDS)

    async def relay_order(self, credentials: Credentials, order: Order, request_id: str = "-") -> RelayOutcome:
        """Submit an order via POST /api/orders"""
        body = json.dumps(order.to_payload())
        logger.info(
            f"[{request_id}] Relaying {order.type.value} {order.side.value} "
            f"{order.size} {order.market} @ {order.price or 'market'}"
        )
        return await self.relay(credentials, "POST", ORDERS_PATH, body, request_id=request_id)

    async def relay(
        self,
        credentials: Credentials,
        method: str,
        path: str,
        body: str = "",
        request_id: str = "-",
    ) -> RelayOutcome:
        """
        Send a signed call, retrying on server errors.

        Args:
            credentials: Exchange credentials for this call
            method: HTTP method
            path: API path (signed exactly as given)
            body: Exact request body (empty for none)
            request_id: Correlation id for log lines

        Returns:
            RelayOutcome - upstream status/body, or 504 with the last body
        """
        url = f"{self.base_url}{path}"
        started = time.monotonic()
        last_status: Optional[int] = None
        last_body = ""

        for attempt in range(1, self.max_retries + 1):
            # Fresh timestamp per attempt
            headers = generate_request_headers(
                credentials.api_key,
                credentials.secret,
                method,
                path,
                body,
                credentials.sub_account,
            )
            logger.debug(f"[{request_id}] {method} {path} attempt {attempt} headers={redact_headers(headers)}")

            try:
                # Non-streaming request: httpx reads the whole body before
                # returning, so the connection goes back to the pool
                response = await self.client.request(method, url, headers=headers, content=body or None)
                last_status = response.status_code
                last_body = response.text
            except httpx.TransportError as e:
                last_status = None
                last_body = ""
                logger.warning(f"[{request_id}] {method} {path} attempt {attempt}/{self.max_retries} failed: {e}")
            else:
                if last_status < 500:
                    elapsed_ms = (time.monotonic() - started) * 1000
                    logger.info(
                        f"[{request_id}] {method} {path} -> {last_status} "
                        f"(attempt {attempt}, {elapsed_ms:.0f}ms)"
                    )
                    return RelayOutcome(
                        status=last_status,
                        body=last_body,
                        attempts=attempt,
                        elapsed_ms=elapsed_ms,
                        state=RelayState.SUCCEEDED,
                    )
                logger.warning(
                    f"[{request_id}] {method} {path} -> {last_status} "
                    f"(attempt {attempt}/{self.max_retries})"
                )

            if attempt < self.max_retries:
                logger.warning(f"[{request_id}] Retrying in {self.cooldown_seconds:g}s")
                await asyncio.sleep(self.cooldown_seconds)

        elapsed_ms = (time.monotonic() - started) * 1000
        logger.error(
            f"[{request_id}] {method} {path} exhausted {self.max_retries} attempts "
            f"(last status {last_status})"
        )
        return RelayOutcome(
            status=EXHAUSTED_STATUS,
            body=last_body,
            attempts=self.max_retries,
            elapsed_ms=elapsed_ms,
            state=RelayState.EXHAUSTED,
        )
