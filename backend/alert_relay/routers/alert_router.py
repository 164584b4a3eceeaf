"""
Alert Router - inbound trading alerts

POST /alert          (shared / body auth modes)
POST /alert/{token}  (token auth mode: token resolves to exchange credentials)

The alert body is free text. It is parsed into an order with the configured
pattern, signed and relayed to POST /api/orders. The exchange's status and
body are returned verbatim; retry exhaustion returns 504 with the last body.
"""

import logging
import time
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from alert_relay.auth import Authenticator
from alert_relay.config import Settings
from alert_relay.exceptions import ValidationError
from alert_relay.exchange_api.relay import ORDERS_PATH, RelayExecutor
from alert_relay.order_parser import parse_order
from alert_relay.routers.dependencies import (
    get_authenticator,
    get_executor,
    get_metrics_emitter,
    get_settings,
    require_whitelisted,
)
from alert_relay.services.metrics_service import MetricsEmitter

logger = logging.getLogger(__name__)

router = APIRouter(tags=["alerts"])


async def _read_alert_text(request: Request) -> str:
    raw = await request.body()
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        raise ValidationError("Alert body is not valid UTF-8 text")
    if not text.strip():
        raise ValidationError("Alert body is empty")
    return text


async def handle_alert(
    request: Request,
    url_token: Optional[str],
    settings: Settings,
    executor: RelayExecutor,
    authenticator: Authenticator,
    emitter: Optional[MetricsEmitter],
) -> Response:
    """Authenticate, parse, relay and (optionally) emit metrics for one alert"""
    request_id = uuid.uuid4().hex[:8]

    require_whitelisted(settings, ORDERS_PATH, "POST")
    auth = await authenticator.authenticate(url_token)

    text = await _read_alert_text(request)
    order = parse_order(settings.alert_pattern, text, auth.expected_token)
    if order is None:
        raise ValidationError("Alert could not be parsed into a valid order")

    logger.info(f"[{request_id}] Alert accepted ({authenticator.mode} auth): {order.side.value} {order.size} {order.market}")

    started_at = time.monotonic()
    outcome = await executor.relay_order(auth.credentials, order, request_id=request_id)

    # Exchange rejections (4xx) are not counted
    if outcome.succeeded and outcome.status < 400 and emitter is not None:
        await emitter.emit(order, started_at, request_id=request_id)

    return Response(content=outcome.body, status_code=outcome.status, media_type="application/json")


@router.post("/alert")
async def receive_alert(
    request: Request,
    settings: Settings = Depends(get_settings),
    executor: RelayExecutor = Depends(get_executor),
    authenticator: Authenticator = Depends(get_authenticator),
    emitter: Optional[MetricsEmitter] = Depends(get_metrics_emitter),
):
    """Relay an alert without a URL token"""
    return await handle_alert(request, None, settings, executor, authenticator, emitter)


@router.post("/alert/{token}")
async def receive_alert_with_token(
    token: str,
    request: Request,
    settings: Settings = Depends(get_settings),
    executor: RelayExecutor = Depends(get_executor),
    authenticator: Authenticator = Depends(get_authenticator),
    emitter: Optional[MetricsEmitter] = Depends(get_metrics_emitter),
):
    """Relay an alert authenticated by the token in the URL"""
    return await handle_alert(request, token, settings, executor, authenticator, emitter)
