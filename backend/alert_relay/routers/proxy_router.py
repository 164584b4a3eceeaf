"""
Proxy Router - relay a whitelisted exchange API call described in JSON

POST /proxy
    {"path": "/api/orders", "method": "POST", "body": {...},
     "apiKey": "...", "secret": "...", "subAccount": "..."}

Credentials default to the shared exchange credentials from settings. Only
paths/methods present in the API whitelist are relayed.
"""

import json
import logging
import uuid
from typing import Any, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from alert_relay.config import Settings
from alert_relay.exceptions import ConfigurationError, ValidationError
from alert_relay.exchange_api.relay import RelayExecutor
from alert_relay.models import Credentials
from alert_relay.routers.dependencies import get_executor, get_settings, require_whitelisted

logger = logging.getLogger(__name__)

router = APIRouter(tags=["proxy"])

ALLOWED_METHODS = ("GET", "POST", "DELETE")


class ProxyRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    path: Optional[str] = None
    method: Optional[str] = None
    body: Optional[Any] = None
    api_key: Optional[str] = Field(None, alias="apiKey")
    secret: Optional[str] = None
    sub_account: Optional[str] = Field(None, alias="subAccount")


def resolve_proxy_credentials(proxy: ProxyRequest, settings: Settings) -> Credentials:
    """Request-supplied credentials, falling back to the shared ones"""
    api_key = proxy.api_key or settings.exchange_api_key
    secret = proxy.secret or settings.exchange_api_secret
    if not api_key or not secret:
        raise ValidationError("Missing exchange API authentication credentials")
    return Credentials(
        api_key=api_key,
        secret=secret,
        sub_account=proxy.sub_account or settings.exchange_subaccount or None,
    )


@router.post("/proxy")
async def proxy_request(
    request: Request,
    settings: Settings = Depends(get_settings),
    executor: RelayExecutor = Depends(get_executor),
):
    """Relay one whitelisted exchange API call"""
    request_id = uuid.uuid4().hex[:8]

    if settings.api_whitelist is None:
        raise ConfigurationError("RELAY_API_WHITELIST not defined or not valid JSON")

    try:
        payload = json.loads(await request.body() or b"null")
        if not isinstance(payload, dict):
            raise ValueError("expected a JSON object")
        proxy = ProxyRequest.model_validate(payload)
    except (ValueError, PydanticValidationError) as e:
        logger.warning(f"[{request_id}] Proxy request body is not valid: {e}")
        raise ValidationError("Request body is not a valid JSON object")

    credentials = resolve_proxy_credentials(proxy, settings)

    if not proxy.path or not proxy.path.startswith("/api/"):
        raise ValidationError("Missing or invalid exchange API path")
    method = (proxy.method or "GET").upper()
    if method not in ALLOWED_METHODS:
        raise ValidationError(f"Invalid exchange API method: {method}")
    if method == "POST" and not proxy.body:
        raise ValidationError("Missing body for exchange POST request")

    require_whitelisted(settings, proxy.path, method)

    body = json.dumps(proxy.body) if proxy.body else ""
    outcome = await executor.relay(credentials, method, proxy.path, body, request_id=request_id)
    return Response(content=outcome.body, status_code=outcome.status, media_type="application/json")
