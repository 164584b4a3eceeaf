"""
Request signing for the exchange REST API

Every authenticated call carries the API key, a millisecond timestamp and an
HMAC-SHA256 signature over timestamp + method + path + body. The timestamp is
taken when the headers are built, so each retry attempt must re-sign.
"""

import hashlib
import hmac
import time
from typing import Dict, Optional

from alert_relay.models import mask_value

KEY_HEADER = "FTX-KEY"
TIMESTAMP_HEADER = "FTX-TS"
SIGNATURE_HEADER = "FTX-SIGN"
SUBACCOUNT_HEADER = "FTX-SUBACCOUNT"

_SENSITIVE_HEADERS = {KEY_HEADER, SIGNATURE_HEADER, SUBACCOUNT_HEADER}


def current_timestamp_ms() -> int:
    """Wall clock in milliseconds since the epoch"""
    return int(time.time() * 1000)


def generate_hmac_signature(secret: str, timestamp: str, method: str, request_path: str, body: str = "") -> str:
    """
    Generate HMAC-SHA256 signature for an exchange API request

    Args:
        secret: API secret (HMAC key)
        timestamp: Millisecond timestamp as decimal string
        method: HTTP method
        request_path: API endpoint path
        body: Request body (empty for GET/DELETE)

    Returns:
        Lowercase hex digest
    """
    message = timestamp + method + request_path + body
    return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()


def generate_request_headers(
    api_key: str,
    secret: str,
    method: str,
    request_path: str,
    body: str = "",
    sub_account: Optional[str] = None,
    timestamp: Optional[int] = None,
) -> Dict[str, str]:
    """
    Build the authentication header set for one exchange call.

    Args:
        api_key: Exchange API key
        secret: Exchange API secret
        method: HTTP method
        request_path: API endpoint path
        body: Exact request body that will be sent
        sub_account: Optional sub-account name
        timestamp: Millisecond timestamp (defaults to now)

    Returns:
        Headers dict ready for httpx
    """
    ts = str(timestamp if timestamp is not None else current_timestamp_ms())
    headers = {
        "content-type": "application/json",
        KEY_HEADER: api_key,
        TIMESTAMP_HEADER: ts,
        SIGNATURE_HEADER: generate_hmac_signature(secret, ts, method, request_path, body),
    }
    if sub_account:
        headers[SUBACCOUNT_HEADER] = sub_account
    return headers


def redact_headers(headers: Dict[str, str]) -> Dict[str, str]:
    """Copy of headers safe for logging (key, signature and sub-account masked)"""
    return {
        name: ("***" if name == SIGNATURE_HEADER else mask_value(value)) if name in _SENSITIVE_HEADERS else value
        for name, value in headers.items()
    }
