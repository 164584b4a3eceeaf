"""Middleware rejecting callers whose IP is not on the allow-list"""
import logging
from typing import Iterable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

logger = logging.getLogger(__name__)

EXEMPT_PATHS = {"/health"}


def get_client_ip(request: Request, header_name: str) -> str:
    """Caller IP from the proxy header, falling back to the socket peer"""
    forwarded = request.headers.get(header_name) if header_name else None
    if forwarded:
        return forwarded.strip()
    return request.client.host if request.client else "unknown"


class IPAllowlistMiddleware(BaseHTTPMiddleware):
    """401 for callers not in allowed_ips. A None allow-list disables the check."""

    def __init__(self, app, allowed_ips: Optional[Iterable[str]] = None, header_name: str = "CF-Connecting-IP"):
        super().__init__(app)
        self.allowed_ips = set(allowed_ips) if allowed_ips is not None else None
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next):
        if self.allowed_ips is None or request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        client_ip = get_client_ip(request, self.header_name)
        if client_ip not in self.allowed_ips:
            logger.warning(f"Rejected request from non-allow-listed IP {client_ip}")
            return JSONResponse({"detail": "Caller IP not allowed"}, status_code=401)

        return await call_next(request)
