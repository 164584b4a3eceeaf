"""Custom middleware for the relay application"""

from .ip_allowlist import IPAllowlistMiddleware

__all__ = ["IPAllowlistMiddleware"]
