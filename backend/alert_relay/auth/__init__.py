"""Caller authentication for inbound alerts"""

from .authenticators import (
    AuthContext,
    Authenticator,
    BodyTokenAuthenticator,
    SharedConfigAuthenticator,
    TokenLookupAuthenticator,
    build_authenticator,
)

__all__ = [
    "AuthContext",
    "Authenticator",
    "BodyTokenAuthenticator",
    "SharedConfigAuthenticator",
    "TokenLookupAuthenticator",
    "build_authenticator",
]
