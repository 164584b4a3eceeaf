"""
Caller authentication strategies

Each strategy turns an inbound alert into the exchange credentials to sign
with, plus the in-body token the alert text must carry (if any):

- shared: one set of credentials from settings, no per-caller secret
- token:  per-caller credentials looked up by the token in the alert URL
- body:   shared credentials, caller proves itself with a token in the alert text
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from alert_relay.config import Settings
from alert_relay.exceptions import AuthenticationError, ConfigurationError
from alert_relay.models import Credentials
from alert_relay.order_parser import expand_pattern
from alert_relay.services.secret_store import JsonFileSecretStore, SecretStore

logger = logging.getLogger(__name__)

# Base32 alphabet, 48-96 characters
URL_TOKEN_RE = re.compile(r"^[A-Z2-7]{48,96}$")


@dataclass(frozen=True)
class AuthContext:
    credentials: Credentials
    expected_token: Optional[str] = None


class Authenticator:
    """Resolves the credentials for one inbound alert"""

    mode = ""

    async def authenticate(self, url_token: Optional[str] = None) -> AuthContext:
        raise NotImplementedError


def _shared_credentials(settings: Settings) -> Credentials:
    if not settings.exchange_api_key or not settings.exchange_api_secret:
        raise ConfigurationError("Missing exchange API credentials (RELAY_EXCHANGE_API_KEY / RELAY_EXCHANGE_API_SECRET)")
    return Credentials(
        api_key=settings.exchange_api_key,
        secret=settings.exchange_api_secret,
        sub_account=settings.exchange_subaccount or None,
    )


class SharedConfigAuthenticator(Authenticator):
    mode = "shared"

    def __init__(self, settings: Settings):
        self.settings = settings

    async def authenticate(self, url_token: Optional[str] = None) -> AuthContext:
        return AuthContext(credentials=_shared_credentials(self.settings))


def _has_token_group(pattern: str) -> bool:
    try:
        return "token" in re.compile(expand_pattern(pattern)).groupindex
    except re.error:
        return False


class BodyTokenAuthenticator(Authenticator):
    mode = "body"

    def __init__(self, settings: Settings):
        self.settings = settings

    async def authenticate(self, url_token: Optional[str] = None) -> AuthContext:
        if not self.settings.alert_token:
            raise ConfigurationError("auth_mode=body requires RELAY_ALERT_TOKEN")
        if not _has_token_group(self.settings.alert_pattern):
            raise ConfigurationError("auth_mode=body requires a {token} group in RELAY_ALERT_PATTERN")
        return AuthContext(
            credentials=_shared_credentials(self.settings),
            expected_token=self.settings.alert_token,
        )


class TokenLookupAuthenticator(Authenticator):
    mode = "token"

    def __init__(self, store: Optional[SecretStore]):
        self.store = store

    async def authenticate(self, url_token: Optional[str] = None) -> AuthContext:
        if self.store is None:
            raise ConfigurationError("auth_mode=token requires a secret store (RELAY_SECRET_STORE_PATH)")
        if not url_token or not URL_TOKEN_RE.match(url_token):
            raise AuthenticationError("Missing or malformed alert token")

        credentials = await self.store.get_credentials(url_token)
        if credentials is None:
            logger.warning(f"Unknown alert token {url_token[:6]}...")
            raise AuthenticationError("Unknown alert token")
        return AuthContext(credentials=credentials)


def build_authenticator(settings: Settings, store: Optional[SecretStore] = None) -> Authenticator:
    """Pick the strategy named by settings.auth_mode"""
    if settings.auth_mode == "shared":
        return SharedConfigAuthenticator(settings)
    if settings.auth_mode == "body":
        return BodyTokenAuthenticator(settings)
    if store is None and settings.secret_store_path:
        store = JsonFileSecretStore(settings.secret_store_path, settings.encryption_key)
    return TokenLookupAuthenticator(store)
