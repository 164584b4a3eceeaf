"""
Router dependencies

Everything a request needs (settings, executor, authenticator, emitter) is
built once in create_app() and hung off app.state. These helpers hand them to
endpoints via Depends().
"""

from typing import Optional

from fastapi import Request

from alert_relay.auth import Authenticator
from alert_relay.config import Settings
from alert_relay.exceptions import ConfigurationError, ForbiddenError
from alert_relay.exchange_api.relay import RelayExecutor
from alert_relay.services.metrics_service import MetricsEmitter


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_executor(request: Request) -> RelayExecutor:
    executor = getattr(request.app.state, "executor", None)
    if executor is None:
        raise ConfigurationError("Relay executor not initialized")
    return executor


def get_authenticator(request: Request) -> Authenticator:
    return request.app.state.authenticator


def get_metrics_emitter(request: Request) -> Optional[MetricsEmitter]:
    return getattr(request.app.state, "metrics_emitter", None)


def require_whitelisted(settings: Settings, path: str, method: str) -> None:
    """Raise unless the exchange API path/method is whitelisted

    Raises:
        ConfigurationError: no whitelist configured
        ForbiddenError: path or method not allowed
    """
    if settings.api_whitelist is None:
        raise ConfigurationError("RELAY_API_WHITELIST not defined or not valid JSON")
    if not settings.is_path_whitelisted(path, method):
        raise ForbiddenError(f"Exchange API method or path is not allowed: {method} {path}")
