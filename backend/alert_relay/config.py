from typing import Dict, List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings

DEFAULT_ALERT_PATTERN = r"{ticker}\s+{side}\s+{size}(?:\s*@\s*{price})?"


class Settings(BaseSettings):
    # Exchange REST API
    exchange_base_url: str = "https://ftx.com"
    request_timeout_seconds: float = 30.0

    # Shared credentials ("shared" and "body" auth modes)
    exchange_api_key: str = ""
    exchange_api_secret: str = ""
    exchange_subaccount: str = ""

    # Caller authentication
    # Options: shared, token, body
    auth_mode: str = "token"
    alert_token: str = ""  # Shared secret carried inside the alert text ("body" mode)
    secret_store_path: str = ""  # JSON file mapping URL token -> "apiKey:secret[:subAccount]"
    encryption_key: str = ""  # Fernet key for encrypted secret store records

    # Caller IP allow-list (None disables the check)
    allowed_ips: Optional[List[str]] = None
    client_ip_header: str = "CF-Connecting-IP"

    # Exchange API whitelist: {"/api/orders": {"methods": ["POST"]}}
    api_whitelist: Optional[Dict[str, Dict[str, List[str]]]] = None

    # Alert parsing
    alert_pattern: str = DEFAULT_ALERT_PATTERN

    # Retry behaviour on upstream 5xx
    max_retries: int = 3
    cooldown_seconds: float = 1.0

    # Metrics sink (empty disables emission)
    metrics_url: str = ""
    metrics_broker: str = "ftx"

    # Generic whitelisted API proxy endpoint (POST /proxy)
    proxy_enabled: bool = False

    log_level: str = "INFO"

    @field_validator("auth_mode")
    @classmethod
    def normalize_auth_mode(cls, v: str) -> str:
        """Accept any casing, reject unknown modes early"""
        mode = v.strip().lower()
        if mode not in ("shared", "token", "body"):
            raise ValueError(f"auth_mode must be one of shared, token, body (got {v!r})")
        return mode

    @field_validator("exchange_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    def is_path_whitelisted(self, path: str, method: str) -> bool:
        """True when the exchange API path allows the given method"""
        entry = (self.api_whitelist or {}).get(path)
        if not entry:
            return False
        return method.upper() in [m.upper() for m in entry.get("methods", [])]

    class Config:
        env_file = ".env"
        env_prefix = "RELAY_"
        case_sensitive = False


settings = Settings()
