"""
Secret store - URL token -> exchange credentials

Records are "apiKey:secret" or "apiKey:secret:subAccount". Lookups are not
cached; every request reads the store so rotated credentials take effect
immediately.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Dict, Optional

from alert_relay.encryption import decrypt_value, is_encrypted
from alert_relay.exceptions import ConfigurationError
from alert_relay.models import Credentials

logger = logging.getLogger(__name__)


def parse_secret_record(record: str) -> Credentials:
    """
    Split a colon-delimited secret record into Credentials.

    Raises:
        ConfigurationError: record does not have 2 or 3 non-empty leading parts
    """
    parts = record.strip().split(":") if record else []
    if len(parts) not in (2, 3) or not parts[0] or not parts[1]:
        raise ConfigurationError("Secret record must be 'apiKey:secret' or 'apiKey:secret:subAccount'")
    sub_account = parts[2] if len(parts) == 3 and parts[2] else None
    return Credentials(api_key=parts[0], secret=parts[1], sub_account=sub_account)


class SecretStore:
    """Base class: resolves an opaque token to a raw secret record"""

    async def get(self, token: str) -> Optional[str]:
        raise NotImplementedError

    async def get_credentials(self, token: str) -> Optional[Credentials]:
        """Look up and parse a token's record (None if the token is unknown)"""
        record = await self.get(token)
        if record is None:
            return None
        return parse_secret_record(record)


class DictSecretStore(SecretStore):
    """In-memory store, mainly for tests and single-tenant setups"""

    def __init__(self, records: Dict[str, str]):
        self._records = dict(records)

    async def get(self, token: str) -> Optional[str]:
        return self._records.get(token)


class JsonFileSecretStore(SecretStore):
    """
    JSON file store: {"<token>": "apiKey:secret[:subAccount]", ...}

    Values may be Fernet-encrypted (see alert_relay.encryption).
    """

    def __init__(self, path: str, encryption_key: str = ""):
        self.path = Path(path)
        self.encryption_key = encryption_key

    def _load(self) -> Dict[str, str]:
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except FileNotFoundError:
            raise ConfigurationError(f"Secret store file not found: {self.path}")
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Secret store file is not valid JSON: {e}")
        if not isinstance(data, dict):
            raise ConfigurationError("Secret store file must contain a JSON object")
        return data

    async def get(self, token: str) -> Optional[str]:
        data = await asyncio.to_thread(self._load)
        record = data.get(token)
        if record is None:
            return None
        if not isinstance(record, str):
            raise ConfigurationError("Secret store records must be strings")
        if is_encrypted(record):
            return decrypt_value(record, self.encryption_key)
        return record
