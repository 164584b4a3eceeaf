"""
Encryption utilities for secret store records at rest.

Uses Fernet symmetric encryption (AES-128-CBC with HMAC-SHA256) so
"apiKey:secret" records can sit in the secret store file encrypted.
"""

import logging

from cryptography.fernet import Fernet, InvalidToken

from alert_relay.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _get_fernet(key: str) -> Fernet:
    if not key:
        raise ConfigurationError(
            "Encrypted secret store record found but RELAY_ENCRYPTION_KEY is not set"
        )
    try:
        return Fernet(key.encode() if isinstance(key, str) else key)
    except ValueError as e:
        raise ConfigurationError(f"RELAY_ENCRYPTION_KEY is not a valid Fernet key: {e}")


def generate_key() -> str:
    """Generate a new Fernet key for RELAY_ENCRYPTION_KEY"""
    return Fernet.generate_key().decode()


def encrypt_value(plaintext: str, key: str) -> str:
    """
    Encrypt a plaintext string and return the ciphertext as a string.

    Args:
        plaintext: The value to encrypt (e.g., an "apiKey:secret" record)
        key: Fernet key

    Returns:
        Encrypted string (Fernet token, starts with 'gAAAAA')
    """
    if not plaintext:
        return plaintext
    return _get_fernet(key).encrypt(plaintext.encode()).decode()


def decrypt_value(ciphertext: str, key: str) -> str:
    """
    Decrypt a ciphertext string and return the plaintext.

    Raises:
        ConfigurationError: missing key, or the record was encrypted with another key
    """
    if not ciphertext:
        return ciphertext
    try:
        return _get_fernet(key).decrypt(ciphertext.encode()).decode()
    except InvalidToken:
        logger.error("Failed to decrypt secret store record: invalid token or wrong encryption key")
        raise ConfigurationError("Secret store record could not be decrypted")


def is_encrypted(value: str) -> bool:
    """Check if a value appears to already be encrypted (Fernet tokens start with 'gAAAAA')."""
    if not value:
        return False
    return value.startswith("gAAAAA")
