"""
Encryption utilities for stored connection credentials
"""
from cryptography.fernet import Fernet, InvalidToken
from typing import Optional
import os

from querypilot.config import settings


def get_or_create_encryption_key() -> bytes:
    """Get the configured key, or read/create the key file."""
    if settings.ENCRYPTION_KEY:
        return settings.ENCRYPTION_KEY.encode()

    key_file = settings.ENCRYPTION_KEY_FILE
    if os.path.exists(key_file):
        with open(key_file, "rb") as f:
            return f.read().strip()

    # Generate new key
    key = Fernet.generate_key()
    directory = os.path.dirname(key_file)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(key_file, "wb") as f:
        f.write(key)

    return key


_cipher: Optional[Fernet] = None


def _get_cipher() -> Fernet:
    global _cipher
    if _cipher is None:
        _cipher = Fernet(get_or_create_encryption_key())
    return _cipher


def encrypt_value(value: Optional[str]) -> Optional[str]:
    """Encrypt a string value."""
    if not value:
        return None
    return _get_cipher().encrypt(value.encode()).decode()


def decrypt_value(encrypted_value: Optional[str]) -> Optional[str]:
    """Decrypt an encrypted string value."""
    if not encrypted_value:
        return None
    try:
        return _get_cipher().decrypt(encrypted_value.encode()).decode()
    except InvalidToken as e:
        raise ValueError("Stored credential cannot be decrypted with the current key") from e
