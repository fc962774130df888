"""
security/encryption.py
----------------------
Symmetric encryption for bank account numbers stored at rest.
Uses a Fernet key taken from ENCRYPTION_KEY in the environment.
"""

from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from config import ENCRYPTION_KEY
from utils.exceptions import DecryptionError
from utils.logger import get_logger

logger = get_logger(__name__)


def _get_fernet() -> Fernet:
    """
    Build a Fernet instance from the configured key.

    Raises:
        RuntimeError: If ENCRYPTION_KEY is missing or not a valid Fernet key.
    """
    if not ENCRYPTION_KEY:
        raise RuntimeError("ENCRYPTION_KEY is not set. Generate one with Fernet.generate_key().")
    try:
        return Fernet(ENCRYPTION_KEY.encode())
    except (ValueError, TypeError) as e:
        raise RuntimeError(f"ENCRYPTION_KEY is not a valid Fernet key: {e}") from e


def encrypt(plaintext: str) -> str:
    """Encrypt an account number and return the token as text."""
    return _get_fernet().encrypt(plaintext.encode()).decode()


def decrypt(token: Optional[str]) -> Optional[str]:
    """
    Decrypt a stored account number.

    Args:
        token: The Fernet token read from ``account_number_encrypted``.

    Returns:
        The plaintext number, or None if nothing was stored.

    Raises:
        DecryptionError: If the token is malformed or was encrypted with another key.
    """
    if token is None:
        return None
    try:
        return _get_fernet().decrypt(token.encode()).decode()
    except InvalidToken as e:
        logger.error("Failed to decrypt account number: invalid token or wrong key")
        raise DecryptionError("Stored account number could not be decrypted") from e


def mask_account_number(number: Optional[str], visible: int = 4) -> Optional[str]:
    """Replace all but the last `visible` characters with '*'."""
    if not number:
        return number
    if len(number) <= visible:
        return number
    return "*" * (len(number) - visible) + number[-visible:]
