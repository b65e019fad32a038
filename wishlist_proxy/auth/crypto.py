"""Encryption of shop access credentials at rest."""

import base64
import hashlib
import os

from cryptography.fernet import Fernet, InvalidToken


def _fernet() -> Fernet:
    """Cipher keyed by ENCRYPTION_KEY, or by a key stretched from JWT_SECRET."""
    configured = os.getenv("ENCRYPTION_KEY")
    if configured:
        return Fernet(configured.encode())

    digest = hashlib.sha256(os.getenv("JWT_SECRET", "").encode()).digest()
    return Fernet(base64.urlsafe_b64encode(digest))


def encrypt_token(plaintext: str) -> str:
    """Encrypt a shop access credential for storage."""
    if not plaintext:
        return ""
    return _fernet().encrypt(plaintext.encode()).decode()


def decrypt_token(ciphertext: str) -> str | None:
    """Decrypt a stored credential, or None if it cannot be decrypted.

    The lazily-created placeholder credential is not encrypted and
    therefore also decrypts to None.
    """
    if not ciphertext:
        return None
    try:
        return _fernet().decrypt(ciphertext.encode()).decode()
    except InvalidToken:
        return None
