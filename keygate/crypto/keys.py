"""Secret generation, at-rest encryption, and personal key comparison."""

import hmac
import secrets

from cryptography.fernet import Fernet

RANDOM_SECRET_BYTES = 48


def generate_secret(length: int = RANDOM_SECRET_BYTES) -> str:
    """Generate a random base64url secret from ``length`` random bytes."""
    return secrets.token_urlsafe(length)


def encrypt_secret(plain: str, fernet_key: str) -> str:
    """Encrypt a signing secret with Fernet for database storage."""
    cipher = Fernet(fernet_key.encode())
    return cipher.encrypt(plain.encode()).decode()


def decrypt_secret(encrypted: str, fernet_key: str) -> str:
    """Decrypt a Fernet-encrypted signing secret."""
    cipher = Fernet(fernet_key.encode())
    return cipher.decrypt(encrypted.encode()).decode()


def verify_personal_key(provided: str, stored: str | None) -> bool:
    """Compare a caller-supplied personal key with the stored one.

    Length is not treated as secret: a length mismatch returns immediately.
    Equal-length inputs are compared in constant time.
    """
    if not stored:
        return False
    provided_bytes = provided.encode()
    stored_bytes = stored.encode()
    if len(provided_bytes) != len(stored_bytes):
        return False
    return hmac.compare_digest(provided_bytes, stored_bytes)
