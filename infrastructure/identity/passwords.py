"""Credential helpers. Password hashes are stored as ``pbkdf2_sha256$iterations$salt$digest``.

Hashing is CPU-bound; the session gates call these helpers through
``asyncio.to_thread`` so a login never blocks the event loop.
"""

import hashlib
import hmac
import re
import secrets

from domain.exceptions import ValidationError

_ALGORITHM = "pbkdf2_sha256"
_ITERATIONS = 600_000


def hash_password(password: str, *, iterations: int | None = None) -> str:
    iterations = iterations or _ITERATIONS
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("ascii"), iterations)
    return f"{_ALGORITHM}${iterations}${salt}${digest.hex()}"


def verify_password(password: str, encoded: str | None, *, iterations: int | None = None) -> bool:
    """Check ``password`` against a stored hash.

    With no stored hash (unknown account) a throwaway hash is still computed, so
    the call costs the same as a real check and always returns False.
    """
    if encoded is None:
        hash_password(password, iterations=iterations)
        return False
    try:
        algorithm, rounds, salt, expected = encoded.split("$")
        rounds_count = int(rounds)
    except ValueError:
        return False
    if algorithm != _ALGORITHM:
        return False
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("ascii"), rounds_count)
    return hmac.compare_digest(digest.hex(), expected)


def new_session_token() -> str:
    return secrets.token_urlsafe(32)


def token_digest(token: str) -> str:
    """Sessions are looked up by this digest so raw tokens are never persisted."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 8


def validate_credentials(email: str, password: str) -> str:
    """Return the normalised email, or raise ValidationError."""
    normalized = email.strip().lower()
    if not _EMAIL_PATTERN.match(normalized):
        msg = f"Invalid email address: {email!r}"
        raise ValidationError(msg)
    if len(password) < MIN_PASSWORD_LENGTH:
        msg = f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        raise ValidationError(msg)
    return normalized
