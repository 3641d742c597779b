from __future__ import annotations

import hashlib
import hmac
import re
import secrets
import string

from .errors import HashingError

__all__ = [
    "ID_LENGTH",
    "hash_password",
    "passwords_match",
    "random_id",
    "is_record_id",
]

ID_LENGTH = 20
_ID_ALPHABET = string.ascii_lowercase + string.digits
_ID_RE = re.compile(rf"[a-z0-9]{{{ID_LENGTH}}}")


def hash_password(password: str, secret: str) -> str:
    """Return the HMAC-SHA256 hex digest of ``password`` keyed by ``secret``.

    Raises:
        HashingError: if the password is not a non-empty string after trimming.
    """
    if not isinstance(password, str) or not password.strip():
        raise HashingError()
    return hmac.new(secret.encode("utf-8"), password.encode("utf-8"), hashlib.sha256).hexdigest()


def passwords_match(password: str, hashed: str, secret: str) -> bool:
    """Constant-time comparison of ``password`` against a stored digest."""
    try:
        candidate = hash_password(password, secret)
    except HashingError:
        return False
    return hmac.compare_digest(candidate, hashed)


def random_id(length: int = ID_LENGTH) -> str:
    """Return a random lowercase alphanumeric string (tokens, check ids)."""
    if length <= 0:
        raise ValueError("length must be positive")
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))


def is_record_id(value: object) -> bool:
    return isinstance(value, str) and bool(_ID_RE.fullmatch(value))
