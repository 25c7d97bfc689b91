"""Password hashing, password policy, and JWT creation/verification."""

import re
import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from warden.core.errors import ValidationFailedError

# Min/max lengths for name, email and password validation.
NAME_MIN_LEN = 1
NAME_MAX_LEN = 255
EMAIL_MAX_LEN = 255
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128

# bcrypt only looks at the first 72 bytes of input.
BCRYPT_MAX_BYTES = 72

_LOWER = re.compile(r"[a-z]")
_UPPER = re.compile(r"[A-Z]")
_DIGIT = re.compile(r"\d")


def password_policy_violation(plain_password: str) -> str | None:
    """Return a human-readable reason the password is rejected, or None if it is acceptable."""
    if not (PASSWORD_MIN_LEN <= len(plain_password) <= PASSWORD_MAX_LEN):
        return f"The password must be between {PASSWORD_MIN_LEN} and {PASSWORD_MAX_LEN} characters."
    if not (
        _LOWER.search(plain_password)
        and _UPPER.search(plain_password)
        and _DIGIT.search(plain_password)
    ):
        return (
            "The password must contain at least one lowercase letter, "
            "one uppercase letter and one number."
        )
    return None


def validate_password_strength(plain_password: str) -> None:
    """Raise ValidationFailedError if the password does not meet the policy."""
    reason = password_policy_violation(plain_password)
    if reason is not None:
        raise ValidationFailedError(reason)


def normalize_email(email: str) -> str:
    """Emails are unique case-insensitively; store and compare the lower-cased form."""
    return email.strip().lower()


def hash_password(plain_password: str, rounds: int = 12) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash. Malformed hashes verify as False."""
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError, AttributeError):
        return False


def create_access_token(
    sub: str | int,
    secret: str,
    algorithm: str,
    expire_minutes: int,
) -> tuple[str, str, datetime]:
    """
    Create a JWT access token with sub, jti, iat and exp.

    Returns (token, jti, expires_at). The jti identifies this token for revocation.
    """
    now = datetime.now(UTC)
    expire = now + timedelta(minutes=expire_minutes)
    jti = uuid.uuid4().hex
    payload: dict[str, Any] = {
        "sub": str(sub),
        "jti": jti,
        "exp": expire,
        "iat": now,
    }
    token = jwt.encode(payload, secret, algorithm=algorithm)
    return token, jti, expire


def decode_access_token(token: str, secret: str, algorithm: str) -> dict[str, Any]:
    """
    Decode and validate JWT; return payload (sub, jti, exp, iat).
    Raises jwt.PyJWTError on invalid or expired token.
    """
    return jwt.decode(
        token,
        secret,
        algorithms=[algorithm],
        options={"require": ["sub", "jti", "exp"]},
    )
