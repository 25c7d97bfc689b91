"""Bearer token issue, resolution and revocation (JWT + persisted jti denylist)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import jwt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from warden.core.errors import InvalidTokenError
from warden.core.security import create_access_token, decode_access_token
from warden.models import RevokedToken

if TYPE_CHECKING:
    from warden.core.config import Settings


@dataclass(frozen=True)
class IssuedToken:
    """A freshly signed token and the identifiers needed to revoke it."""

    access_token: str
    jti: str
    expires_at: datetime
    token_type: str = "bearer"


@dataclass(frozen=True)
class TokenClaims:
    """Verified claims of a token that is signed, unexpired and not revoked."""

    user_id: int
    jti: str
    expires_at: datetime


def issue_token(user_id: int, settings: Settings) -> IssuedToken:
    """Sign a token for user_id that expires after JWT_EXPIRE_MINUTES."""
    token, jti, expires_at = create_access_token(
        sub=user_id,
        secret=settings.JWT_SECRET.get_secret_value(),
        algorithm=settings.JWT_ALGORITHM,
        expire_minutes=settings.JWT_EXPIRE_MINUTES,
    )
    return IssuedToken(access_token=token, jti=jti, expires_at=expires_at)


def _verify_signature(token: str, settings: Settings) -> TokenClaims:
    try:
        payload = decode_access_token(
            token,
            secret=settings.JWT_SECRET.get_secret_value(),
            algorithm=settings.JWT_ALGORITHM,
        )
    except jwt.ExpiredSignatureError as e:
        raise InvalidTokenError("Token has expired.") from e
    except jwt.PyJWTError as e:
        raise InvalidTokenError() from e
    try:
        user_id = int(payload["sub"])
        jti = str(payload["jti"])
        expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=UTC)
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidTokenError("Invalid token payload.") from e
    if not jti:
        raise InvalidTokenError("Invalid token payload.")
    return TokenClaims(user_id=user_id, jti=jti, expires_at=expires_at)


def is_revoked(session: Session, jti: str) -> bool:
    return (
        session.execute(select(RevokedToken.jti).where(RevokedToken.jti == jti)).first()
        is not None
    )


def resolve_token(session: Session, token: str, settings: Settings) -> TokenClaims:
    """
    Return the claims of a valid token.

    Raises InvalidTokenError if the signature does not verify, the token is
    expired, its claims are malformed, or its jti has been revoked.
    """
    if not token:
        raise InvalidTokenError()
    claims = _verify_signature(token, settings)
    if is_revoked(session, claims.jti):
        raise InvalidTokenError("Token has been revoked.")
    return claims


def invalidate_token(session: Session, token: str, settings: Settings) -> TokenClaims:
    """
    Revoke this one token; other tokens of the same user stay valid.

    An already expired or revoked token fails with InvalidTokenError. Commits.
    """
    claims = resolve_token(session, token, settings)
    session.add(
        RevokedToken(
            jti=claims.jti,
            user_id=claims.user_id,
            expires_at=claims.expires_at,
        )
    )
    try:
        session.commit()
    except IntegrityError as e:
        # Another request revoked the same token between our check and insert.
        session.rollback()
        raise InvalidTokenError("Token has been revoked.") from e
    return claims
