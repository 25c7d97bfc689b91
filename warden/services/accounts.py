"""
Account operations: register, login, logout, authenticate, list, update, delete.

Each operation runs as one unit of work: checks first, then the mutation, then
commit. Any failure rolls the session back so no partial change survives.
Failures are raised as warden.core.errors types; nothing here formats HTTP
responses.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from warden.core.errors import (
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
    ValidationFailedError,
)
from warden.core.security import (
    EMAIL_MAX_LEN,
    NAME_MAX_LEN,
    NAME_MIN_LEN,
    hash_password,
    normalize_email,
    validate_password_strength,
    verify_password,
)
from warden.models.role import USER_ROLE
from warden.services.lifecycle import authorize_deletion
from warden.services.policy import Action, Principal, require
from warden.services.store import UserRecord, UserStore
from warden.services.tokens import IssuedToken, invalidate_token, issue_token, resolve_token

if TYPE_CHECKING:
    from warden.core.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthResult:
    """User plus the token issued to them by register or login."""

    user: UserRecord
    token: IssuedToken


@contextmanager
def _unit_of_work(session: Session) -> Iterator[None]:
    try:
        yield
        session.commit()
    except Exception:
        session.rollback()
        raise


def _end_read_transaction(session: Session) -> None:
    # SQLite transactions hold the write lock from BEGIN; drop it before bcrypt work.
    if session.in_transaction() and not (session.new or session.dirty or session.deleted):
        session.rollback()


@lru_cache
def _dummy_hash(rounds: int) -> str:
    return hash_password("timing-equalizer", rounds=rounds)


def _validate_name(name: str) -> str:
    name = name.strip()
    if not (NAME_MIN_LEN <= len(name) <= NAME_MAX_LEN):
        raise ValidationFailedError("Invalid name length.")
    return name


def _validate_email(email: str) -> str:
    email = normalize_email(email)
    if not email or len(email) > EMAIL_MAX_LEN or "@" not in email:
        raise ValidationFailedError("Invalid email address.")
    return email


def register(
    session: Session,
    settings: Settings,
    name: str,
    email: str,
    password: str,
) -> AuthResult:
    """
    Create a user with the default User role and issue a token.

    The role is never taken from the caller. Raises ValidationFailedError,
    RoleSeedMissingError or DuplicateEmailError.
    """
    name = _validate_name(name)
    email = _validate_email(email)
    validate_password_strength(password)
    _end_read_transaction(session)
    password_hash = hash_password(password, rounds=settings.BCRYPT_ROUNDS)
    store = UserStore(session)
    with _unit_of_work(session):
        store.get_role(USER_ROLE)
        user = store.create(
            name=name,
            email=email,
            password_hash=password_hash,
            role=USER_ROLE,
        )
    logger.info("User registered", extra={"user_id": user.id})
    return AuthResult(user=user, token=issue_token(user.id, settings))


def login(session: Session, settings: Settings, email: str, password: str) -> AuthResult:
    """
    Verify credentials and issue a token.

    Unknown email and wrong password raise the same InvalidCredentialsError,
    and both paths run one bcrypt verification.
    """
    store = UserStore(session)
    try:
        user, password_hash = store.get_credentials(email)
    except NotFoundError:
        _end_read_transaction(session)
        verify_password(password, _dummy_hash(settings.BCRYPT_ROUNDS))
        raise InvalidCredentialsError() from None
    _end_read_transaction(session)
    if not verify_password(password, password_hash):
        raise InvalidCredentialsError()
    return AuthResult(user=user, token=issue_token(user.id, settings))


def logout(session: Session, settings: Settings, token: str) -> None:
    """Revoke token. Raises InvalidTokenError if it is already expired or revoked."""
    claims = invalidate_token(session, token, settings)
    logger.info("Token revoked", extra={"user_id": claims.user_id})


def authenticate(session: Session, settings: Settings, token: str) -> Principal:
    """Resolve a bearer token to the principal for this request."""
    claims = resolve_token(session, token, settings)
    try:
        user = UserStore(session).find_by_id(claims.user_id)
    except NotFoundError:
        # The account was deleted after the token was issued.
        raise InvalidTokenError("User not found.") from None
    return Principal(id=user.id, email=user.email, role=user.role)


def list_users(session: Session, actor: Principal) -> list[UserRecord]:
    """All users with their roles. Admin only."""
    require(actor, Action.VIEW_USERS)
    return UserStore(session).list_all()


def update_user(
    session: Session,
    settings: Settings,
    actor: Principal,
    target_id: int,
    *,
    name: str | None = None,
    email: str | None = None,
    password: str | None = None,
) -> UserRecord:
    """
    Partially update a user: self or Admin.

    Input is validated and a new password hashed before the transaction
    opens. Raises ValidationFailedError, NotFoundError, UnauthorizedError or
    DuplicateEmailError. The role can not be changed here.
    """
    fields: dict[str, str] = {}
    if name is not None:
        fields["name"] = _validate_name(name)
    if email is not None:
        fields["email"] = _validate_email(email)
    if password is not None:
        validate_password_strength(password)
        _end_read_transaction(session)
        fields["password_hash"] = hash_password(password, rounds=settings.BCRYPT_ROUNDS)
    store = UserStore(session)
    with _unit_of_work(session):
        store.find_by_id(target_id)
        require(actor, Action.UPDATE_USER, target_id)
        user = store.update(target_id, **fields) if fields else store.find_by_id(target_id)
    return user


def delete_user(session: Session, actor: Principal, target_id: int) -> None:
    """
    Delete a user: self or Admin, never the last Admin.

    Order within one transaction: lookup, policy, last-admin guard, delete.
    Raises NotFoundError, UnauthorizedError or LastAdminProtectedError.
    """
    store = UserStore(session)
    with _unit_of_work(session):
        target = store.find_by_id(target_id)
        require(actor, Action.DELETE_USER, target_id)
        authorize_deletion(store, target)
        store.delete(target_id)
    logger.info(
        "User deleted",
        extra={"user_id": target_id, "actor_id": actor.id},
    )
