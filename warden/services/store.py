"""Credential store: the single read/write path for user and role records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from warden.core.errors import DuplicateEmailError, NotFoundError, RoleSeedMissingError
from warden.core.security import normalize_email
from warden.models import Role, User

# Fields a caller may change through update(); role is deliberately absent.
UPDATABLE_FIELDS = frozenset({"name", "email", "password_hash"})


@dataclass(frozen=True)
class UserRecord:
    """Read view of a user, always carrying its role name. Never includes the hash."""

    id: int
    name: str
    email: str
    role: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


def _to_record(user: User) -> UserRecord:
    return UserRecord(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role.name,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


class UserStore:
    """
    Persistence operations over users and roles bound to one session.

    The store flushes but never commits; the calling service owns the
    transaction so that checks and mutations land together or not at all.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_role(self, name: str) -> Role:
        role = self.session.execute(select(Role).where(Role.name == name)).scalar_one_or_none()
        if role is None:
            raise RoleSeedMissingError(name)
        return role

    def _get(self, user_id: int) -> User:
        user = self.session.get(User, user_id)
        if user is None:
            raise NotFoundError()
        return user

    def _email_taken(self, email: str, exclude_id: int | None = None) -> bool:
        stmt = select(User.id).where(User.email == email)
        if exclude_id is not None:
            stmt = stmt.where(User.id != exclude_id)
        return self.session.execute(stmt).first() is not None

    def _flush_unique(self) -> None:
        # The unique index catches a concurrent writer that slipped past the pre-check.
        try:
            self.session.flush()
        except IntegrityError as e:
            self.session.rollback()
            raise DuplicateEmailError() from e

    def create(self, name: str, email: str, password_hash: str, role: str) -> UserRecord:
        """Insert a user with the named role. Fails on duplicate email or unseeded role."""
        email = normalize_email(email)
        role_row = self.get_role(role)
        if self._email_taken(email):
            raise DuplicateEmailError()
        user = User(name=name, email=email, password_hash=password_hash, role_id=role_row.id)
        self.session.add(user)
        self._flush_unique()
        self.session.refresh(user)
        return _to_record(user)

    def find_by_id(self, user_id: int) -> UserRecord:
        return _to_record(self._get(user_id))

    def find_by_email(self, email: str) -> UserRecord:
        user = self.session.execute(
            select(User).where(User.email == normalize_email(email))
        ).scalar_one_or_none()
        if user is None:
            raise NotFoundError()
        return _to_record(user)

    def get_credentials(self, email: str) -> tuple[UserRecord, str]:
        """Return (user, password_hash) for login. Only the login path should call this."""
        user = self.session.execute(
            select(User).where(User.email == normalize_email(email))
        ).scalar_one_or_none()
        if user is None:
            raise NotFoundError()
        return _to_record(user), user.password_hash

    def update(self, user_id: int, **fields: str) -> UserRecord:
        """Apply a partial update of name, email and/or password_hash."""
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not updatable: {sorted(unknown)}")
        user = self._get(user_id)
        if "email" in fields:
            fields["email"] = normalize_email(fields["email"])
            if self._email_taken(fields["email"], exclude_id=user_id):
                raise DuplicateEmailError()
        for key, value in fields.items():
            setattr(user, key, value)
        self._flush_unique()
        self.session.refresh(user)
        return _to_record(user)

    def delete(self, user_id: int) -> None:
        """Remove the user row. Irreversible; callers run every check before this."""
        user = self._get(user_id)
        self.session.delete(user)
        self.session.flush()

    def count_by_role(self, role: str, lock: bool = False) -> int:
        """
        Live count of users holding role.

        With lock=True the role row is locked FOR UPDATE first, so concurrent
        callers that also lock wait for this transaction before counting.
        """
        role_stmt = select(Role.id).where(Role.name == role)
        if lock:
            role_stmt = role_stmt.with_for_update()
        role_id = self.session.execute(role_stmt).scalar_one_or_none()
        if role_id is None:
            return 0
        return self.session.execute(
            select(func.count(User.id)).where(User.role_id == role_id)
        ).scalar_one()

    def list_all(self) -> list[UserRecord]:
        users = self.session.execute(select(User).order_by(User.id)).scalars().all()
        return [_to_record(u) for u in users]
