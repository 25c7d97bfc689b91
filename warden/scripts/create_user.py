"""
Create a user (e.g. first admin). Run from project root:
  python -m warden.scripts.create_user NAME EMAIL PASSWORD [role]
Example:
  python -m warden.scripts.create_user "Site Admin" admin@example.com 'S3cure-password' Admin

Registration over the API always assigns the User role; this script is the
only way to create an Admin.
"""
import argparse
import sys

from sqlalchemy.orm import Session

from warden.core.config import get_settings
from warden.core.database import SessionLocal
from warden.core.errors import WardenError
from warden.core.security import hash_password, validate_password_strength
from warden.models import ROLE_NAMES, USER_ROLE
from warden.services.store import UserRecord, UserStore


def create_user(
    session: Session,
    name: str,
    email: str,
    password: str,
    role: str = USER_ROLE,
    rounds: int = 12,
) -> UserRecord:
    """Validate, hash and insert a user with the given role; commits."""
    validate_password_strength(password)
    try:
        user = UserStore(session).create(
            name=name,
            email=email,
            password_hash=hash_password(password, rounds=rounds),
            role=role,
        )
        session.commit()
    except Exception:
        session.rollback()
        raise
    return user


def main() -> int:
    parser = argparse.ArgumentParser(description="Create a Warden user (e.g. the first Admin).")
    parser.add_argument("name", help="Display name (1-255 chars)")
    parser.add_argument("email", help="Email used to log in")
    parser.add_argument("password", help="Password (8-128 chars, upper, lower and digit)")
    parser.add_argument("role", nargs="?", default=USER_ROLE, choices=list(ROLE_NAMES))
    args = parser.parse_args()

    name = args.name.strip()
    if not name or len(name) > 255:
        print("Invalid name length.", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        user = create_user(
            db,
            name,
            args.email,
            args.password,
            role=args.role,
            rounds=get_settings().BCRYPT_ROUNDS,
        )
        print(f"Created user '{user.email}' with role '{user.role}'.")
        return 0
    except WardenError as e:
        print(e.message, file=sys.stderr)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
