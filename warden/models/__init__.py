"""SQLAlchemy ORM models."""

from warden.models.base import Base
from warden.models.revoked_token import RevokedToken
from warden.models.role import ADMIN_ROLE, ROLE_NAMES, USER_ROLE, Role
from warden.models.user import User

__all__ = [
    "ADMIN_ROLE",
    "Base",
    "ROLE_NAMES",
    "RevokedToken",
    "Role",
    "USER_ROLE",
    "User",
]
