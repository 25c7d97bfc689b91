"""ORM model for the fixed set of roles (User, Admin)."""

from sqlalchemy import Column, Integer, String

from warden.models.base import Base

USER_ROLE = "User"
ADMIN_ROLE = "Admin"

# Exactly these rows are seeded; registration assigns USER_ROLE.
ROLE_NAMES = (USER_ROLE, ADMIN_ROLE)


class Role(Base):
    """
    Role referenced by users. Seeded once, never created at runtime.

    The Admin row doubles as the lock target that serializes admin deletions.
    """

    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(32), nullable=False, unique=True)
