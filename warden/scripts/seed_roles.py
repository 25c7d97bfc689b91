"""
Seed the roles table with User and Admin. Idempotent. Run from project root:
  python -m warden.scripts.seed_roles
"""
import logging
import sys

from sqlalchemy import select
from sqlalchemy.orm import Session

from warden.core.database import SessionLocal
from warden.models import ROLE_NAMES, Role

logger = logging.getLogger(__name__)


def seed_roles(session: Session) -> list[str]:
    """Insert any missing role rows; return the names that were created."""
    existing = set(session.execute(select(Role.name)).scalars().all())
    created = [name for name in ROLE_NAMES if name not in existing]
    for name in created:
        session.add(Role(name=name))
    session.commit()
    return created


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s %(message)s")
    db = SessionLocal()
    try:
        created = seed_roles(db)
        if created:
            logger.info("Seeded roles: %s", ", ".join(created))
        else:
            logger.info("Roles already seeded.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
