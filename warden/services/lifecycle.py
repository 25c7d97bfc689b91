"""Structural invariants on destructive account operations (last-admin protection)."""

import logging

from warden.core.errors import LastAdminProtectedError
from warden.models.role import ADMIN_ROLE
from warden.services.store import UserRecord, UserStore

logger = logging.getLogger(__name__)


def authorize_deletion(store: UserStore, target: UserRecord) -> None:
    """
    Refuse deleting target if it is the only remaining Admin.

    Counts admins live under a lock on the Admin role row; the caller must
    delete and commit in the same transaction for the check to hold.
    """
    if target.role != ADMIN_ROLE:
        return
    admin_count = store.count_by_role(ADMIN_ROLE, lock=True)
    if admin_count <= 1:
        logger.info(
            "Deletion refused: last admin",
            extra={"target_user_id": target.id, "admin_count": admin_count},
        )
        raise LastAdminProtectedError()
