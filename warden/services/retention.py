"""Denylist retention: delete revoked-token rows whose token has expired anyway."""

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import delete
from sqlalchemy.orm import Session

from warden.models import RevokedToken

if TYPE_CHECKING:
    from warden.core.config import Settings

logger = logging.getLogger(__name__)


def prune_revoked_tokens(
    session: Session,
    settings: "Settings",
    now: datetime | None = None,
) -> int:
    """
    Delete denylist entries past their token's natural expiry.

    An expired token fails signature verification on its own, so its row is
    no longer needed. Returns the number of rows deleted. Idempotent: safe to
    run repeatedly.
    """
    if not settings.RETENTION_ENABLED:
        logger.info("Retention is disabled (RETENTION_ENABLED=false); skipping.")
        return 0

    cutoff = now or datetime.now(timezone.utc)
    result = session.execute(
        delete(RevokedToken).where(RevokedToken.expires_at < cutoff)
    )
    session.commit()
    deleted_count = result.rowcount or 0

    if deleted_count > 0:
        logger.info(
            "Retention run: cutoff=%s, revoked_tokens_deleted=%s",
            cutoff.isoformat(),
            deleted_count,
        )
    return deleted_count
