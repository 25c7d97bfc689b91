"""
CLI entrypoint for the denylist retention job. Run from cron, e.g.:

  python -m warden.retention

Or hourly: 0 * * * * cd /path/to/warden && .venv/bin/python -m warden.retention
"""

import logging
import sys

from warden.core.config import get_settings
from warden.core.database import SessionLocal
from warden.services.retention import prune_revoked_tokens

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Run retention: delete revoked-token rows past their expiry."""
    settings = get_settings()
    db = SessionLocal()
    try:
        deleted = prune_revoked_tokens(db, settings)
        logger.info("Retention completed: revoked_tokens_deleted=%s", deleted)
        return 0
    except Exception as e:
        logger.exception("Retention job failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
