"""Health check endpoint: database connectivity and role seed status."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from warden.core.config import Settings, get_settings
from warden.core.database import check_db_connected, get_db
from warden.models import ROLE_NAMES, Role
from warden.schemas.health import HealthResponse

router = APIRouter()


def roles_seeded(db: Session) -> bool:
    names = set(db.execute(select(Role.name).where(Role.name.in_(ROLE_NAMES))).scalars().all())
    return names == set(ROLE_NAMES)


@router.get("/", response_model=HealthResponse)
def get_health(
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> HealthResponse:
    """
    Return service health, database connectivity and whether roles are seeded.
    Used by load balancers and monitoring.
    """
    if not check_db_connected(db):
        return HealthResponse(
            status="degraded",
            environment=settings.APP_ENV,
            database="disconnected",
        )
    seeded = roles_seeded(db)
    return HealthResponse(
        status="ok" if seeded else "degraded",
        environment=settings.APP_ENV,
        database="connected",
        roles_seeded=seeded,
    )
