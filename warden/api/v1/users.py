"""User management: list (admin), update and delete (self or admin)."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from warden.api.v1.auth import get_current_user
from warden.core.config import Settings, get_settings
from warden.core.database import get_db
from warden.schemas.auth import MessageResponse, UserOut
from warden.schemas.user import UpdateUserRequest, UsersListResponse
from warden.services import accounts
from warden.services.policy import Principal

router = APIRouter()


@router.get("", response_model=UsersListResponse)
def list_users(
    current_user: Annotated[Principal, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> UsersListResponse:
    """List all users with their roles (admin only)."""
    users = accounts.list_users(db, current_user)
    return UsersListResponse(users=[UserOut.model_validate(u) for u in users])


@router.put("/{user_id}", response_model=UserOut)
def update_user(
    user_id: int,
    body: UpdateUserRequest,
    current_user: Annotated[Principal, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> UserOut:
    """Update name, email and/or password of a user. Users may update only themselves."""
    user = accounts.update_user(
        db,
        settings,
        current_user,
        user_id,
        name=body.name,
        email=body.email,
        password=body.password,
    )
    return UserOut.model_validate(user)


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int,
    current_user: Annotated[Principal, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Delete a user. Users may delete only themselves; the last admin can not be deleted."""
    accounts.delete_user(db, current_user, user_id)
    return MessageResponse(message="User deleted successfully")
