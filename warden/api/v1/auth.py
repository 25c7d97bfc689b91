"""Register, login, logout and the bearer-token dependency (get_current_user)."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from warden.core.config import Settings, get_settings
from warden.core.database import get_db
from warden.core.errors import InvalidTokenError
from warden.schemas.auth import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    UserOut,
)
from warden.services import accounts
from warden.services.policy import Principal
from warden.services.store import UserStore

router = APIRouter()
security = HTTPBearer(auto_error=False)


def _auth_response(result: accounts.AuthResult) -> AuthResponse:
    return AuthResponse(
        user=UserOut.model_validate(result.user),
        access_token=result.token.access_token,
        token_type=result.token.token_type,
        expires_at=result.token.expires_at,
    )


def get_bearer_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> str:
    """Dependency: the raw Bearer token. A missing header is InvalidTokenError (401)."""
    if credentials is None or not credentials.credentials:
        raise InvalidTokenError("Not authenticated.")
    return credentials.credentials


def get_current_user(
    token: Annotated[str, Depends(get_bearer_token)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> Principal:
    """Dependency: resolve the Bearer token to a Principal. InvalidTokenError maps to 401."""
    return accounts.authenticate(db, settings, token)


# Sync handlers run in FastAPI's worker thread pool, so bcrypt work does not block the event loop.
@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AuthResponse:
    """
    Create an account with the default User role and return a JWT access token.
    Include the token in the Authorization header as: Bearer <access_token>
    """
    result = accounts.register(db, settings, body.name, body.email, body.password)
    return _auth_response(result)


@router.post("/login", response_model=AuthResponse)
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AuthResponse:
    """Authenticate with email and password; returns the user and a JWT access token."""
    result = accounts.login(db, settings, body.email, body.password)
    return _auth_response(result)


@router.post("/logout", response_model=MessageResponse)
def logout(
    token: Annotated[str, Depends(get_bearer_token)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> MessageResponse:
    """Revoke the presented token. Other tokens of the same user remain valid."""
    accounts.logout(db, settings, token)
    return MessageResponse(message="Successfully logged out")


@router.get("/me", response_model=UserOut)
def me(
    current_user: Annotated[Principal, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> UserOut:
    """Return the authenticated user."""
    return UserOut.model_validate(UserStore(db).find_by_id(current_user.id))
