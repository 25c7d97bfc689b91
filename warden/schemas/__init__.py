"""Pydantic request/response schemas."""

from warden.schemas.auth import AuthResponse, LoginRequest, MessageResponse, RegisterRequest, UserOut
from warden.schemas.health import HealthResponse
from warden.schemas.user import UpdateUserRequest, UsersListResponse

__all__ = [
    "AuthResponse",
    "HealthResponse",
    "LoginRequest",
    "MessageResponse",
    "RegisterRequest",
    "UpdateUserRequest",
    "UserOut",
    "UsersListResponse",
]
