"""Request/response schemas for auth endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from warden.core.security import (
    EMAIL_MAX_LEN,
    NAME_MAX_LEN,
    NAME_MIN_LEN,
    PASSWORD_MAX_LEN,
    password_policy_violation,
)


class UserOut(BaseModel):
    """Public view of a user with its role (no password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class RegisterRequest(BaseModel):
    """New account. Any role field sent by the client is ignored."""

    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=NAME_MIN_LEN, max_length=NAME_MAX_LEN, description="Display name")
    email: EmailStr = Field(..., description="Email (login identity)")
    password: str = Field(..., max_length=PASSWORD_MAX_LEN, description="Password")

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        reason = password_policy_violation(v)
        if reason is not None:
            raise ValueError(reason)
        return v


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: str = Field(..., min_length=1, max_length=EMAIL_MAX_LEN, description="Email")
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN, description="Password")


class AuthResponse(BaseModel):
    """User plus the JWT access token returned by register and login."""

    user: UserOut
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_at: datetime = Field(..., description="Token expiry (UTC)")


class MessageResponse(BaseModel):
    """Plain confirmation message."""

    message: str
