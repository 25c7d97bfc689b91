"""Request/response schemas for user-management endpoints."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from warden.core.security import (
    NAME_MAX_LEN,
    NAME_MIN_LEN,
    PASSWORD_MAX_LEN,
    password_policy_violation,
)
from warden.schemas.auth import UserOut


class UpdateUserRequest(BaseModel):
    """Partial update; omitted fields are left unchanged. Role is not updatable."""

    model_config = ConfigDict(extra="ignore")

    name: str | None = Field(default=None, min_length=NAME_MIN_LEN, max_length=NAME_MAX_LEN)
    email: EmailStr | None = None
    password: str | None = Field(default=None, max_length=PASSWORD_MAX_LEN)
    password_confirmation: str | None = None

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str | None) -> str | None:
        if v is None:
            return v
        reason = password_policy_violation(v)
        if reason is not None:
            raise ValueError(reason)
        return v

    @model_validator(mode="after")
    def check_password_confirmation(self) -> "UpdateUserRequest":
        if self.password is not None and self.password_confirmation != self.password:
            raise ValueError("The password confirmation does not match.")
        return self


class UsersListResponse(BaseModel):
    """Response for GET /users (admin only)."""

    users: list[UserOut]
