"""User and authentication Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from agora.models import UserRole

from .common import CamelModel

USERNAME_PATTERN = r"^[a-zA-Z0-9_]+$"
EMAIL_PATTERN = r"^\S+@\S+\.\S+$"


class RegisterRequest(BaseModel):
    """Schema for creating a new account."""

    username: str = Field(..., min_length=3, max_length=20, pattern=USERNAME_PATTERN)
    email: str = Field(..., max_length=254, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=8, max_length=128)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class LoginRequest(CamelModel):
    """Credentials exchanged for a token pair."""

    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=1)
    remember_me: bool = False

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class RefreshRequest(CamelModel):
    refresh_token: str


class ChangePasswordRequest(CamelModel):
    """Password change for a signed-in user."""

    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=128)
    confirm_password: str

    @model_validator(mode="after")
    def _passwords_match(self) -> ChangePasswordRequest:
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class ForgotPasswordRequest(BaseModel):
    email: str = Field(..., max_length=254, pattern=EMAIL_PATTERN)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class ForgotPasswordResponse(CamelModel):
    """Acknowledgement of a reset request.

    ``reset_token`` and ``expires_at`` are only filled in when DEBUG is on,
    since no mail transport delivers the link.
    """

    message: str
    reset_token: str | None = None
    expires_at: datetime | None = None


class ResetPasswordRequest(CamelModel):
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=8, max_length=128)
    confirm_password: str

    @model_validator(mode="after")
    def _passwords_match(self) -> ResetPasswordRequest:
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class UserSummary(CamelModel):
    """Author block embedded in questions, answers and comments."""

    id: int
    username: str
    reputation: int


class PublicUserResponse(CamelModel):
    """Profile visible to anyone."""

    id: int
    username: str
    reputation: int
    role: UserRole
    bio: str | None = None
    created_at: datetime
    last_seen_at: datetime


class UserResponse(PublicUserResponse):
    """Profile visible to its owner."""

    email: str
    status: str


class UserUpdate(BaseModel):
    """Partial profile update; omitted fields are left untouched."""

    username: str | None = Field(None, min_length=3, max_length=20, pattern=USERNAME_PATTERN)
    email: str | None = Field(None, max_length=254, pattern=EMAIL_PATTERN)
    bio: str | None = Field(None, max_length=500)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str | None) -> str | None:
        return value.strip().lower() if value is not None else None


class TokenResponse(CamelModel):
    """Token pair returned by register, login and refresh."""

    user: UserResponse
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
