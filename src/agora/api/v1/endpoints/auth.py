"""Authentication endpoints for the Agora API."""

from __future__ import annotations

from datetime import timedelta
from typing import Annotated

from fastapi import APIRouter, Depends, status

from agora.core.errors import AuthenticationError
from agora.core.security import create_token, decode_token
from agora.core.settings import settings
from agora.models import User
from agora.schemas.common import MessageResponse
from agora.schemas.user import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    TokenResponse,
    UserResponse,
)
from agora.services import user_service

from ..dependencies import (
    CurrentUserDep,
    RateLimitServiceDep,
    SessionDep,
    limit_logins,
    limit_password_resets,
)

router = APIRouter(prefix="/auth", tags=["authentication"])

REMEMBER_ME_ACCESS = timedelta(days=30)
REMEMBER_ME_REFRESH = timedelta(days=90)


def _issue_tokens(user: User, *, remember_me: bool = False) -> TokenResponse:
    return TokenResponse(
        user=UserResponse.model_validate(user),
        access_token=create_token(
            user.id,
            user.role,
            expires_delta=REMEMBER_ME_ACCESS if remember_me else None,
        ),
        refresh_token=create_token(
            user.id,
            user.role,
            token_type="refresh",
            expires_delta=REMEMBER_ME_REFRESH if remember_me else None,
        ),
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, db: SessionDep) -> TokenResponse:
    """Create an account and sign it in."""
    user = user_service.register_user(db, payload)
    return _issue_tokens(user)


@router.post("/login", response_model=TokenResponse)
async def login(
    payload: LoginRequest,
    db: SessionDep,
    client: Annotated[str, Depends(limit_logins)],
    limiter: RateLimitServiceDep,
) -> TokenResponse:
    """Exchange credentials for a token pair.

    Failed attempts count against the client's login window; a successful
    login clears it.
    """
    user = user_service.authenticate(db, payload.email, payload.password)
    limiter.reset("login", client)
    return _issue_tokens(user, remember_me=payload.remember_me)


@router.post("/refresh-token", response_model=TokenResponse)
async def refresh_token(payload: RefreshRequest, db: SessionDep) -> TokenResponse:
    claims = decode_token(payload.refresh_token, expected_type="refresh")
    user = user_service.get_user(db, int(claims["sub"]))
    if user is None or not user.is_active:
        raise AuthenticationError("Invalid refresh token")
    return _issue_tokens(user)


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    payload: ChangePasswordRequest,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, str]:
    user_service.change_password(db, current_user, payload.current_password, payload.new_password)
    return {"message": "Password changed successfully"}


@router.post(
    "/forgot-password",
    response_model=ForgotPasswordResponse,
    response_model_exclude_none=True,
)
async def forgot_password(
    payload: ForgotPasswordRequest,
    db: SessionDep,
    client: Annotated[str, Depends(limit_password_resets)],
) -> ForgotPasswordResponse:
    """Start a password reset.

    The reply does not reveal whether the email is registered.
    """
    issued = user_service.request_password_reset(db, payload.email, requested_ip=client)
    response = ForgotPasswordResponse(
        message="If the email exists, a password reset link has been sent."
    )
    if issued is not None and settings.debug:
        response.reset_token, response.expires_at = issued
    return response


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    dependencies=[Depends(limit_password_resets)],
)
async def reset_password(payload: ResetPasswordRequest, db: SessionDep) -> dict[str, str]:
    user_service.reset_password(db, payload.token, payload.password)
    return {"message": "Password reset successfully"}
