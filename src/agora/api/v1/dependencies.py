"""Shared API dependencies for authentication, rate limiting and paging."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Query, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from agora.core.errors import AuthenticationError, NotAuthorizedError
from agora.core.security import decode_token
from agora.core.settings import settings
from agora.db.session import get_db
from agora.models import User, UserRole
from agora.services.rate_limit import RateLimitService, get_rate_limit_service

# HTTP Bearer scheme for JWT authentication; missing headers are reported as 401 below
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]
CredentialsDep = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _resolve_user(credentials: HTTPAuthorizationCredentials, db: Session) -> User:
    try:
        payload = decode_token(credentials.credentials, expected_type="access")
    except AuthenticationError as err:
        raise _unauthorized(err.message) from err

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError) as err:
        raise _unauthorized("Invalid token.") from err

    user = db.get(User, user_id)
    if user is None:
        raise _unauthorized("User not found")
    if not user.is_active:
        raise _unauthorized(f"Account is {user.status}")
    return user


def get_current_user(credentials: CredentialsDep, db: SessionDep) -> User:
    """Get the current authenticated user from the bearer token.

    Raises:
        HTTPException: If the token is missing, invalid, or names an
            unknown or inactive account.
    """
    if credentials is None:
        raise _unauthorized("Access denied. No token provided.")
    return _resolve_user(credentials, db)


def get_optional_user(credentials: CredentialsDep, db: SessionDep) -> User | None:
    """Like :func:`get_current_user` but anonymous requests yield ``None``."""
    if credentials is None:
        return None
    return _resolve_user(credentials, db)


# Type alias for current user dependency
CurrentUserDep = Annotated[User, Depends(get_current_user)]
OptionalUserDep = Annotated[User | None, Depends(get_optional_user)]


def require_staff(current_user: CurrentUserDep) -> User:
    """Allow moderators and admins only."""
    if not current_user.is_staff:
        raise NotAuthorizedError("Moderator privileges required")
    return current_user


def require_admin(current_user: CurrentUserDep) -> User:
    if current_user.role != UserRole.ADMIN:
        raise NotAuthorizedError("Admin privileges required")
    return current_user


StaffUserDep = Annotated[User, Depends(require_staff)]
AdminUserDep = Annotated[User, Depends(require_admin)]


def get_rate_limit_service_dep() -> RateLimitService:
    """Return the shared rate limit service."""
    return get_rate_limit_service()


RateLimitServiceDep = Annotated[RateLimitService, Depends(get_rate_limit_service_dep)]


def limit_votes(current_user: CurrentUserDep, limiter: RateLimitServiceDep) -> User:
    """Throttle vote mutations per user."""
    limiter.hit(
        "vote",
        str(current_user.id),
        limit=settings.vote_rate_limit,
        window_seconds=settings.vote_rate_window_seconds,
    )
    return current_user


def limit_logins(request: Request, limiter: RateLimitServiceDep) -> str:
    """Throttle login attempts per client address and return that address."""
    client = request.client.host if request.client else "unknown"
    limiter.hit(
        "login",
        client,
        limit=settings.login_rate_limit,
        window_seconds=settings.login_rate_window_seconds,
    )
    return client


def limit_password_resets(request: Request, limiter: RateLimitServiceDep) -> str:
    """Throttle password reset requests and redemptions per client address."""
    client = request.client.host if request.client else "unknown"
    limiter.hit(
        "password-reset",
        client,
        limit=settings.login_rate_limit,
        window_seconds=settings.login_rate_window_seconds,
    )
    return client


VotingUserDep = Annotated[User, Depends(limit_votes)]


class PageParams:
    """``page``/``limit`` query parameters clamped to the configured maximum."""

    def __init__(
        self,
        page: Annotated[int, Query(ge=1)] = 1,
        limit: Annotated[int | None, Query(ge=1)] = None,
    ) -> None:
        self.page = page
        self.limit = min(limit or settings.default_page_size, settings.max_page_size)


PageDep = Annotated[PageParams, Depends()]
