"""Account registration, authentication and profile helpers."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Sequence

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from agora.core import security
from agora.core.errors import (
    AuthenticationError,
    ConflictError,
    NotAuthorizedError,
    NotFoundError,
    ValidationError,
)
from agora.core.settings import settings
from agora.db.time import utcnow
from agora.models import PasswordResetToken, User, UserStatus
from agora.schemas.user import RegisterRequest, UserUpdate

from .transactions import transaction

__all__ = [
    "get_user",
    "get_user_by_username",
    "register_user",
    "authenticate",
    "update_user",
    "deactivate_user",
    "leaderboard",
    "change_password",
    "request_password_reset",
    "reset_password",
]

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: int) -> User | None:
    """Return a single user by primary key."""
    return db.get(User, user_id)


def get_user_by_username(db: Session, username: str) -> User:
    """Return the active user called ``username`` (case-insensitive)."""
    user = db.scalar(select(User).where(func.lower(User.username) == username.lower()))
    if user is None or not user.is_active:
        raise NotFoundError("User not found")
    return user


def _ensure_unique(
    db: Session,
    *,
    username: str | None,
    email: str | None,
    exclude_id: int | None = None,
) -> None:
    clauses = []
    if username is not None:
        clauses.append(func.lower(User.username) == username.lower())
    if email is not None:
        clauses.append(User.email == email)
    if not clauses:
        return
    stmt = select(User).where(or_(*clauses))
    if exclude_id is not None:
        stmt = stmt.where(User.id != exclude_id)
    existing = db.scalar(stmt)
    if existing is None:
        return
    if email is not None and existing.email == email:
        raise ConflictError("Email is already registered")
    raise ConflictError("Username is already taken")


def register_user(db: Session, data: RegisterRequest) -> User:
    """Persist a new account with a hashed password."""
    with transaction(db):
        _ensure_unique(db, username=data.username, email=data.email)
        user = User(
            username=data.username,
            email=data.email,
            password_hash=security.hash_password(data.password),
        )
        db.add(user)
    db.refresh(user)
    logger.info("Registered user %s (%s)", user.id, user.username)
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    """Return the account matching the credentials and record the login.

    Raises:
        AuthenticationError: For unknown emails, wrong passwords, or
            accounts that are not active.
    """
    user = db.scalar(select(User).where(User.email == email))
    if user is None or not security.verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid email or password")
    if not user.is_active:
        raise AuthenticationError(f"Account is {user.status}")
    with transaction(db):
        user.last_seen_at = utcnow()
    db.refresh(user)
    return user


def update_user(db: Session, user: User, update_data: UserUpdate) -> User:
    """Apply partial updates to a user's own profile."""
    update_dict = update_data.model_dump(exclude_unset=True, exclude_none=True)
    with transaction(db):
        _ensure_unique(
            db,
            username=update_dict.get("username"),
            email=update_dict.get("email"),
            exclude_id=user.id,
        )
        for key, value in update_dict.items():
            setattr(user, key, value)
    db.refresh(user)
    return user


def deactivate_user(db: Session, user: User) -> None:
    """Suspend the account; the row stays so authored content keeps its author."""
    with transaction(db):
        user.status = UserStatus.SUSPENDED
    logger.info("User %s deactivated their account", user.id)


def leaderboard(db: Session, limit: int = 10) -> Sequence[User]:
    """Return active users ordered by reputation."""
    return db.scalars(
        select(User)
        .where(User.status == UserStatus.ACTIVE)
        .order_by(User.reputation.desc(), User.created_at)
        .limit(limit)
    ).all()


def change_password(db: Session, user: User, current_password: str, new_password: str) -> None:
    """Replace the password of a signed-in user after checking the old one."""
    if not security.verify_password(current_password, user.password_hash):
        raise ValidationError(
            "Current password is incorrect",
            errors=[{"field": "currentPassword", "message": "Current password is incorrect"}],
        )
    with transaction(db):
        user.password_hash = security.hash_password(new_password)
    logger.info("User %s changed their password", user.id)


def _expire_pending_resets(db: Session, user_id: int) -> None:
    db.execute(
        update(PasswordResetToken)
        .where(PasswordResetToken.user_id == user_id, PasswordResetToken.used_at.is_(None))
        .values(used_at=utcnow())
    )


def request_password_reset(
    db: Session,
    email: str,
    *,
    requested_ip: str | None = None,
) -> tuple[str, datetime] | None:
    """Issue a reset token for the account registered under ``email``.

    Earlier unused tokens for the same account stop working. Returns the
    plain token and its expiry, or ``None`` when no account uses the email
    so callers can answer both cases the same way.

    Raises:
        NotAuthorizedError: If the account is suspended or banned.
    """
    user = db.scalar(select(User).where(User.email == email))
    if user is None:
        logger.info("Password reset requested for unknown email")
        return None
    if not user.is_active:
        raise NotAuthorizedError(f"Account {user.status}. Please contact support.")

    token, token_hash = security.new_reset_token()
    expires_at = utcnow() + timedelta(minutes=settings.password_reset_expire_minutes)
    with transaction(db):
        _expire_pending_resets(db, user.id)
        db.add(
            PasswordResetToken(
                user_id=user.id,
                token_hash=token_hash,
                expires_at=expires_at,
                requested_ip=requested_ip,
            )
        )
    logger.info("Password reset token issued for user %s", user.id)
    return token, expires_at


def reset_password(db: Session, token: str, new_password: str) -> User:
    """Redeem a reset token and set a new password.

    Raises:
        ValidationError: If the token is unknown, already used, or expired,
            or its account is no longer active.
    """
    with transaction(db):
        reset = db.scalar(
            select(PasswordResetToken).where(
                PasswordResetToken.token_hash == security.hash_reset_token(token),
                PasswordResetToken.used_at.is_(None),
                PasswordResetToken.expires_at > utcnow(),
            )
        )
        user = db.get(User, reset.user_id) if reset is not None else None
        if reset is None or user is None or not user.is_active:
            raise ValidationError("Invalid or expired token")
        user.password_hash = security.hash_password(new_password)
        reset.used_at = utcnow()
        _expire_pending_resets(db, user.id)
    logger.info("User %s reset their password", user.id)
    return user
