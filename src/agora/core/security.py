"""Password hashing, reset tokens and JWT helpers."""
from __future__ import annotations

import hashlib
import secrets
from datetime import timedelta
from typing import Any, Literal

from jose import JWTError, jwt
from passlib.context import CryptContext

from agora.core.errors import AuthenticationError
from agora.core.settings import settings
from agora.db.time import utcnow

TokenType = Literal["access", "refresh"]

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)


def hash_password(password: str) -> str:
    """Return a bcrypt hash of ``password``."""
    return pwd_context.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    """Check a password against a stored hash; unrecognised hashes never match."""
    try:
        return pwd_context.verify(password, hashed_password)
    except ValueError:
        return False


def new_reset_token() -> tuple[str, str]:
    """Return a fresh password-reset token and the digest stored for it."""
    token = secrets.token_urlsafe(32)
    return token, hash_reset_token(token)


def hash_reset_token(token: str) -> str:
    """Return the SHA-256 digest under which a reset token is stored."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_token(
    user_id: int,
    role: str,
    *,
    token_type: TokenType = "access",
    expires_delta: timedelta | None = None,
) -> str:
    """Issue a signed JWT for ``user_id``."""
    if expires_delta is None:
        minutes = (
            settings.access_token_expire_minutes
            if token_type == "access"
            else settings.refresh_token_expire_minutes
        )
        expires_delta = timedelta(minutes=minutes)
    payload = {
        "sub": str(user_id),
        "role": role,
        "type": token_type,
        "exp": utcnow() + expires_delta,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str, *, expected_type: TokenType = "access") -> dict[str, Any]:
    """Decode and validate a JWT, returning its claims.

    Raises:
        AuthenticationError: If the signature, expiry, or token type is invalid.
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as err:
        raise AuthenticationError("Invalid token.") from err
    if payload.get("type") != expected_type or payload.get("sub") is None:
        raise AuthenticationError("Invalid token.")
    return payload
