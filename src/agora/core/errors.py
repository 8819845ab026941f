"""Domain exceptions raised by the service layer.

Services never build HTTP responses themselves. They raise one of the errors
below and the exception handlers installed in :mod:`agora.main` translate
them into the ``{"success": false, "message": ...}`` envelope using the
``http_status`` carried by each class.
"""

from __future__ import annotations

from typing import Any


class AgoraError(RuntimeError):
    """Base class for all domain errors."""

    http_status: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON body sent to clients."""
        return {"success": False, "message": self.message}


class ValidationError(AgoraError):
    """Malformed input that passed schema parsing but violates a business rule."""

    http_status = 400
    default_message = "Validation failed"

    def __init__(
        self,
        message: str | None = None,
        errors: list[dict[str, str]] | None = None,
    ) -> None:
        super().__init__(message)
        self.errors = errors or []

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        if self.errors:
            payload["errors"] = self.errors
        return payload


class DuplicateVoteError(AgoraError):
    """The user already holds a vote of the same type on the target."""

    http_status = 400
    default_message = "You have already voted"


class AuthenticationError(AgoraError):
    """Missing or invalid credentials."""

    http_status = 401
    default_message = "Could not validate credentials"


class NotAuthorizedError(AgoraError):
    """The actor is authenticated but lacks permission for the action."""

    http_status = 403
    default_message = "Not authorized"


class NotFoundError(AgoraError):
    """A referenced entity does not exist or is not visible."""

    http_status = 404
    default_message = "Not found"


class VoteNotFoundError(NotFoundError):
    """No vote exists for the (user, target, target type) triple."""

    default_message = "Vote not found"


class ConflictError(AgoraError):
    """A concurrent writer changed the same rows, or a unique value is taken."""

    http_status = 409
    default_message = "Conflicting update, please retry"


class RateLimitedError(AgoraError):
    """Too many requests for a key inside the current window."""

    http_status = 429
    default_message = "Too many attempts. Please try again later."

    def __init__(self, message: str | None = None, retry_after: int = 0) -> None:
        super().__init__(message)
        self.retry_after = retry_after

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["retryAfter"] = self.retry_after
        return payload
