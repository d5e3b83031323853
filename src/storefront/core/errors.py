"""Domain error taxonomy.

Services raise these; the HTTP layer renders every one of them as
``{"success": false, "message": ...}`` with the matching status code.
"""

from typing import Any


class StorefrontError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 500

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context


class ValidationError(StorefrontError):
    """Malformed, missing or out-of-range input."""

    status_code = 400


class UnauthenticatedError(StorefrontError):
    """Missing or invalid credential."""

    status_code = 401


class ForbiddenError(StorefrontError):
    """Authenticated but not permitted."""

    status_code = 403


class NotFoundError(StorefrontError):
    """Referenced entity does not exist."""

    status_code = 404


class ConflictError(StorefrontError):
    """The request collides with existing state (duplicate keys, live references)."""

    status_code = 409


class InternalError(StorefrontError):
    """Storage or unexpected failure."""

    status_code = 500
