"""
Typed API errors raised by services and rendered by the error handlers.

Each error carries the HTTP status it maps to, so handlers never need to
inspect the message to decide on a response.
"""

from fastapi import status


class CareerSyncError(Exception):
    """Base exception for expected, client-facing failures."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_SERVER_ERROR"

    def __init__(self, message: str, body_key: str = "msg"):
        super().__init__(message)
        self.message = message
        # JSON key the message is rendered under ("msg" or "error")
        self.body_key = body_key


class BadRequestError(CareerSyncError):
    """Missing or malformed input, or a violated business rule."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "BAD_REQUEST"


class UnauthenticatedError(CareerSyncError):
    """Missing, invalid or expired credentials, or insufficient ownership/role."""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHENTICATED"


class ForbiddenError(CareerSyncError):
    """Quota exceeded."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"


class NotFoundError(CareerSyncError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class ConflictError(CareerSyncError):
    """A unique value (e.g. email) is already taken."""

    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"
