"""
Domain error taxonomy.

NotFound and Forbidden carry the same public message: a missing row and a
row the caller may not see or touch are indistinguishable.
"""

from typing import Optional

NO_ACCESS_MESSAGE = "Not found or no access"


class AppError(Exception):
    status_code = 500
    public_message: Optional[str] = None

    def __init__(self, message: str = "", **context):
        super().__init__(message)
        self.message = message
        self.context = context

    @property
    def detail(self) -> str:
        return self.public_message or self.message


class NotFound(AppError):
    status_code = 404
    public_message = NO_ACCESS_MESSAGE


class Forbidden(AppError):
    status_code = 403
    public_message = NO_ACCESS_MESSAGE


class Conflict(AppError):
    status_code = 409


class ValidationError(AppError):
    status_code = 422


class EstimationError(AppError):
    """The external price estimator failed or returned an unusable answer."""
    status_code = 502


class Unauthorized(AppError):
    """Missing, invalid or expired credentials."""
    status_code = 401


class AuthProviderError(AppError):
    status_code = 502
