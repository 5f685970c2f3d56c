"""Custom exceptions and error handling utilities."""
from typing import Any, Dict, Optional

from fastapi import status

from registry.constants import ErrorReason


class AppException(Exception):
    """Base exception for application errors.

    Carries a machine-readable reason and the HTTP status it maps to.
    """
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_reason = ErrorReason.INTERNAL_ERROR

    def __init__(self, reason: Optional[str] = None):
        self.reason = reason or self.default_reason
        super().__init__(self.reason)


class ValidationError(AppException):
    """Raised when request input is malformed."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_reason = ErrorReason.BAD_REQUEST


class AuthenticationError(AppException):
    """Raised when a credential is missing, unknown or revoked."""
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(AppException):
    """Raised when a valid credential may not be used for the request."""
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(AppException):
    """Raised when a referenced resource is missing."""
    status_code = status.HTTP_404_NOT_FOUND
    default_reason = ErrorReason.NOT_FOUND


def error_body(reason: str, **extra: Any) -> Dict[str, Any]:
    """
    Build the standard error payload.

    Args:
        reason: Machine-readable error reason
        **extra: Additional fields to include (e.g. path)

    Returns:
        Dictionary of the form {"error": reason, ...}
    """
    body: Dict[str, Any] = {"error": reason}
    body.update(extra)
    return body
