"""
Application Exceptions
======================

Exceptions raised by the service layer and translated into HTTP responses by
the handlers registered in ``studio.api.exception_handlers``.
"""

from enum import Enum
from typing import Any, Optional

from fastapi import status


class ErrorCode(str, Enum):
    UNAUTHORIZED = "unauthorized"
    VALIDATION_ERROR = "validation_error"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    SERVICE_UNAVAILABLE = "service_unavailable"
    INTERNAL_ERROR = "internal_error"


class AppException(Exception):
    """Base class for errors that map onto a well-defined HTTP response."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class Unauthorized(AppException):
    code = ErrorCode.UNAUTHORIZED
    status_code = status.HTTP_401_UNAUTHORIZED


class ValidationError(AppException):
    code = ErrorCode.VALIDATION_ERROR
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(AppException):
    """Missing rows and rows owned by another user look the same to callers."""

    code = ErrorCode.NOT_FOUND
    status_code = status.HTTP_404_NOT_FOUND


class ProviderRateLimited(AppException):
    code = ErrorCode.RATE_LIMITED
    status_code = status.HTTP_429_TOO_MANY_REQUESTS


class ProviderUnavailable(AppException):
    code = ErrorCode.PROVIDER_UNAVAILABLE
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class ServiceUnavailable(AppException):
    code = ErrorCode.SERVICE_UNAVAILABLE
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
