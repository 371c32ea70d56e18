"""
Custom exceptions and error handlers for the application.
Every error leaves the service as {"error": <code>} so clients can branch on it.
"""
from typing import List, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from constants import (
    ERROR_INTERNAL,
    ERROR_NOT_FOUND,
    ERROR_PAYLOAD_TOO_LARGE,
    ERROR_RATE_LIMITED,
    ERROR_SEND_FAILED,
    ERROR_VALIDATION,
)
from models.contact import ValidationIssue
from utils.logger import get_logger

logger = get_logger(__name__)


class APIException(Exception):
    """Base API exception class."""
    def __init__(self, error: str, status_code: int = 500):
        self.error = error
        self.status_code = status_code
        super().__init__(error)


class ValidationException(APIException):
    """Submission failed schema validation."""
    def __init__(self, details: List[ValidationIssue]):
        super().__init__(ERROR_VALIDATION, status_code=status.HTTP_400_BAD_REQUEST)
        self.details = details


class RateLimitedException(APIException):
    """Client exceeded its submission quota for the current window."""
    def __init__(self, retry_after: Optional[int] = None):
        super().__init__(ERROR_RATE_LIMITED, status_code=status.HTTP_429_TOO_MANY_REQUESTS)
        self.retry_after = retry_after


class SendFailedException(APIException):
    """Notification channel could not deliver the message."""
    def __init__(self):
        super().__init__(ERROR_SEND_FAILED, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


class PayloadTooLargeException(APIException):
    """Request body exceeds the configured size cap."""
    def __init__(self):
        super().__init__(ERROR_PAYLOAD_TOO_LARGE, status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE)


def error_response(status_code: int, error: str, details: Optional[list] = None,
                   headers: Optional[dict] = None) -> JSONResponse:
    content = {"error": error}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def api_exception_handler(request: Request, exc: APIException):
    """Handle API exceptions."""
    if isinstance(exc, ValidationException):
        return error_response(
            exc.status_code,
            exc.error,
            details=[issue.model_dump() for issue in exc.details],
        )
    if isinstance(exc, RateLimitedException) and exc.retry_after is not None:
        return error_response(exc.status_code, exc.error, headers={"Retry-After": str(exc.retry_after)})
    return error_response(exc.status_code, exc.error)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Map unmatched routes and methods to not_found."""
    if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
        return error_response(status.HTTP_404_NOT_FOUND, ERROR_NOT_FOUND)

    logger.warning(f"HTTP Exception: {exc.detail} (Status: {exc.status_code})")
    return error_response(exc.status_code, f"http_{exc.status_code}")


async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unhandled exception: {type(exc).__name__}: {str(exc)}")
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, ERROR_INTERNAL)
