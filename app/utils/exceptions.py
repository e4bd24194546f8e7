"""Custom exception classes and error handling utilities."""
from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse
from loguru import logger


class NotifyServiceError(Exception):
    """Base exception for the application."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class Unauthenticated(NotifyServiceError):
    """Missing or rejected identity token."""

    status_code = status.HTTP_401_UNAUTHORIZED


class Forbidden(NotifyServiceError):
    """Authenticated caller not allowed to perform the operation."""

    status_code = status.HTTP_403_FORBIDDEN


class InvalidArgument(NotifyServiceError):
    """Missing or malformed request payload field."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(NotifyServiceError):
    """Referenced document does not exist or is not visible to the caller."""

    status_code = status.HTTP_404_NOT_FOUND


class InternalError(NotifyServiceError):
    """Unexpected storage or provider failure."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class InvalidEndpoint(NotifyServiceError):
    """Push provider reports the registration as permanently dead."""


class TransientDeliveryError(NotifyServiceError):
    """Push provider reports a retryable or unknown failure."""


def error_response(status_code: int, message: str, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


async def handle_service_error(request: Request, error: NotifyServiceError) -> JSONResponse:
    """Translate a service error into the ``{error}`` JSON body."""

    if error.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {error.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {error.message}")
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(error, Unauthenticated) else None
    return error_response(error.status_code, error.message, headers=headers)


async def handle_unexpected_error(request: Request, error: Exception) -> JSONResponse:
    """Last-resort handler: log the traceback, hide the details."""

    logger.opt(exception=error).error(f"{request.method} {request.url.path} error")
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal error")
