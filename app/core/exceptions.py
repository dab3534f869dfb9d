"""
Domain exceptions and global exception handlers for strideOS.
Every error response carries a machine code, the raw detail and a
user-facing message derived from the detail text.
"""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.error_messages import friendly_error_message

logger = logging.getLogger(__name__)


# ── Exception classes ─────────────────────────────────────────────────────────

class StrideException(Exception):
    """
    Base exception for all strideOS domain errors.
    Subclasses pin ``status_code`` and ``error_code``; raising the base class
    directly allows any combination.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "STRIDE_ERROR"
    default_detail: str = "Request failed"

    def __init__(
        self,
        detail: str | None = None,
        *,
        status_code: int | None = None,
        error_code: str | None = None,
    ) -> None:
        self.detail = detail or self.default_detail
        if status_code is not None:
            self.status_code = status_code
        if error_code is not None:
            self.error_code = error_code
        super().__init__(self.detail)


class NotFoundException(StrideException):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        if resource_id:
            super().__init__(f"{resource} with id '{resource_id}' not found")
        else:
            super().__init__(f"{resource} not found")


class UnauthorizedException(StrideException):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "UNAUTHORIZED"
    default_detail = "Authentication required"


class InvalidTokenException(UnauthorizedException):
    error_code = "INVALID_TOKEN"
    default_detail = "Invalid or expired token"


class ForbiddenException(StrideException):
    status_code = status.HTTP_403_FORBIDDEN
    error_code = "FORBIDDEN"
    default_detail = "You do not have permission to perform this action"


class BadRequestException(StrideException):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "BAD_REQUEST"


class ConflictException(StrideException):
    """Duplicate names and keys, overlapping or concurrently active sprints."""

    status_code = status.HTTP_409_CONFLICT
    error_code = "CONFLICT"


class FileTooLargeException(StrideException):
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    error_code = "FILE_TOO_LARGE"

    def __init__(self, max_mb: int) -> None:
        super().__init__(f"File is too large: maximum allowed size is {max_mb} MB")


# ── Exception handlers ────────────────────────────────────────────────────────

def _error_response(status_code: int, detail: str, error_code: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error_code,
            "detail": detail,
            "user_message": friendly_error_message(detail).user_message,
        },
    )


async def stride_exception_handler(
    request: Request, exc: StrideException
) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return _error_response(exc.status_code, exc.detail, exc.error_code)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = []
    for error in exc.errors():
        field = " -> ".join(str(loc) for loc in error["loc"])
        errors.append({"field": field, "message": error["msg"]})
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "VALIDATION_ERROR",
            "detail": "Request validation failed",
            "user_message": friendly_error_message("validation").user_message,
            "errors": errors,
        },
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="An unexpected internal server error occurred",
        error_code="INTERNAL_SERVER_ERROR",
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all custom exception handlers on the FastAPI application."""
    app.add_exception_handler(StrideException, stride_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)
