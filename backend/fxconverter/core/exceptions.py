"""
Application exceptions and global exception handlers for the FastAPI application.
Serializes exceptions into a single error envelope and structured logs.
"""

from datetime import datetime, timezone
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
from typing import Any

from fxconverter.core.integrations.observability import record_exception


logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception."""
    def __init__(self, message: str, status_code: int = 500, details: Any = None):
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class InvalidParametersError(AppException):
    """Malformed, missing or non-positive request input."""
    def __init__(self, message: str = "Invalid parameters", details: Any = None):
        super().__init__(message, status.HTTP_400_BAD_REQUEST, details)


class UnsupportedCurrencyError(AppException):
    """Currency code is not known to the source that was asked."""
    def __init__(self, code: str, details: Any = None):
        self.code = code
        super().__init__(
            "Unsupported currency",
            status.HTTP_400_BAD_REQUEST,
            details if details is not None else {"currency": code},
        )


class UpstreamUnavailableError(AppException):
    """External rate provider failed: network, timeout, HTTP status or payload shape."""
    def __init__(self, message: str = "Upstream rate provider unavailable", details: Any = None):
        super().__init__(message, status.HTTP_502_BAD_GATEWAY, details)


class StorageFailureError(AppException):
    """Cache or history persistence could not be read or written."""
    def __init__(self, message: str = "Storage failure", details: Any = None):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR, details)


class InvalidRecordError(AppException):
    """History record is missing required fields or carries invalid values."""
    def __init__(self, message: str = "Invalid history record", details: Any = None):
        super().__init__(message, status.HTTP_400_BAD_REQUEST, details)


def _error_content(message: Any, path: str, details: Any = None) -> dict:
    return {
        "success": False,
        "error": message,
        "details": details,
        "path": path,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle custom application exceptions."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"Application exception: {exc.message}",
        extra={
            "status_code": exc.status_code,
            "path": request.url.path,
            "details": exc.details,
        },
    )

    if exc.status_code >= 500:
        record_exception(exc, request)

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_content(exc.message, request.url.path, exc.details),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTP exceptions."""
    logger.warning(
        f"HTTP exception: {exc.detail}",
        extra={
            "status_code": exc.status_code,
            "path": request.url.path,
        },
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_content(exc.detail, request.url.path),
        headers=getattr(exc, "headers", None),
    )


def _serialize_validation_errors(errors: list) -> list:
    """Convert validation errors to JSON-serializable format."""
    serialized = []
    for error in errors:
        serialized_error = {}
        for key, value in error.items():
            if key == "ctx" and isinstance(value, dict):
                # ctx may hold exception instances raised by validators
                serialized_error[key] = {
                    ctx_key: str(ctx_value) if isinstance(ctx_value, Exception) else ctx_value
                    for ctx_key, ctx_value in value.items()
                }
            elif isinstance(value, Exception):
                serialized_error[key] = str(value)
            else:
                serialized_error[key] = value
        serialized.append(serialized_error)
    return serialized


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors."""
    serialized_errors = _serialize_validation_errors(exc.errors())

    logger.warning(
        f"Validation error: {serialized_errors}",
        extra={
            "path": request.url.path,
            "errors": serialized_errors,
        },
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_content("Validation error", request.url.path, serialized_errors),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception(
        f"Unhandled exception: {str(exc)}",
        extra={
            "path": request.url.path,
            "exception_type": type(exc).__name__,
        },
    )

    record_exception(exc, request)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_content("Internal server error", request.url.path),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
