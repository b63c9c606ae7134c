"""
Error Handler Middleware - Global exception handling for the API.

The exception classes live in code_analyzer.core.exceptions so services can
raise them without importing the API layer; they are re-exported here.

Catches exceptions and returns consistent error responses:
    {"success": false, "error": "...", "error_code": "...", "timestamp": "..."}
"""

import logging
import traceback
from datetime import datetime, timezone

from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from code_analyzer.core.config import get_settings
from code_analyzer.core.exceptions import (
    AppException,
    BadRequestError,
    UpstreamNotFoundError,
    UpstreamError,
    ServiceNotConfiguredError,
    ContentTooLargeError,
)

logger = logging.getLogger(__name__)


def create_error_response(
    message: str,
    error_code: str = "INTERNAL_ERROR",
    status_code: int = 500,
    details: dict = None
) -> JSONResponse:
    """Create a standardized error response."""
    settings = get_settings()

    content = {
        "success": False,
        "error": message,
        "error_code": error_code,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }

    # Include details in debug mode
    if details and settings.debug:
        content["details"] = details

    return JSONResponse(
        status_code=status_code,
        content=content
    )


async def app_exception_handler(
    request: Request,
    exc: AppException
) -> JSONResponse:
    """Handle application-specific exceptions."""
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.error_code}: {exc.message}")
    return create_error_response(
        message=exc.message,
        error_code=exc.error_code,
        status_code=exc.status_code,
        details=exc.details
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException
) -> JSONResponse:
    """Handle HTTP exceptions (404 route, 405 method not allowed, ...)."""
    return create_error_response(
        message=str(exc.detail),
        error_code="HTTP_ERROR",
        status_code=exc.status_code
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """
    Handle request validation errors.

    Missing or malformed fields are a bad request: nothing upstream has
    been called yet, so the caller gets a 400 with the offending fields.
    """
    errors = []
    fields = []
    for error in exc.errors():
        loc = [str(l) for l in error["loc"] if l != "body"]
        fields.append(".".join(loc) or "body")
        errors.append(f"{' -> '.join(loc) or 'body'}: {error['msg']}")

    return create_error_response(
        message=f"Missing or invalid fields: {', '.join(fields)}",
        error_code="VALIDATION_ERROR",
        status_code=400,
        details={"errors": errors}
    )


async def generic_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """Handle unexpected exceptions."""
    settings = get_settings()

    traceback_str = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    logger.error(f"Unexpected error on {request.url.path}: {traceback_str}")

    details = None
    if settings.debug:
        details = {
            "exception_type": type(exc).__name__,
            "traceback": traceback_str
        }

    return create_error_response(
        message=str(exc) or "An unexpected error occurred",
        error_code="INTERNAL_ERROR",
        status_code=500,
        details=details
    )
