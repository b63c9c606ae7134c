"""
API Middleware - Request/response processing middleware.
"""

from code_analyzer.api.middleware.error_handler import (
    AppException,
    BadRequestError,
    UpstreamNotFoundError,
    UpstreamError,
    ServiceNotConfiguredError,
    ContentTooLargeError,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler,
)

__all__ = [
    "AppException",
    "BadRequestError",
    "UpstreamNotFoundError",
    "UpstreamError",
    "ServiceNotConfiguredError",
    "ContentTooLargeError",
    "app_exception_handler",
    "http_exception_handler",
    "validation_exception_handler",
    "generic_exception_handler",
]
