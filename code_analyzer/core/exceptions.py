"""
Application exceptions.

Raised for failures in required steps (missing parameters, repository not
found, backend not configured, upstream errors). The API layer renders
them as structured JSON errors; best-effort steps never raise them and
return a StepResult instead.
"""

from typing import Optional


class AppException(Exception):
    """Base exception for application errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        details: dict = None
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class BadRequestError(AppException):
    """Raised when required request fields are missing or invalid."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            error_code="BAD_REQUEST",
            status_code=400
        )


class UpstreamNotFoundError(AppException):
    """Raised when the remote repository or resource does not exist."""

    def __init__(self, message: str, resource: str = None):
        super().__init__(
            message=message,
            error_code="UPSTREAM_NOT_FOUND",
            status_code=404,
            details={"resource": resource} if resource else {}
        )


class UpstreamError(AppException):
    """Raised on a non-2xx response from the code host or completion backend."""

    def __init__(self, message: str, upstream_status: Optional[int] = None):
        status_code = upstream_status if upstream_status and upstream_status >= 400 else 502
        super().__init__(
            message=message,
            error_code="UPSTREAM_ERROR",
            status_code=status_code,
            details={"upstream_status": upstream_status} if upstream_status else {}
        )


class ServiceNotConfiguredError(AppException):
    """Raised when an AI-only endpoint is called without a backend key."""

    def __init__(self, service: str = "AI service"):
        super().__init__(
            message=f"{service} not configured",
            error_code="SERVICE_NOT_CONFIGURED",
            status_code=503
        )


class ContentTooLargeError(AppException):
    """Raised when a file is too large to send to the completion backend."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            error_code="CONTENT_TOO_LARGE",
            status_code=400
        )
