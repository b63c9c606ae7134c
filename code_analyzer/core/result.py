"""
Step results for best-effort pipeline steps.

A best-effort step (AI escalation, a single file fetch, AI quality review)
never raises. It returns a StepResult, and the caller decides explicitly
whether to use the data or fall back, so the recovery policy is visible at
the call site instead of hidden in an empty except block.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """Why a step failed."""
    BAD_REQUEST = "bad_request"
    UPSTREAM_NOT_FOUND = "upstream_not_found"
    UPSTREAM_ERROR = "upstream_error"
    PARSE_ERROR = "parse_error"
    PARTIAL_FAILURE = "partial_failure"
    NOT_CONFIGURED = "not_configured"


@dataclass
class StepResult:
    """Result returned by a best-effort step."""
    success: bool
    data: Any = None
    error: Optional[str] = None
    kind: Optional[ErrorKind] = None
    status_code: Optional[int] = None

    @classmethod
    def ok(cls, data: Any) -> "StepResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(
        cls,
        kind: ErrorKind,
        error: str,
        status_code: Optional[int] = None
    ) -> "StepResult":
        return cls(success=False, error=error, kind=kind, status_code=status_code)
