"""
Core Module - Configuration, errors and dependency injection.
"""

from code_analyzer.core.config import AnalysisLimits, Settings, get_settings, settings
from code_analyzer.core.result import ErrorKind, StepResult

__all__ = [
    "AnalysisLimits",
    "Settings",
    "get_settings",
    "settings",
    "ErrorKind",
    "StepResult",
]
