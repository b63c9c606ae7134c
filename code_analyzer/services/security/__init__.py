"""Regex-based security scanning."""

from code_analyzer.services.security.patterns import PATTERNS, SecurityPattern
from code_analyzer.services.security.scanner import (
    SecurityScanner,
    find_matches,
    is_scannable,
    line_number,
    scan_file,
    sort_findings,
    summarize,
)

__all__ = [
    "PATTERNS",
    "SecurityPattern",
    "SecurityScanner",
    "find_matches",
    "is_scannable",
    "line_number",
    "scan_file",
    "sort_findings",
    "summarize",
]
