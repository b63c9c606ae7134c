"""
Security Pattern Library - Regex heuristics for risky code.

These are line-agnostic textual heuristics, not a parser: they run over
whole file contents and report where a risky construct appears to be used.
False positives are expected and acceptable; every entry carries a
recommendation so a reviewer can judge the hit quickly.
"""

import re
from dataclasses import dataclass
from typing import Tuple

from code_analyzer.models.schemas import Severity


@dataclass(frozen=True)
class SecurityPattern:
    """One detection rule."""
    pattern: "re.Pattern[str]"
    title: str
    severity: Severity
    description: str
    recommendation: str


def _rule(regex: str, title: str, severity: Severity, description: str, recommendation: str) -> SecurityPattern:
    return SecurityPattern(
        pattern=re.compile(regex, re.IGNORECASE),
        title=title,
        severity=severity,
        description=description,
        recommendation=recommendation,
    )


PATTERNS: Tuple[SecurityPattern, ...] = (
    _rule(
        r"eval\s*\(",
        "Unsafe eval() usage",
        Severity.HIGH,
        "Using eval() can execute arbitrary code and is a security risk",
        "Use safer alternatives like JSON.parse() or ast.literal_eval()",
    ),
    _rule(
        r"innerHTML\s*=",
        "Potential XSS via innerHTML",
        Severity.MEDIUM,
        "Setting innerHTML directly can lead to Cross-Site Scripting (XSS) attacks",
        "Use textContent or sanitize HTML before insertion",
    ),
    _rule(
        r"dangerouslySetInnerHTML",
        "Dangerous React HTML injection",
        Severity.MEDIUM,
        "dangerouslySetInnerHTML can lead to XSS if input is not sanitized",
        "Ensure all data is properly sanitized before using",
    ),
    _rule(
        r"(password|secret|api[_-]?key|token)\s*[:=]\s*['\"][^'\"]{8,}['\"]",
        "Potential hardcoded secret",
        Severity.CRITICAL,
        "Hardcoded credentials or API keys detected in source code",
        "Use environment variables or secret management services",
    ),
    _rule(
        r"exec\s*\(|spawn\s*\(|execSync",
        "Command execution",
        Severity.HIGH,
        "Direct command execution can lead to command injection attacks",
        "Validate and sanitize all inputs, use parameterized commands",
    ),
    _rule(
        r"SQL.*\+.*\$|`.*SELECT.*\$|\$\{.*\}.*WHERE",
        "Potential SQL injection",
        Severity.CRITICAL,
        "String concatenation in SQL queries can lead to SQL injection",
        "Use parameterized queries or an ORM",
    ),
    _rule(
        r"md5|sha1\s*\(",
        "Weak cryptographic algorithm",
        Severity.MEDIUM,
        "MD5 and SHA1 are considered weak for security purposes",
        "Use SHA-256 or bcrypt for password hashing",
    ),
    _rule(
        r"cors\s*:\s*\*|Access-Control-Allow-Origin.*\*",
        "Permissive CORS configuration",
        Severity.MEDIUM,
        "Allowing all origins can expose the API to cross-origin attacks",
        "Restrict CORS to specific trusted domains",
    ),
    _rule(
        r"http://(?!localhost|127\.0\.0\.1)",
        "Non-HTTPS URL",
        Severity.LOW,
        "Using HTTP instead of HTTPS can expose data in transit",
        "Use HTTPS for all external communications",
    ),
    _rule(
        r"pickle\.loads?\s*\(",
        "Insecure deserialization",
        Severity.HIGH,
        "Unpickling untrusted data can execute arbitrary code",
        "Use a data-only format such as JSON for untrusted input",
    ),
    _rule(
        r"shell\s*=\s*True",
        "Shell command with shell=True",
        Severity.HIGH,
        "Passing a command string through the shell enables command injection",
        "Pass an argument list and leave shell=False",
    ),
    _rule(
        r"verify\s*=\s*False",
        "TLS verification disabled",
        Severity.MEDIUM,
        "Disabling certificate verification allows man-in-the-middle attacks",
        "Keep certificate verification enabled and configure a CA bundle if needed",
    ),
    _rule(
        r"\.env|process\.env\.[A-Z_]+",
        "Environment variable usage",
        Severity.INFO,
        "Environment variables detected - ensure .env files are gitignored",
        "Verify .gitignore includes .env files",
    ),
)
