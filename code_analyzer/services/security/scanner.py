"""
Security Scanner - Runs the pattern library over repository files.

FLOW:
1. Keep code files (and package.json manifests), cap at max_scan_files
2. Fetch each once (failures are skipped, counted in the debug summary)
3. Run every non-info pattern over the whole content
4. Collapse near-duplicates: same file, same title, within the line window
5. Stable sort, most severe first, and summarize
"""

import logging
import posixpath
import re
from typing import Iterator, List, Optional, Sequence, Tuple

from code_analyzer.core.config import AnalysisLimits
from code_analyzer.models.schemas import (
    FetchedFile,
    Finding,
    ScanDebug,
    ScanSummary,
    Severity,
)
from code_analyzer.services.fetcher import FetchStage, FileTarget
from code_analyzer.services.github_client import GitHubClient
from code_analyzer.services.security.patterns import PATTERNS, SecurityPattern

logger = logging.getLogger(__name__)

CODE_FILE_PATTERN = re.compile(r"\.(js|jsx|ts|tsx|py|java|php|rb|go|rs)$", re.IGNORECASE)
MANIFEST_NAME = "package.json"


def is_scannable(path: str) -> bool:
    return bool(CODE_FILE_PATTERN.search(path)) or posixpath.basename(path) == MANIFEST_NAME


def line_number(content: str, offset: int) -> int:
    """1-based line of a character offset."""
    return content.count("\n", 0, offset) + 1


def find_matches(pattern: "re.Pattern[str]", content: str) -> Iterator[int]:
    """
    Yield the start offset of every match over the whole content.

    The cursor is advanced by hand past zero-width matches so the loop
    always terminates.
    """
    position = 0
    length = len(content)
    while position <= length:
        match = pattern.search(content, position)
        if match is None:
            return
        yield match.start()
        position = match.end() if match.end() > match.start() else match.start() + 1


def is_duplicate(findings: Sequence[Finding], file: str, title: str, line: int, window: int) -> bool:
    return any(
        f.file == file and f.title == title and abs(f.line - line) < window
        for f in findings
    )


def sort_findings(findings: Sequence[Finding]) -> List[Finding]:
    """Most severe first; ties keep discovery order."""
    return sorted(findings, key=lambda f: f.severity.rank)


def summarize(findings: Sequence[Finding], debug: Optional[ScanDebug] = None) -> ScanSummary:
    counts = {severity: 0 for severity in Severity}
    for finding in findings:
        counts[finding.severity] += 1
    return ScanSummary(
        total=len(findings),
        critical=counts[Severity.CRITICAL],
        high=counts[Severity.HIGH],
        medium=counts[Severity.MEDIUM],
        low=counts[Severity.LOW],
        info=counts[Severity.INFO],
        debug=debug or ScanDebug(),
    )


def scan_file(
    file: FetchedFile,
    patterns: Sequence[SecurityPattern] = PATTERNS,
    window: int = 5,
    findings: Optional[List[Finding]] = None
) -> List[Finding]:
    """
    Scan one file's content, appending to `findings` when given.

    Info-severity rules are skipped.
    """
    findings = findings if findings is not None else []
    for rule in patterns:
        if rule.severity is Severity.INFO:
            continue
        for offset in find_matches(rule.pattern, file.content):
            line = line_number(file.content, offset)
            if is_duplicate(findings, file.path, rule.title, line, window):
                continue
            findings.append(Finding(
                title=rule.title,
                severity=rule.severity,
                description=rule.description,
                recommendation=rule.recommendation,
                file=file.path,
                line=line,
            ))
    return findings


class SecurityScanner:
    """Pattern-based scan over a bounded set of repository files."""

    def __init__(
        self,
        github: GitHubClient,
        limits: Optional[AnalysisLimits] = None,
        patterns: Sequence[SecurityPattern] = PATTERNS
    ):
        self.limits = limits or AnalysisLimits()
        self.fetcher = FetchStage(github, self.limits)
        self.patterns = patterns

    async def scan(
        self,
        owner: str,
        repo: str,
        files: Sequence[FileTarget]
    ) -> Tuple[List[Finding], ScanSummary]:
        code_files = [f for f in files if is_scannable(f.path)]
        to_scan = code_files[: self.limits.max_scan_files]
        logger.info(f"Scanning {len(to_scan)} of {len(code_files)} code files in {owner}/{repo}")

        fetched = await self.fetcher.fetch(owner, repo, to_scan, max_files=len(to_scan))

        findings: List[Finding] = []
        for file in fetched:
            scan_file(file, self.patterns, self.limits.duplicate_line_window, findings)

        findings = sort_findings(findings)
        debug = ScanDebug(
            total_files_provided=len(files),
            code_files_found=len(code_files),
            files_successfully_fetched=len(fetched),
        )
        logger.info(f"Scan of {owner}/{repo} produced {len(findings)} findings")
        return findings, summarize(findings, debug)
