"""
Quality Analyzer - Heuristic metrics with an optional AI review.

Metrics are computed from the text alone: line counts, comment lines
(`//` or `#` prefixed) and a cyclomatic-style complexity from branch
keyword counts. When the completion backend is configured it is asked for
a score, a one-sentence summary and a list of issues; a failed or
malformed review leaves the heuristic report in place.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from code_analyzer.core.config import AnalysisLimits
from code_analyzer.core.exceptions import ContentTooLargeError, ServiceNotConfiguredError, UpstreamError
from code_analyzer.core.result import ErrorKind, StepResult
from code_analyzer.models.responses import QualityResponse
from code_analyzer.models.schemas import QualityMetrics
from code_analyzer.services.artifacts import word_count
from code_analyzer.services.fetcher import fetch_required
from code_analyzer.services.github_client import GitHubClient
from code_analyzer.services.llm_client import LLMClient, strip_code_fences

logger = logging.getLogger(__name__)

MAX_REVIEW_CHARS = 8000

COMPLEXITY_PATTERNS = (
    re.compile(r"if\s*\("),
    re.compile(r"else\s*\{"),
    re.compile(r"for\s*\("),
    re.compile(r"while\s*\("),
    re.compile(r"switch\s*\("),
    re.compile(r"try\s*\{"),
    re.compile(r"catch\s*\("),
    re.compile(r"\?\s*.*\s*:"),  # ternary
    # Python block statements (parenthesized conditions are counted above)
    re.compile(r"^\s*(el)?if\s+[^(\s].*:\s*$", re.MULTILINE),
    re.compile(r"^\s*(for|while)\s+[^(\s].*:\s*$", re.MULTILINE),
    re.compile(r"^\s*except\b.*:\s*$", re.MULTILINE),
)

QUALITY_SYSTEM_PROMPT = (
    "Analyze this code for quality. Return JSON with: score (0-100), summary (1 sentence), "
    "issues (array of {severity, line, message}). Be concise."
)


@dataclass
class AIReview:
    score: Optional[int] = None
    summary: Optional[str] = None
    issues: Optional[List[Dict[str, Any]]] = None


def _is_comment(line: str) -> bool:
    stripped = line.strip()
    return stripped.startswith("//") or stripped.startswith("#")


def cyclomatic_complexity(content: str) -> int:
    return 1 + sum(len(pattern.findall(content)) for pattern in COMPLEXITY_PATTERNS)


def complexity_level(complexity: int) -> str:
    if complexity <= 5:
        return "Low"
    if complexity <= 15:
        return "Medium"
    if complexity <= 30:
        return "High"
    return "Very High"


def compute_metrics(content: str) -> QualityMetrics:
    lines = content.split("\n")
    comment_lines = sum(1 for line in lines if _is_comment(line))
    code_lines = sum(1 for line in lines if line.strip() and not _is_comment(line))
    complexity = cyclomatic_complexity(content)
    return QualityMetrics(
        lines=len(lines),
        code_lines=code_lines,
        comment_lines=comment_lines,
        complexity=complexity_level(complexity),
        cyclomatic_complexity=complexity,
    )


def base_score(metrics: QualityMetrics) -> int:
    """100, minus 2 per complexity point, minus 10 when under 10% comments."""
    penalty = metrics.cyclomatic_complexity * 2
    if metrics.comment_lines < metrics.code_lines * 0.1:
        penalty += 10
    return min(100, max(0, 100 - penalty))


def parse_review(content: str) -> StepResult:
    """Parse the model's JSON review. Returns StepResult[AIReview]."""
    try:
        data = json.loads(strip_code_fences(content))
    except ValueError as e:
        return StepResult.fail(ErrorKind.PARSE_ERROR, f"Quality review is not JSON: {e}")
    if not isinstance(data, dict):
        return StepResult.fail(ErrorKind.PARSE_ERROR, "Quality review is not an object")

    score = data.get("score")
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        score = None
    else:
        score = int(min(100, max(0, score)))

    summary = data.get("summary") if isinstance(data.get("summary"), str) else None
    issues = data.get("issues")
    if isinstance(issues, list):
        issues = [issue for issue in issues if isinstance(issue, dict)]
    else:
        issues = None

    return StepResult.ok(AIReview(score=score, summary=summary, issues=issues))


class QualityAnalyzer:
    """Builds a quality report for one file."""

    def __init__(
        self,
        github: GitHubClient,
        llm: Optional[LLMClient] = None,
        limits: Optional[AnalysisLimits] = None
    ):
        self.github = github
        self.llm = llm
        self.limits = limits or AnalysisLimits()

    async def analyze(self, owner: str, repo: str, file_path: str) -> QualityResponse:
        file = await fetch_required(self.github, owner, repo, file_path)
        if word_count(file.content) > self.limits.max_artifact_words:
            raise ContentTooLargeError(
                f"File is too large (over {self.limits.max_artifact_words} words)"
            )

        metrics = compute_metrics(file.content)
        review = AIReview()
        if self.llm is not None and self.llm.is_configured:
            outcome = await self._review(file_path, file.content)
            if outcome.success:
                review = outcome.data
            else:
                logger.warning(f"AI quality review skipped ({outcome.kind.value}): {outcome.error}")

        summary = review.summary or (
            f"File has {metrics.complexity.lower()} complexity with {metrics.code_lines} lines of code."
        )
        return QualityResponse(
            score=review.score if review.score else base_score(metrics),
            summary=summary,
            metrics=metrics,
            issues=review.issues or [],
        )

    async def _review(self, file_path: str, content: str) -> StepResult:
        try:
            answer = await self.llm.generate(
                f"Analyze this {file_path}:\n\n{content[:MAX_REVIEW_CHARS]}",
                system_prompt=QUALITY_SYSTEM_PROMPT,
                max_tokens=1000,
                temperature=0,
            )
        except ServiceNotConfiguredError as e:
            return StepResult.fail(ErrorKind.NOT_CONFIGURED, e.message)
        except UpstreamError as e:
            return StepResult.fail(ErrorKind.UPSTREAM_ERROR, e.message, status_code=e.status_code)
        except ValueError as e:
            return StepResult.fail(ErrorKind.PARSE_ERROR, f"Invalid AI response: {e}")
        return parse_review(answer)
