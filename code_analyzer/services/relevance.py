"""
Relevance Selector - Picks the files most likely to answer a question.

FLOW:
1. Match the lower-cased question against a fixed keyword table; the
   markers of every matched topic are unioned (defaults when none match)
2. Keep every path whose lower-cased form CONTAINS a marker (substring
   match: a `config/` directory matches the `.config.js` marker too)
3. Put the always-important files (README, manifests) first
4. Cap at max_selected_files
5. If fewer than 3 paths survived and the AI backend is configured, ask
   the model to pick from the first max_ai_candidate_paths paths. Its
   answer is only used if it parses to a non-empty JSON array of paths
   that exist; anything else keeps the heuristic result.
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from code_analyzer.core.config import AnalysisLimits
from code_analyzer.core.exceptions import UpstreamError
from code_analyzer.core.result import ErrorKind, StepResult
from code_analyzer.models.schemas import SelectionSource
from code_analyzer.services.llm_client import LLMClient, strip_code_fences

logger = logging.getLogger(__name__)


class Topic(str, Enum):
    """Question keywords that steer file selection."""
    SECURITY = "security"
    VULNERABILITY = "vulnerability"
    ARCHITECTURE = "architecture"
    README = "readme"
    CONFIG = "config"
    TEST = "test"
    STYLE = "style"
    API = "api"


_SOURCE_MARKERS = (
    ".js", ".jsx", ".ts", ".tsx", ".py", ".java", ".php", ".rb", ".go", ".rs",
    "package.json",
)

TOPIC_MARKERS: Dict[Topic, Tuple[str, ...]] = {
    Topic.SECURITY: _SOURCE_MARKERS,
    Topic.VULNERABILITY: _SOURCE_MARKERS,
    Topic.ARCHITECTURE: (".md", ".json", ".yaml", ".yml", ".toml"),
    Topic.README: ("README.md", "readme.md", "README", "readme"),
    Topic.CONFIG: (".json", ".yaml", ".yml", ".toml", ".config.js", ".config.ts"),
    Topic.TEST: (".test.", ".spec.", "__tests__"),
    Topic.STYLE: (".css", ".scss", ".sass", ".less", ".styled."),
    Topic.API: ("api/", "routes/", "controllers/", "handlers/"),
}

DEFAULT_MARKERS: Tuple[str, ...] = (
    ".js", ".jsx", ".ts", ".tsx", ".py", ".go", ".rs", ".java", ".md", ".json",
)

# Priority order: earlier entries come first in the selection
IMPORTANT_FILES: Tuple[str, ...] = (
    "README.md",
    "package.json",
    "tsconfig.json",
    "pyproject.toml",
    "go.mod",
    "Cargo.toml",
)

RELEVANCE_SYSTEM_PROMPT = (
    "You are a code analysis assistant. Given a question and a list of file paths, "
    "select the most relevant files (max {max_files}) that would help answer the question. "
    "Return ONLY a JSON array of file paths, nothing else."
)


@dataclass
class RelevanceResult:
    """Ordered, bounded selection of repository paths."""
    selected_paths: List[str]
    source: SelectionSource = SelectionSource.HEURISTIC


def markers_for_question(question: str) -> List[str]:
    """Union of the markers of every topic mentioned in the question."""
    lowered = question.lower()
    markers: List[str] = []
    for topic, topic_markers in TOPIC_MARKERS.items():
        if topic.value in lowered:
            markers.extend(topic_markers)
    # Markers are compared against lower-cased paths
    markers = [m.lower() for m in markers] or [m.lower() for m in DEFAULT_MARKERS]
    return list(dict.fromkeys(markers))


def find_important_files(paths: Sequence[str]) -> List[str]:
    """First path ending with each always-important name, in priority order."""
    found: List[str] = []
    for name in IMPORTANT_FILES:
        suffix = name.lower()
        match = next((p for p in paths if p.lower().endswith(suffix)), None)
        if match is not None and match not in found:
            found.append(match)
    return found


def select_heuristic(
    question: str,
    available_paths: Sequence[str],
    max_files: int = 15
) -> List[str]:
    """Keyword-driven selection; deterministic for a fixed keyword table."""
    markers = markers_for_question(question)
    matched = [
        path for path in dict.fromkeys(available_paths)
        if any(marker in path.lower() for marker in markers)
    ]
    important = find_important_files(available_paths)
    important_set = set(important)
    combined = important + [p for p in matched if p not in important_set]
    return combined[:max_files]


def parse_ai_selection(
    content: str,
    available_paths: Sequence[str],
    max_files: int = 15
) -> StepResult:
    """
    Parse the model's answer into a list of existing paths.

    Returns StepResult[List[str]]; PARSE_ERROR when the answer is not a
    non-empty JSON array. Paths that do not exist are dropped, which may
    leave the selection empty.
    """
    try:
        parsed = json.loads(strip_code_fences(content))
    except ValueError as e:
        return StepResult.fail(ErrorKind.PARSE_ERROR, f"AI selection is not JSON: {e}")

    if not isinstance(parsed, list) or not parsed:
        return StepResult.fail(ErrorKind.PARSE_ERROR, "AI selection is not a non-empty array")

    available = set(available_paths)
    selected = [
        p for p in dict.fromkeys(item for item in parsed if isinstance(item, str))
        if p in available
    ][:max_files]
    return StepResult.ok(selected)


class RelevanceSelector:
    """
    Chooses a bounded, ordered subset of paths for a question.

    Never raises: AI escalation failures fall back to the heuristic result.
    """

    def __init__(self, llm: Optional[LLMClient] = None, limits: Optional[AnalysisLimits] = None):
        self.llm = llm
        self.limits = limits or AnalysisLimits()

    async def select(self, question: str, available_paths: Sequence[str]) -> RelevanceResult:
        selected = select_heuristic(question, available_paths, self.limits.max_selected_files)
        logger.info(f"Heuristic selected {len(selected)} of {len(available_paths)} paths")

        if len(selected) >= 3 or self.llm is None or not self.llm.is_configured:
            return RelevanceResult(selected_paths=selected)

        escalation = await self._ask_ai(question, available_paths)
        if not escalation.success:
            # Deliberately ignored: the heuristic selection stands
            logger.warning(f"AI relevance escalation skipped ({escalation.kind.value}): {escalation.error}")
            return RelevanceResult(selected_paths=selected)

        logger.info(f"AI escalation selected {len(escalation.data)} paths")
        return RelevanceResult(selected_paths=escalation.data, source=SelectionSource.AI)

    async def _ask_ai(self, question: str, available_paths: Sequence[str]) -> StepResult:
        candidates = list(available_paths)[: self.limits.max_ai_candidate_paths]
        candidate_list = "\n".join(candidates)
        messages = [
            {
                "role": "system",
                "content": RELEVANCE_SYSTEM_PROMPT.format(max_files=self.limits.max_ai_selected_files),
            },
            {
                "role": "user",
                "content": (
                    f"Question: {question}\n\nAvailable files:\n{candidate_list}\n\n"
                    "Return a JSON array of the most relevant file paths:"
                ),
            },
        ]
        try:
            content = await self.llm.complete(messages, max_tokens=1000, temperature=0)
        except UpstreamError as e:
            return StepResult.fail(ErrorKind.UPSTREAM_ERROR, e.message, status_code=e.status_code)
        except ValueError as e:
            return StepResult.fail(ErrorKind.PARSE_ERROR, f"Invalid AI response: {e}")

        return parse_ai_selection(content or "[]", available_paths, self.limits.max_selected_files)
