"""
Code Search - Line-oriented search over a bounded set of repository files.

Search types:
- text:  case-insensitive substring
- regex: case-insensitive regular expression (falls back to text when the
         pattern does not compile)
- ast:   definition-shaped patterns around the query (function, class,
         def, const/let/var, exports, arrow functions). Textual, no parser.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from code_analyzer.core.config import AnalysisLimits
from code_analyzer.models.requests import SearchType
from code_analyzer.models.schemas import FetchedFile, SearchMatch
from code_analyzer.services.fetcher import FetchStage
from code_analyzer.services.github_client import GitHubClient

logger = logging.getLogger(__name__)

SEARCHABLE_FILE_PATTERN = re.compile(
    r"\.(js|jsx|ts|tsx|py|go|rs|java|rb|php|c|cpp|h|hpp|cs|swift|kt|scala|md|json|yaml|yml)$",
    re.IGNORECASE,
)

_DEFINITION_TEMPLATES = (
    r"function\s+{q}\s*\(",
    r"const\s+{q}\s*=",
    r"let\s+{q}\s*=",
    r"var\s+{q}\s*=",
    r"class\s+{q}\s*[{{<(:]",
    r"def\s+{q}\s*\(",
    r"async\s+function\s+{q}",
    r"export\s+(const|let|var|function|class)\s+{q}",
    r"{q}\s*=\s*\(.*\)\s*=>",
)

LineMatcher = Callable[[str], bool]


@dataclass
class _PathTarget:
    path: str
    sha: Optional[str] = None


def is_searchable(path: str) -> bool:
    return bool(SEARCHABLE_FILE_PATTERN.search(path))


def _text_matcher(query: str) -> LineMatcher:
    needle = query.lower()
    return lambda line: needle in line.lower()


def build_matcher(query: str, search_type: SearchType) -> LineMatcher:
    """Line predicate for the given search type."""
    if search_type == SearchType.REGEX:
        try:
            pattern = re.compile(query, re.IGNORECASE)
        except re.error as e:
            logger.info(f"Invalid regex {query!r} ({e}), falling back to text search")
            return _text_matcher(query)
        return lambda line: pattern.search(line) is not None

    if search_type == SearchType.AST:
        escaped = re.escape(query)
        patterns = [
            re.compile(template.format(q=escaped), re.IGNORECASE)
            for template in _DEFINITION_TEMPLATES
        ]
        return lambda line: any(p.search(line) for p in patterns)

    return _text_matcher(query)


def search_file(file: FetchedFile, matcher: LineMatcher) -> List[SearchMatch]:
    return [
        SearchMatch(file=file.path, line=index, content=line.strip())
        for index, line in enumerate(file.content.split("\n"), start=1)
        if matcher(line)
    ]


class CodeSearcher:
    """Fetches searchable files and collects matching lines in file order."""

    def __init__(self, github: GitHubClient, limits: Optional[AnalysisLimits] = None):
        self.limits = limits or AnalysisLimits()
        self.fetcher = FetchStage(github, self.limits)

    async def search(
        self,
        owner: str,
        repo: str,
        file_paths: Sequence[str],
        query: str,
        search_type: SearchType = SearchType.TEXT
    ) -> List[SearchMatch]:
        targets = [_PathTarget(p) for p in file_paths if is_searchable(p)]
        targets = targets[: self.limits.max_search_files]

        files = await self.fetcher.fetch(owner, repo, targets, max_files=len(targets))
        matcher = build_matcher(query, search_type)

        results: List[SearchMatch] = []
        for file in files:
            results.extend(search_file(file, matcher))
            if len(results) >= self.limits.max_search_results:
                break

        logger.info(f"Search for {query!r} ({search_type.value}) matched {len(results)} lines in {owner}/{repo}")
        return results[: self.limits.max_search_results]
