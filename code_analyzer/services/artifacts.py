"""
Artifact Generator - Documentation, tests or refactoring notes for one file.

Requires the completion backend. The file is fetched by path; files over
max_artifact_words words are rejected before anything is sent to the model.
"""

import logging
from typing import Dict, Optional

from code_analyzer.core.config import AnalysisLimits
from code_analyzer.core.exceptions import ContentTooLargeError, ServiceNotConfiguredError
from code_analyzer.models.requests import ArtifactType
from code_analyzer.services.fetcher import fetch_required
from code_analyzer.services.github_client import GitHubClient
from code_analyzer.services.llm_client import LLMClient

logger = logging.getLogger(__name__)

ARTIFACT_PROMPTS: Dict[ArtifactType, str] = {
    ArtifactType.DOC: (
        "Generate comprehensive documentation comments (JSDoc/TSDoc, docstrings, or the "
        "language's equivalent) for all functions, classes, and exports in this code. "
        "Include parameter types, return types, and descriptions. Return ONLY the documented code."
    ),
    ArtifactType.TEST: (
        "Generate comprehensive unit tests for this code using the test framework most common "
        "for its language (for example Jest for JavaScript, pytest for Python). Include tests for "
        "all exported functions and edge cases. Return ONLY the test file code."
    ),
    ArtifactType.REFACTOR: (
        "Analyze this code and provide specific refactoring suggestions with examples. Focus on: "
        "code organization, naming, error handling, performance, and best practices. "
        "Be specific and actionable."
    ),
}


def word_count(content: str) -> int:
    return len(content.split())


class ArtifactGenerator:
    """Generates one artifact per request."""

    def __init__(self, github: GitHubClient, llm: LLMClient, limits: Optional[AnalysisLimits] = None):
        self.github = github
        self.llm = llm
        self.limits = limits or AnalysisLimits()

    async def generate(self, owner: str, repo: str, file_path: str, artifact_type: ArtifactType) -> str:
        if not self.llm.is_configured:
            raise ServiceNotConfiguredError()

        file = await fetch_required(self.github, owner, repo, file_path)

        words = word_count(file.content)
        if words > self.limits.max_artifact_words:
            raise ContentTooLargeError(
                f"File is too large (over {self.limits.max_artifact_words} words)"
            )

        logger.info(f"Generating {artifact_type.value} artifact for {owner}/{repo}:{file_path} ({words} words)")
        return await self.llm.generate(
            f"File: {file_path}\n\n{file.content}",
            system_prompt=ARTIFACT_PROMPTS[artifact_type],
            max_tokens=4000,
            temperature=0.3,
        )
