"""
API Request Models - Pydantic models for request validation.

Bodies are validated at the boundary; a missing required field becomes a
400 before any upstream call is made. Fields are accepted in camelCase
(as sent by the web client) or snake_case.
"""

from typing import Optional, List
from enum import Enum
from pydantic import Field, field_validator
import re

from code_analyzer.models.schemas import (
    CamelModel,
    ChatMessage,
    ChatRepoRef,
    OwnerProfile,
    StructuredDiagram,
)


_NAME_PATTERN = re.compile(r"^[\w.\-]+$")


class RepoRequest(CamelModel):
    """Base for requests that address a GitHub repository."""
    owner: str = Field(..., min_length=1, description="Repository owner")
    repo: str = Field(..., min_length=1, description="Repository name")

    @field_validator("owner", "repo")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Owner and repository names are single path segments."""
        v = v.strip()
        if not _NAME_PATTERN.match(v):
            raise ValueError("Invalid GitHub owner or repository name")
        return v


class FileSpec(CamelModel):
    """A file to fetch; the SHA is optional and resolved from the tree."""
    path: str = Field(..., min_length=1)
    sha: Optional[str] = None


class AnalyzeRequest(CamelModel):
    """
    Request to select the files relevant to a question.

    Example:
        {
            "question": "Are there any security issues?",
            "filePaths": ["src/app.js", "package.json"],
            "owner": "octocat",
            "repo": "hello-world"
        }
    """
    question: str = Field(..., min_length=1, max_length=4000)
    file_paths: List[str] = Field(..., description="Every file path in the repository")
    owner: Optional[str] = None
    repo: Optional[str] = None


class FetchRequest(RepoRequest):
    """
    Request to list a repository tree and optionally fetch file contents.

    Example:
        {"owner": "octocat", "repo": "hello-world", "files": [{"path": "README.md"}]}
    """
    files: List[FileSpec] = Field(default_factory=list)
    fetch_tree: bool = False


class ChatRequest(CamelModel):
    """
    Request for a streamed answer grounded in an assembled context.

    Example:
        {
            "question": "How does routing work?",
            "context": "### File: src/router.js ...",
            "repoInfo": {"owner": "octocat", "repo": "hello-world"},
            "history": [{"role": "user", "content": "hi"}]
        }
    """
    question: str = Field(..., min_length=1, max_length=8000)
    context: str = Field(..., min_length=1)
    repo_info: Optional[ChatRepoRef] = None
    history: List[ChatMessage] = Field(default_factory=list)
    owner_profile: Optional[OwnerProfile] = None


class ScanRequest(RepoRequest):
    """Request to run the security pattern scan over a set of files."""
    files: List[FileSpec] = Field(default_factory=list)


class SearchType(str, Enum):
    TEXT = "text"
    REGEX = "regex"
    AST = "ast"


class SearchRequest(RepoRequest):
    """
    Request to search file contents.

    Example:
        {"owner": "o", "repo": "r", "filePaths": ["a.py"], "query": "login", "type": "ast"}
    """
    file_paths: List[str] = Field(default_factory=list)
    query: str = Field(..., min_length=1, max_length=500)
    type: SearchType = SearchType.TEXT


class FixDiagramRequest(CamelModel):
    """Request to repair a diagram that failed to render."""
    code: str = Field(..., min_length=1)


class PrepareDiagramRequest(CamelModel):
    """Raw diagram grammar or a structured node/edge description."""
    code: Optional[str] = None
    diagram: Optional[StructuredDiagram] = None


class ArtifactType(str, Enum):
    DOC = "doc"
    TEST = "test"
    REFACTOR = "refactor"


class GenerateRequest(RepoRequest):
    """Request to generate an artifact (docs, tests, refactoring notes) for one file."""
    file_path: str = Field(..., min_length=1)
    type: ArtifactType


class QualityRequest(RepoRequest):
    """Request for a quality report on one file."""
    file_path: str = Field(..., min_length=1)
