"""
Core Domain Schemas - Shared data models used across the application.

Wire-facing records use camelCase aliases (relevantFiles, filesLoaded, ...)
while Python code keeps snake_case attribute names.
"""

from typing import Any, Optional, List
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from enum import Enum


class CamelModel(BaseModel):
    """Base model serialized with camelCase field names."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Severity(str, Enum):
    """Severity of a security finding, most severe first."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.CRITICAL: 0,
    Severity.HIGH: 1,
    Severity.MEDIUM: 2,
    Severity.LOW: 3,
    Severity.INFO: 4,
}


class SelectionSource(str, Enum):
    """Which strategy produced a relevance selection."""
    HEURISTIC = "heuristic"
    AI = "ai"


class FileRef(BaseModel):
    """A blob in the repository tree at a point in history."""
    model_config = ConfigDict(frozen=True)

    path: str
    sha: str
    size: int = 0
    type: str = "blob"


class FetchedFile(BaseModel):
    """File content fetched for one request."""
    path: str
    content: str
    truncated: bool = False


class RepoInfo(BaseModel):
    """Repository metadata passed through from the code host."""
    description: Optional[str] = None
    stargazers_count: int = 0
    forks_count: int = 0
    open_issues_count: int = 0
    updated_at: Optional[str] = None
    language: Optional[str] = None
    default_branch: str = "HEAD"


class Finding(BaseModel):
    """One reported security-pattern match."""
    title: str
    severity: Severity
    description: str
    recommendation: str
    file: str
    line: int = Field(..., ge=1)


class ScanDebug(CamelModel):
    """Triage counts that distinguish 'nothing fetched' from 'clean'."""
    total_files_provided: int = 0
    code_files_found: int = 0
    files_successfully_fetched: int = 0


class ScanSummary(CamelModel):
    """Aggregate finding counts per severity."""
    total: int = 0
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    info: int = 0
    debug: ScanDebug = Field(default_factory=ScanDebug)


class SearchMatch(BaseModel):
    """A single line matched by code search."""
    file: str
    line: int
    content: str


class QualityMetrics(CamelModel):
    """Heuristic size and complexity metrics for one file."""
    lines: int
    code_lines: int
    comment_lines: int
    complexity: str
    cyclomatic_complexity: int


class DiagramValidation(BaseModel):
    """Outcome of diagram validation. Advisory only."""
    valid: bool
    reason: Optional[str] = None


def _stringify(value: Any) -> Any:
    # Node ids arrive as numbers as often as strings
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class DiagramNode(BaseModel):
    id: Optional[str] = None
    label: Optional[str] = None
    shape: Optional[str] = None

    @field_validator("id", "label", mode="before")
    @classmethod
    def _coerce_text(cls, v: Any) -> Any:
        return _stringify(v)


class DiagramEdge(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    source: Optional[str] = Field(default=None, alias="from")
    target: Optional[str] = Field(default=None, alias="to")
    type: Optional[str] = None
    label: Optional[str] = None

    @field_validator("source", "target", "label", mode="before")
    @classmethod
    def _coerce_text(cls, v: Any) -> Any:
        return _stringify(v)


class StructuredDiagram(BaseModel):
    """Node/edge description compiled into diagram grammar."""
    nodes: List[DiagramNode] = Field(default_factory=list)
    edges: List[DiagramEdge] = Field(default_factory=list)
    direction: str = "TD"
    title: Optional[str] = None


class ChatMessage(BaseModel):
    """One prior turn of the conversation, supplied by the caller."""
    role: str
    content: str = ""


class OwnerProfile(BaseModel):
    """Repository owner profile, supplied by the caller."""
    model_config = ConfigDict(extra="allow")

    login: Optional[str] = None
    name: Optional[str] = None
    bio: Optional[str] = None


class ChatRepoRef(BaseModel):
    """Repository identity embedded in the chat prompt."""
    model_config = ConfigDict(extra="allow")

    owner: Optional[str] = None
    repo: Optional[str] = None
