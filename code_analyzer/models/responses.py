"""
API Response Models - Pydantic models for API responses.
"""

from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field
from datetime import datetime, timezone

from code_analyzer.models.schemas import (
    CamelModel,
    FileRef,
    Finding,
    QualityMetrics,
    RepoInfo,
    ScanSummary,
    SelectionSource,
)


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    version: str
    environment: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ReadinessResponse(BaseModel):
    """
    Readiness plus optional capabilities.

    Example:
        {"ready": true, "checks": {"api": true, "llm_configured": false, ...}, "limits": {...}}
    """
    ready: bool
    checks: Dict[str, bool]
    limits: Dict[str, int] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class AnalyzeResponse(CamelModel):
    """
    Files selected as relevant to a question.

    Example:
        {"relevantFiles": ["README.md", "src/app.js"], "fileCount": 2, "source": "heuristic"}
    """
    relevant_files: List[str]
    file_count: int
    source: SelectionSource = SelectionSource.HEURISTIC


class FetchResponse(CamelModel):
    """
    Repository tree, plus the assembled context when files were requested.

    Example:
        {"tree": [...], "repoInfo": {...}}
        {"context": "### File: ...", "tree": [...], "filesLoaded": 3, "repoInfo": {...}}
    """
    tree: List[FileRef]
    repo_info: RepoInfo
    context: Optional[str] = None
    files_loaded: Optional[int] = None


class ScanResponse(CamelModel):
    """Security findings sorted by severity plus summary counts."""
    findings: List[Finding] = Field(default_factory=list)
    summary: ScanSummary


class FixDiagramResponse(BaseModel):
    fixed: str


class PrepareDiagramResponse(BaseModel):
    """Sanitized diagram source and its advisory validation outcome."""
    code: str
    valid: bool
    reason: Optional[str] = None


class GenerateResponse(BaseModel):
    artifact: str


class QualityResponse(CamelModel):
    """Quality report for one file."""
    score: int
    summary: str
    metrics: QualityMetrics
    issues: List[Dict[str, Any]] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """
    Standard error response.

    Example:
        {
            "success": false,
            "error": "Not Found",
            "error_code": "UPSTREAM_NOT_FOUND"
        }
    """
    success: bool = False
    error: str
    error_code: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
