"""
Data Models for the Repository Code Analyzer
============================================

Organized into three categories:
- schemas: Core domain models used across the application
- requests: API request validation models
- responses: API response models
"""

from code_analyzer.models.schemas import (
    Severity,
    SelectionSource,
    FileRef,
    FetchedFile,
    RepoInfo,
    Finding,
    ScanSummary,
    SearchMatch,
    DiagramValidation,
    StructuredDiagram,
)

from code_analyzer.models.requests import (
    AnalyzeRequest,
    FetchRequest,
    ChatRequest,
    ScanRequest,
    SearchRequest,
    FixDiagramRequest,
    PrepareDiagramRequest,
    GenerateRequest,
    QualityRequest,
)

from code_analyzer.models.responses import (
    HealthResponse,
    ReadinessResponse,
    AnalyzeResponse,
    FetchResponse,
    ScanResponse,
    FixDiagramResponse,
    PrepareDiagramResponse,
    GenerateResponse,
    QualityResponse,
    ErrorResponse,
)

__all__ = [
    # Schemas
    "Severity",
    "SelectionSource",
    "FileRef",
    "FetchedFile",
    "RepoInfo",
    "Finding",
    "ScanSummary",
    "SearchMatch",
    "DiagramValidation",
    "StructuredDiagram",
    # Requests
    "AnalyzeRequest",
    "FetchRequest",
    "ChatRequest",
    "ScanRequest",
    "SearchRequest",
    "FixDiagramRequest",
    "PrepareDiagramRequest",
    "GenerateRequest",
    "QualityRequest",
    # Responses
    "HealthResponse",
    "ReadinessResponse",
    "AnalyzeResponse",
    "FetchResponse",
    "ScanResponse",
    "FixDiagramResponse",
    "PrepareDiagramResponse",
    "GenerateResponse",
    "QualityResponse",
    "ErrorResponse",
]
