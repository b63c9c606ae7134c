"""
Tool Endpoints - Side pipelines that share the analysis clients.

- /scan         security pattern scan
- /search       text, regex or definition search
- /diagram      compile, sanitize and validate a diagram
- /fix-mermaid  AI repair of a diagram that failed to render
- /generate     AI-generated docs, tests or refactoring notes
- /quality      heuristic quality report with optional AI review
"""

from typing import List

from fastapi import APIRouter, Depends

from code_analyzer.core.config import AnalysisLimits
from code_analyzer.core.dependencies import get_github_client, get_limits, get_llm_client
from code_analyzer.core.exceptions import BadRequestError
from code_analyzer.models.requests import (
    FixDiagramRequest,
    GenerateRequest,
    PrepareDiagramRequest,
    QualityRequest,
    ScanRequest,
    SearchRequest,
)
from code_analyzer.models.responses import (
    ErrorResponse,
    FixDiagramResponse,
    GenerateResponse,
    PrepareDiagramResponse,
    QualityResponse,
    ScanResponse,
)
from code_analyzer.models.schemas import SearchMatch
from code_analyzer.services.artifacts import ArtifactGenerator
from code_analyzer.services.diagrams import prepare_diagram, repair_diagram
from code_analyzer.services.github_client import GitHubClient
from code_analyzer.services.llm_client import LLMClient
from code_analyzer.services.quality import QualityAnalyzer
from code_analyzer.services.search import CodeSearcher
from code_analyzer.services.security import SecurityScanner


router = APIRouter(tags=["Tools"])

_NOT_CONFIGURED = {503: {"model": ErrorResponse, "description": "AI service not configured"}}
_FILE_ERRORS = {
    400: {"model": ErrorResponse, "description": "File has no content or is too large"},
    404: {"model": ErrorResponse, "description": "File not found"},
}


@router.post(
    "/scan",
    response_model=ScanResponse,
    summary="Security Scan",
    description="Run the security pattern library over up to 20 code files"
)
async def scan(
    request: ScanRequest,
    github: GitHubClient = Depends(get_github_client),
    limits: AnalysisLimits = Depends(get_limits)
) -> ScanResponse:
    """
    Zero findings is a valid result; summary.debug tells it apart from a
    scan where nothing could be fetched.
    """
    async with github:
        scanner = SecurityScanner(github, limits)
        findings, summary = await scanner.scan(request.owner, request.repo, request.files)
    return ScanResponse(findings=findings, summary=summary)


@router.post(
    "/search",
    response_model=List[SearchMatch],
    summary="Search Code",
    description="Search up to 30 files; at most 100 matching lines are returned"
)
async def search(
    request: SearchRequest,
    github: GitHubClient = Depends(get_github_client),
    limits: AnalysisLimits = Depends(get_limits)
) -> List[SearchMatch]:
    async with github:
        searcher = CodeSearcher(github, limits)
        return await searcher.search(
            request.owner, request.repo, request.file_paths, request.query, request.type
        )


@router.post(
    "/diagram",
    response_model=PrepareDiagramResponse,
    summary="Prepare Diagram",
    description="Compile a structured diagram (or take raw grammar), sanitize and validate it"
)
async def diagram(request: PrepareDiagramRequest) -> PrepareDiagramResponse:
    """Validation is advisory: an invalid diagram is still returned for rendering."""
    if request.diagram is None and not request.code:
        raise BadRequestError("Missing code or diagram")

    code, validation = prepare_diagram(code=request.code, diagram=request.diagram)
    return PrepareDiagramResponse(code=code, valid=validation.valid, reason=validation.reason)


@router.post(
    "/fix-mermaid",
    response_model=FixDiagramResponse,
    summary="Repair Diagram",
    description="Ask the AI backend to correct a diagram that failed to render",
    responses=_NOT_CONFIGURED
)
async def fix_mermaid(
    request: FixDiagramRequest,
    llm: LLMClient = Depends(get_llm_client)
) -> FixDiagramResponse:
    fixed = await repair_diagram(llm, request.code)
    return FixDiagramResponse(fixed=fixed)


@router.post(
    "/generate",
    response_model=GenerateResponse,
    summary="Generate Artifact",
    description="Generate documentation, tests or refactoring suggestions for one file",
    responses={**_NOT_CONFIGURED, **_FILE_ERRORS}
)
async def generate(
    request: GenerateRequest,
    github: GitHubClient = Depends(get_github_client),
    llm: LLMClient = Depends(get_llm_client),
    limits: AnalysisLimits = Depends(get_limits)
) -> GenerateResponse:
    async with github:
        generator = ArtifactGenerator(github, llm, limits)
        artifact = await generator.generate(
            request.owner, request.repo, request.file_path, request.type
        )
    return GenerateResponse(artifact=artifact)


@router.post(
    "/quality",
    response_model=QualityResponse,
    summary="Quality Report",
    description="Heuristic metrics for one file, refined by the AI backend when configured",
    responses=_FILE_ERRORS
)
async def quality(
    request: QualityRequest,
    github: GitHubClient = Depends(get_github_client),
    llm: LLMClient = Depends(get_llm_client),
    limits: AnalysisLimits = Depends(get_limits)
) -> QualityResponse:
    async with github:
        analyzer = QualityAnalyzer(github, llm, limits)
        return await analyzer.analyze(request.owner, request.repo, request.file_path)
