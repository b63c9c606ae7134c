"""
Analysis Endpoints - The repository question-answering pipeline.

A client drives the pipeline in three calls:
1. POST /fetch with fetchTree=true     -> file tree and repository metadata
2. POST /analyze with the tree's paths -> files relevant to the question
3. POST /fetch with those files         -> assembled context
   POST /chat with the context          -> streamed answer (text/event-stream)
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from code_analyzer.core.config import AnalysisLimits
from code_analyzer.core.dependencies import get_github_client, get_limits, get_llm_client
from code_analyzer.core.exceptions import ServiceNotConfiguredError
from code_analyzer.models.requests import AnalyzeRequest, ChatRequest, FetchRequest
from code_analyzer.models.responses import AnalyzeResponse, ErrorResponse, FetchResponse
from code_analyzer.services.chat import build_chat_messages
from code_analyzer.services.fetcher import FetchStage, assemble_context
from code_analyzer.services.github_client import GitHubClient
from code_analyzer.services.llm_client import LLMClient
from code_analyzer.services.relevance import RelevanceSelector
from code_analyzer.services.streaming import SSE_HEADERS, SSE_MEDIA_TYPE, StreamingRelay

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Analysis"])


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    summary="Select Relevant Files",
    description="Pick the repository files most likely to answer a question",
    responses={400: {"model": ErrorResponse, "description": "Missing question or filePaths"}}
)
async def analyze(
    request: AnalyzeRequest,
    llm: LLMClient = Depends(get_llm_client),
    limits: AnalysisLimits = Depends(get_limits)
) -> AnalyzeResponse:
    """
    Keyword heuristic first; the completion backend is only consulted when
    fewer than three files match and a key is configured.
    """
    if request.owner and request.repo:
        logger.info(f"Selecting files in {request.owner}/{request.repo} for: {request.question[:80]}")

    selector = RelevanceSelector(llm=llm, limits=limits)
    result = await selector.select(request.question, request.file_paths)

    return AnalyzeResponse(
        relevant_files=result.selected_paths,
        file_count=len(result.selected_paths),
        source=result.source
    )


@router.post(
    "/fetch",
    response_model=FetchResponse,
    response_model_exclude_unset=True,
    summary="Fetch Repository",
    description="List the repository tree and optionally assemble file contents into a context",
    responses={
        404: {"model": ErrorResponse, "description": "Repository or branch not found"},
        502: {"model": ErrorResponse, "description": "Code host error"}
    }
)
async def fetch_repository(
    request: FetchRequest,
    github: GitHubClient = Depends(get_github_client),
    limits: AnalysisLimits = Depends(get_limits)
) -> FetchResponse:
    """
    Tree listing costs one upstream call regardless of repository size.

    Without files (or with fetchTree) only the tree and metadata are
    returned; otherwise up to max_fetch_files files are fetched and joined
    into one context string. Files that fail to fetch are left out.
    """
    async with github:
        repo_info = await github.get_repository(request.owner, request.repo)
        tree = await github.list_tree(request.owner, request.repo, repo_info.default_branch)

        if request.fetch_tree or not request.files:
            return FetchResponse(tree=tree, repo_info=repo_info)

        fetcher = FetchStage(github, limits)
        files = await fetcher.fetch(request.owner, request.repo, request.files, tree=tree)

    return FetchResponse(
        tree=tree,
        repo_info=repo_info,
        context=assemble_context(files),
        files_loaded=len(files)
    )


@router.post(
    "/chat",
    summary="Chat About Repository",
    description="Stream an answer grounded in an assembled context as server-sent events",
    response_class=StreamingResponse,
    responses={
        200: {"content": {SSE_MEDIA_TYPE: {}}, "description": "Event stream ending with [DONE]"},
        503: {"model": ErrorResponse, "description": "AI service not configured"}
    }
)
async def chat(
    request: ChatRequest,
    raw_request: Request,
    llm: LLMClient = Depends(get_llm_client),
    limits: AnalysisLimits = Depends(get_limits)
) -> StreamingResponse:
    """
    Frames: `data: {"content": ...}`, `data: {"error": ...}`, `data: [DONE]`.

    Once the stream has started every failure is reported in-band as an
    error frame followed by [DONE].
    """
    if not llm.is_configured:
        raise ServiceNotConfiguredError()

    messages = build_chat_messages(request, limits.chat_history_messages)
    relay = StreamingRelay(llm)

    return StreamingResponse(
        relay.frames(messages, raw_request.is_disconnected),
        media_type=SSE_MEDIA_TYPE,
        headers=SSE_HEADERS
    )
