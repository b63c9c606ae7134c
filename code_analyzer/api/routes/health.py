"""
Health Check Endpoints - Liveness, readiness and configuration status.

Neither upstream is contacted here. Readiness only reflects whether the
process loaded its settings; the GitHub token and the completion key are
optional and reported as capabilities.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from code_analyzer.core.config import Settings, get_settings
from code_analyzer.models.responses import HealthResponse, ReadinessResponse


router = APIRouter(tags=["Health"])


def capabilities(settings: Settings) -> dict:
    """Which optional upstream credentials are present."""
    return {
        "llm_configured": bool(settings.openai_api_key),
        "github_token_configured": bool(settings.github_token),
    }


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="Check if the API is running"
)
async def health_check(settings: Settings = Depends(get_settings)) -> HealthResponse:
    return HealthResponse(
        version=settings.app_version,
        environment=settings.environment,
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness Check",
    description="Report readiness and which AI-assisted features are available"
)
async def readiness_check(settings: Settings = Depends(get_settings)) -> ReadinessResponse:
    """
    Without a completion key the service is still ready: heuristics keep
    working and the AI-only endpoints answer 503.
    """
    limits = settings.limits
    return ReadinessResponse(
        ready=True,
        checks={"api": True, "config_loaded": True, **capabilities(settings)},
        limits={
            "max_selected_files": limits.max_selected_files,
            "max_fetch_files": limits.max_fetch_files,
            "max_file_chars": limits.max_file_chars,
        },
        timestamp=datetime.now(timezone.utc),
    )


@router.get("/live", summary="Liveness Check")
async def liveness_check() -> dict:
    return {"status": "alive"}
