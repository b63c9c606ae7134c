"""
Repository Code Analyzer - FastAPI Application Entry Point

Usage:
    code-analyzer

Or:
    uvicorn code_analyzer.main:app --reload --host 0.0.0.0 --port 8000

Environment:
    GITHUB_TOKEN     optional, raises the code host rate limit
    OPENAI_API_KEY   optional, enables chat, diagram repair, artifact
                     generation and AI-assisted selection/review
"""

import logging
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from code_analyzer.core.config import get_settings
from code_analyzer.api.routes import health_router, analysis_router, tools_router
from code_analyzer.api.middleware.error_handler import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger("code_analyzer")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log configuration on startup; nothing is held between requests."""
    settings = get_settings()
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}, debug: {settings.debug}")
    if not settings.github_token:
        logger.info("GITHUB_TOKEN not set, code host requests are unauthenticated")
    if not settings.openai_api_key:
        logger.info("OPENAI_API_KEY not set, AI-only endpoints will answer 503")

    yield

    logger.info("Shutting down...")


def create_app() -> FastAPI:
    """
    Application factory function.

    Creates and configures the FastAPI application.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="""
## Repository Code Analyzer API

Ask questions about any GitHub repository and get streamed, AI-synthesized answers
grounded in a bounded slice of its files.

### Features
- **File Selection**: Keyword heuristics with AI escalation
- **Context Assembly**: One-call tree listing, bounded concurrent file fetch
- **Streaming Chat**: Server-sent events ending with `[DONE]`
- **Security Scan, Search, Diagrams, Quality, Artifacts**

### Quick Start
1. POST `/api/code-analyzer/fetch` with `{"owner", "repo", "fetchTree": true}`
2. POST `/api/code-analyzer/analyze` with a question and the tree's paths
3. POST `/api/code-analyzer/fetch` with the selected files, then `/chat` with the context
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register exception handlers
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    # Register routers
    app.include_router(health_router, prefix=settings.api_prefix)
    app.include_router(analysis_router, prefix=settings.api_prefix)
    app.include_router(tools_router, prefix=settings.api_prefix)

    # Root endpoint
    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "docs": "/docs",
            "health": f"{settings.api_prefix}/health"
        }

    return app


# Create the app instance
app = create_app()


def main():
    settings = get_settings()
    uvicorn.run(
        "code_analyzer.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info"
    )


if __name__ == "__main__":
    main()
