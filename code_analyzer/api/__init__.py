"""
API Layer - FastAPI routes and middleware.
"""

from code_analyzer.api.routes import health_router, analysis_router, tools_router

__all__ = [
    "health_router",
    "analysis_router",
    "tools_router",
]
