"""
API Routes - FastAPI route modules.
"""

from code_analyzer.api.routes.health import router as health_router
from code_analyzer.api.routes.analysis import router as analysis_router
from code_analyzer.api.routes.tools import router as tools_router

__all__ = [
    "health_router",
    "analysis_router",
    "tools_router",
]
