"""
Application Configuration - Environment settings and constants.

Loads configuration from environment variables with sensible defaults.
Uses Pydantic Settings for validation and type safety.

The GitHub token and the OpenAI key are both optional: without a token
requests go out unauthenticated (lower rate limits), without a key the
AI-assisted steps fall back to heuristics and the AI-only endpoints
answer with a "service not configured" error.
"""

from dataclasses import dataclass
from typing import List, Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


@dataclass(frozen=True)
class AnalysisLimits:
    """
    Hard caps that bound latency and upstream rate-limit consumption.

    Passed into every component that fetches or selects files so the
    limits can be tuned (and tested) in one place.
    """
    max_selected_files: int = 15
    max_fetch_files: int = 20
    max_file_chars: int = 50_000
    max_ai_candidate_paths: int = 100
    max_ai_selected_files: int = 10
    max_scan_files: int = 20
    max_search_files: int = 30
    max_search_results: int = 100
    fetch_concurrency: int = 5
    duplicate_line_window: int = 5
    chat_history_messages: int = 10
    max_artifact_words: int = 5000


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Usage:
        from code_analyzer.core.config import get_settings
        settings = get_settings()
    """

    # Application
    app_name: str = "Repository Code Analyzer"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = "development"

    # HTTP Server Configuration
    server_host: str = "0.0.0.0"  # Bind to all interfaces for network access
    server_port: int = 8000
    api_prefix: str = "/api/code-analyzer"
    allowed_origins: List[str] = ["*"]

    # GitHub (code host)
    github_api_url: str = "https://api.github.com"
    github_token: Optional[str] = None
    github_user_agent: str = "DYOR-Code-Analyzer"
    github_timeout_seconds: float = 30.0

    # Text-completion backend (OpenAI-compatible)
    openai_api_key: Optional[str] = None
    llm_base_url: str = "https://api.openai.com/v1"
    llm_model: str = "gpt-4o-mini"
    llm_timeout_seconds: float = 60.0

    # Limits
    max_selected_files: int = 15
    max_fetch_files: int = 20
    max_file_chars: int = 50_000
    max_ai_candidate_paths: int = 100
    max_ai_selected_files: int = 10
    max_scan_files: int = 20
    max_search_files: int = 30
    max_search_results: int = 100
    fetch_concurrency: int = 5
    duplicate_line_window: int = 5
    chat_history_messages: int = 10
    max_artifact_words: int = 5000

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    @property
    def limits(self) -> AnalysisLimits:
        """Collect the limit fields into one immutable structure."""
        return AnalysisLimits(
            max_selected_files=self.max_selected_files,
            max_fetch_files=self.max_fetch_files,
            max_file_chars=self.max_file_chars,
            max_ai_candidate_paths=self.max_ai_candidate_paths,
            max_ai_selected_files=self.max_ai_selected_files,
            max_scan_files=self.max_scan_files,
            max_search_files=self.max_search_files,
            max_search_results=self.max_search_results,
            fetch_concurrency=self.fetch_concurrency,
            duplicate_line_window=self.duplicate_line_window,
            chat_history_messages=self.chat_history_messages,
            max_artifact_words=self.max_artifact_words,
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


# Convenience access
settings = get_settings()
