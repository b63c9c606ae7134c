"""
Dependencies - Dependency injection for clients and limits.

The completion client holds configuration only, so one instance is shared.
The GitHub client owns a connection pool and is created per request; route
handlers open it with `async with`. Tests replace both through
`app.dependency_overrides`.
"""

from functools import lru_cache

from code_analyzer.core.config import AnalysisLimits, get_settings
from code_analyzer.services.github_client import GitHubClient, GitHubClientConfig
from code_analyzer.services.llm_client import LLMClient, LLMConfig


def get_limits() -> AnalysisLimits:
    """Get the configured analysis limits."""
    return get_settings().limits


def get_github_client() -> GitHubClient:
    """Get a new, unopened GitHub client for one request."""
    settings = get_settings()
    config = GitHubClientConfig(
        api_url=settings.github_api_url,
        token=settings.github_token,
        user_agent=settings.github_user_agent,
        timeout_seconds=settings.github_timeout_seconds,
        max_file_chars=settings.max_file_chars
    )
    return GitHubClient(config=config)


@lru_cache()
def get_llm_client() -> LLMClient:
    """Get the completion backend client."""
    settings = get_settings()
    config = LLMConfig(
        api_key=settings.openai_api_key,
        base_url=settings.llm_base_url,
        model=settings.llm_model,
        timeout_seconds=settings.llm_timeout_seconds
    )
    return LLMClient(config=config)
