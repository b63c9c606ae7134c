"""
Services Layer for the Repository Code Analyzer
===============================================

Services handle the analysis pipeline and its external integrations:

- GitHubClient: Tree listing and file retrieval from the code host
- LLMClient: OpenAI-compatible completion backend (plain and streaming)
- RelevanceSelector: Picks the files relevant to a question
- FetchStage: Bounded, order-preserving batch fetch
- StreamingRelay: Re-frames the backend token stream for the caller
- SecurityScanner / CodeSearcher / QualityAnalyzer / ArtifactGenerator:
  side pipelines sharing the same clients

DEPENDENCY FLOW:
----------------
    RelevanceSelector ──► FetchStage ──► assemble_context ──► StreamingRelay
                              │                                    │
    GitHubClient ─────────────┘                     LLMClient ─────┘
"""

from code_analyzer.services.github_client import GitHubClient, GitHubClientConfig
from code_analyzer.services.llm_client import LLMClient, LLMConfig
from code_analyzer.services.relevance import RelevanceSelector, RelevanceResult
from code_analyzer.services.fetcher import FetchStage, assemble_context
from code_analyzer.services.streaming import StreamingRelay
from code_analyzer.services.security import SecurityScanner
from code_analyzer.services.search import CodeSearcher
from code_analyzer.services.artifacts import ArtifactGenerator
from code_analyzer.services.quality import QualityAnalyzer

__all__ = [
    "GitHubClient",
    "GitHubClientConfig",
    "LLMClient",
    "LLMConfig",
    "RelevanceSelector",
    "RelevanceResult",
    "FetchStage",
    "assemble_context",
    "StreamingRelay",
    "SecurityScanner",
    "CodeSearcher",
    "ArtifactGenerator",
    "QualityAnalyzer",
]
