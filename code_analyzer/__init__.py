"""
Repository Code Analyzer
========================

An HTTP service that answers natural-language questions about any GitHub
repository by selecting a relevant slice of its files, fetching them, and
streaming an AI-synthesized answer grounded in that slice.

Components:
- services: GitHub client, relevance selection, fetching, streaming relay,
  security scanning, code search, diagram tooling, artifacts, quality
- api: FastAPI endpoints and error handlers
- models: Pydantic request/response/domain models
- core: Configuration, limits, dependencies and step results
"""

__version__ = "1.0.0"
