"""Tests for settings, limits and dependency wiring."""

import dataclasses
import os
from unittest.mock import patch

import pytest

from code_analyzer.core.config import AnalysisLimits, Settings
from code_analyzer.core.dependencies import get_github_client, get_limits


class TestSettings:
    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)
        assert settings.api_prefix == "/api/code-analyzer"
        assert settings.github_token is None
        assert settings.openai_api_key is None
        assert settings.limits == AnalysisLimits()

    def test_environment_overrides(self):
        env = {"MAX_FETCH_FILES": "7", "GITHUB_TOKEN": "ghp_test", "openai_api_key": "sk-x"}
        with patch.dict(os.environ, env, clear=True):
            settings = Settings(_env_file=None)
        assert settings.limits.max_fetch_files == 7
        assert settings.github_token == "ghp_test"
        assert settings.openai_api_key == "sk-x"


class TestAnalysisLimits:
    def test_load_bearing_defaults(self):
        limits = AnalysisLimits()
        assert (limits.max_selected_files, limits.max_fetch_files, limits.max_file_chars) == (15, 20, 50_000)
        assert (limits.max_ai_candidate_paths, limits.max_search_files, limits.max_search_results) == (100, 30, 100)

    def test_immutable(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            AnalysisLimits().max_fetch_files = 99


class TestDependencies:
    def test_github_client_carries_token(self):
        settings = Settings(_env_file=None, github_token="ghp_test", max_file_chars=10)
        with patch("code_analyzer.core.dependencies.get_settings", return_value=settings):
            client = get_github_client()
            limits = get_limits()
        assert client.headers["Authorization"] == "Bearer ghp_test"
        assert client.config.max_file_chars == 10
        assert limits.max_file_chars == 10

    def test_github_client_without_token(self):
        settings = Settings(_env_file=None, github_token=None)
        with patch("code_analyzer.core.dependencies.get_settings", return_value=settings):
            client = get_github_client()
        assert "Authorization" not in client.headers
        assert client.headers["Accept"] == "application/vnd.github.v3+json"
