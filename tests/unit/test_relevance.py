"""Tests for code_analyzer.services.relevance — heuristic and AI file selection."""

import json

import pytest

from code_analyzer.core.result import ErrorKind
from code_analyzer.models.schemas import SelectionSource
from code_analyzer.services.relevance import (
    DEFAULT_MARKERS,
    RelevanceSelector,
    find_important_files,
    markers_for_question,
    parse_ai_selection,
    select_heuristic,
)
from tests.conftest import FakeLLM

# ── markers_for_question ────────────────────────────────────────────────────


class TestMarkersForQuestion:
    def test_no_topic_uses_defaults(self):
        assert markers_for_question("what does this do?") == [m.lower() for m in DEFAULT_MARKERS]

    def test_topic_markers_unioned_without_duplicates(self):
        markers = markers_for_question("Is the config secure? Any security issue in the config?")
        assert ".py" in markers
        assert ".config.js" in markers
        assert len(markers) == len(set(markers))

    def test_case_insensitive(self):
        assert "__tests__" in markers_for_question("Where are the TESTS?")


# ── select_heuristic ────────────────────────────────────────────────────────


class TestSelectHeuristic:
    def test_subset_bounded_and_unique(self):
        paths = [f"src/file_{i}.js" for i in range(40)] + ["README.md", "src/file_0.js"]
        selected = select_heuristic("how does it work?", paths)
        assert len(selected) <= 15
        assert len(selected) == len(set(selected))
        assert set(selected) <= set(paths)

    def test_important_files_first_in_priority_order(self):
        paths = ["src/a.py", "pyproject.toml", "src/b.py", "README.md", "package.json"]
        selected = select_heuristic("explain the code", paths)
        assert selected[:3] == ["README.md", "package.json", "pyproject.toml"]

    def test_important_file_included_even_without_marker(self):
        selected = select_heuristic("what about style?", ["theme.css", "go.mod"])
        assert selected == ["go.mod", "theme.css"]

    def test_substring_matching_over_matches_directories(self):
        selected = select_heuristic("api layout", ["api/handlers.txt", "docs/notes.txt"])
        assert selected == ["api/handlers.txt"]

    def test_empty_available_paths(self):
        assert select_heuristic("security", []) == []

    def test_cap_respected(self):
        paths = [f"f{i}.py" for i in range(100)]
        assert len(select_heuristic("code", paths, max_files=5)) == 5


class TestFindImportantFiles:
    def test_suffix_match_case_insensitive(self):
        assert find_important_files(["docs/readme.md", "x.py"]) == ["docs/readme.md"]

    def test_first_match_per_name(self):
        assert find_important_files(["a/package.json", "package.json"]) == ["a/package.json"]


# ── parse_ai_selection ──────────────────────────────────────────────────────


class TestParseAISelection:
    AVAILABLE = ["src/a.py", "src/b.py", "README.md"]

    def test_valid_array(self):
        result = parse_ai_selection('["src/a.py", "README.md"]', self.AVAILABLE)
        assert result.success
        assert result.data == ["src/a.py", "README.md"]

    def test_code_fences_stripped(self):
        result = parse_ai_selection('```json\n["src/b.py"]\n```', self.AVAILABLE)
        assert result.data == ["src/b.py"]

    def test_hallucinated_paths_dropped(self):
        result = parse_ai_selection('["src/a.py", "src/ghost.py", "src/a.py"]', self.AVAILABLE)
        assert result.data == ["src/a.py"]

    def test_only_hallucinations_leave_empty_selection(self):
        result = parse_ai_selection('["nope.py", 7]', self.AVAILABLE)
        assert result.success
        assert result.data == []

    def test_not_json(self):
        assert parse_ai_selection("I think src/a.py", self.AVAILABLE).success is False

    def test_empty_array(self):
        result = parse_ai_selection("[]", self.AVAILABLE)
        assert result.success is False
        assert result.kind == ErrorKind.PARSE_ERROR

    def test_object_instead_of_array(self):
        assert parse_ai_selection('{"files": ["src/a.py"]}', self.AVAILABLE).success is False


# ── RelevanceSelector ───────────────────────────────────────────────────────


class TestRelevanceSelector:
    SPARSE = ["Makefile", "notes.txt", "lib/core.c", "lib/core.h"]

    @pytest.mark.asyncio
    async def test_enough_matches_skip_ai(self):
        llm = FakeLLM(reply='["src/x.py"]')
        selector = RelevanceSelector(llm=llm.client())
        result = await selector.select("code", ["a.py", "b.py", "c.py"])
        assert result.source == SelectionSource.HEURISTIC
        assert llm.payloads == []

    @pytest.mark.asyncio
    async def test_escalates_when_sparse(self):
        llm = FakeLLM(reply='["lib/core.c", "lib/core.h"]')
        selector = RelevanceSelector(llm=llm.client())
        result = await selector.select("how is memory managed?", self.SPARSE)
        assert result.source == SelectionSource.AI
        assert result.selected_paths == ["lib/core.c", "lib/core.h"]
        request = llm.payloads[0]
        assert request["temperature"] == 0
        assert request["max_tokens"] == 1000
        assert "max 10" in request["messages"][0]["content"]

    @pytest.mark.asyncio
    async def test_only_first_100_paths_offered(self):
        paths = [f"data/blob_{i}.bin" for i in range(150)]
        llm = FakeLLM(reply='["data/blob_0.bin"]')
        await RelevanceSelector(llm=llm.client()).select("anything", paths)
        user_prompt = llm.payloads[0]["messages"][1]["content"]
        assert "data/blob_99.bin" in user_prompt
        assert "data/blob_100.bin" not in user_prompt

    @pytest.mark.asyncio
    async def test_malformed_answer_keeps_heuristic(self):
        llm = FakeLLM(reply="Sorry, I can't help with that.")
        result = await RelevanceSelector(llm=llm.client()).select("code", self.SPARSE)
        assert result.source == SelectionSource.HEURISTIC
        assert result.selected_paths == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [
        b"[]",
        b'{"choices": []}',
        b'{"choices": ["x"]}',
        b'{"choices": [{"message": "hi"}]}',
        b'{"choices": [{"message": {"content": ["a"]}}]}',
        b"<html>bad gateway</html>",
    ])
    async def test_malformed_completion_body_keeps_heuristic(self, body, caplog):
        llm = FakeLLM(body=body)
        result = await RelevanceSelector(llm=llm.client()).select("hello", ["a.txt"])
        assert result.source == SelectionSource.HEURISTIC
        assert result.selected_paths == []
        assert "AI relevance escalation skipped (upstream_error)" in caplog.text

    @pytest.mark.asyncio
    async def test_unknown_paths_from_ai_give_empty_selection(self):
        llm = FakeLLM(reply='["src/ghost.py"]')
        result = await RelevanceSelector(llm=llm.client()).select("code", self.SPARSE)
        assert result.source == SelectionSource.AI
        assert result.selected_paths == []

    @pytest.mark.asyncio
    async def test_upstream_error_keeps_heuristic(self):
        llm = FakeLLM(status_code=429)
        result = await RelevanceSelector(llm=llm.client()).select("code", self.SPARSE)
        assert result.source == SelectionSource.HEURISTIC

    @pytest.mark.asyncio
    async def test_unconfigured_backend_never_called(self, unconfigured_llm):
        result = await RelevanceSelector(llm=unconfigured_llm).select("code", self.SPARSE)
        assert result.source == SelectionSource.HEURISTIC

    @pytest.mark.asyncio
    async def test_ai_selection_capped(self):
        paths = [f"lib/mod_{i}.c" for i in range(30)]
        llm = FakeLLM(reply=json.dumps(paths))
        result = await RelevanceSelector(llm=llm.client()).select("code", paths)
        assert len(result.selected_paths) == 15
