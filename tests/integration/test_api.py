"""Integration tests for the HTTP API (code_analyzer.main)."""

import json

import httpx
import pytest

from tests.conftest import FakeGitHub, FakeLLM, sse_body

API = "/api/code-analyzer"


def _frames(body: str) -> list:
    return [frame for frame in body.split("\n\n") if frame]


# ── Health endpoints ─────────────────────────────────────────────────────────


class TestHealthEndpoints:
    def test_health(self, client):
        resp = client.get(f"{API}/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["version"] == "1.0.0"

    def test_ready_reports_optional_credentials(self, client):
        data = client.get(f"{API}/ready").json()
        assert data["ready"] is True
        assert "llm_configured" in data["checks"]
        assert "github_token_configured" in data["checks"]
        assert data["limits"]["max_fetch_files"] == 20

    def test_live(self, client):
        assert client.get(f"{API}/live").json() == {"status": "alive"}

    def test_root(self, client):
        data = client.get("/").json()
        assert data["name"] == "Repository Code Analyzer"
        assert data["health"] == f"{API}/health"


# ── Request validation ──────────────────────────────────────────────────────


class TestValidation:
    def test_wrong_method(self, client):
        resp = client.get(f"{API}/analyze")
        assert resp.status_code == 405
        assert resp.json()["success"] is False

    def test_missing_fields_are_bad_request(self, client):
        resp = client.post(f"{API}/analyze", json={"question": "what?"})
        assert resp.status_code == 400
        data = resp.json()
        assert data["error_code"] == "VALIDATION_ERROR"
        assert "filePaths" in data["error"]

    def test_invalid_repository_name(self, client, fake_github):
        resp = client.post(f"{API}/fetch", json={"owner": "octocat", "repo": "a/b"})
        assert resp.status_code == 400
        assert fake_github.requests == []

    def test_unknown_artifact_type(self, client):
        resp = client.post(
            f"{API}/generate",
            json={"owner": "octocat", "repo": "hello-world", "filePath": "a.py", "type": "poem"},
        )
        assert resp.status_code == 400


# ── /analyze ────────────────────────────────────────────────────────────────


class TestAnalyzeEndpoint:
    def test_heuristic_selection(self, client):
        resp = client.post(f"{API}/analyze", json={
            "question": "Are there any security issues?",
            "filePaths": ["docs/guide.md", "src/app.js", "logo.png", "package.json", "README.md"],
            "owner": "octocat",
            "repo": "hello-world",
        })
        assert resp.status_code == 200
        assert resp.json() == {
            "relevantFiles": ["README.md", "package.json", "src/app.js"],
            "fileCount": 3,
            "source": "heuristic",
        }

    def test_ai_escalation(self, make_client):
        llm = FakeLLM(reply='["src/app.js", "src/ghost.js"]')
        client = make_client(llm=llm.client())
        resp = client.post(f"{API}/analyze", json={
            "question": "where is the retry logic?",
            "filePaths": ["src/app.js", "logo.png"],
        })
        data = resp.json()
        assert data["relevantFiles"] == ["src/app.js"]
        assert data["source"] == "ai"


# ── /fetch ──────────────────────────────────────────────────────────────────


class TestFetchEndpoint:
    def test_tree_only(self, client, fake_github):
        resp = client.post(f"{API}/fetch", json={
            "owner": "octocat", "repo": "hello-world", "fetchTree": True,
        })
        assert resp.status_code == 200
        data = resp.json()
        assert [f["path"] for f in data["tree"]] == list(fake_github.files)
        assert data["repoInfo"]["stargazers_count"] == 42
        assert data["repoInfo"]["language"] == "Python"
        assert "context" not in data
        assert "filesLoaded" not in data
        assert fake_github.requests_to("/git/trees/main")

    def test_no_files_returns_tree(self, client):
        data = client.post(f"{API}/fetch", json={"owner": "octocat", "repo": "hello-world"}).json()
        assert "tree" in data
        assert "context" not in data

    def test_files_assembled_into_context(self, client, fake_github):
        resp = client.post(f"{API}/fetch", json={
            "owner": "octocat",
            "repo": "hello-world",
            "files": [{"path": "README.md"}, {"path": "nope.js"}, {"path": "src/server.py"}],
        })
        assert resp.status_code == 200
        data = resp.json()
        assert data["filesLoaded"] == 2
        assert data["context"].startswith("### File: README.md\n```\n# Hello")
        assert "### File: src/server.py" in data["context"]
        assert "nope.js" not in data["context"]
        # SHAs come from the tree, so contents are read as blobs
        assert fake_github.requests_to("/git/blobs/")

    def test_missing_repository(self, client):
        resp = client.post(f"{API}/fetch", json={"owner": "octocat", "repo": "missing", "fetchTree": True})
        assert resp.status_code == 404
        assert resp.json()["error_code"] == "UPSTREAM_NOT_FOUND"

    def test_code_host_failure(self, make_client):
        github = FakeGitHub(files={"a.py": "x"})

        def failing(request):
            github.requests.append(request)
            return httpx.Response(503, json={"message": "Service Unavailable"})

        github.handler = failing
        resp = make_client(github=github).post(
            f"{API}/fetch", json={"owner": "octocat", "repo": "hello-world"}
        )
        assert resp.status_code == 503
        assert resp.json()["error_code"] == "UPSTREAM_ERROR"


# ── /chat ───────────────────────────────────────────────────────────────────


class TestChatEndpoint:
    BODY = {
        "question": "How does login work?",
        "context": "### File: src/server.py\n```\ndef login(user): ...\n```",
        "repoInfo": {"owner": "octocat", "repo": "hello-world"},
    }

    def test_not_configured(self, client):
        resp = client.post(f"{API}/chat", json=self.BODY)
        assert resp.status_code == 503
        assert resp.json()["error_code"] == "SERVICE_NOT_CONFIGURED"

    def test_missing_context(self, client):
        resp = client.post(f"{API}/chat", json={"question": "hi"})
        assert resp.status_code == 400

    def test_streamed_frames(self, make_client):
        llm = FakeLLM(stream=sse_body("Log", "in checks"))
        resp = make_client(llm=llm.client()).post(f"{API}/chat", json=self.BODY)
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/event-stream")
        assert resp.headers["cache-control"] == "no-cache"
        assert _frames(resp.text) == [
            'data: {"content": "Log"}',
            'data: {"content": "in checks"}',
            "data: [DONE]",
        ]
        system = llm.payloads[0]["messages"][0]["content"]
        assert "octocat/hello-world" in system

    def test_upstream_error_in_band(self, make_client):
        llm = FakeLLM(status_code=401, error_message="Invalid API key")
        resp = make_client(llm=llm.client()).post(f"{API}/chat", json=self.BODY)
        assert resp.status_code == 200
        assert _frames(resp.text) == ['data: {"error": "Invalid API key"}', "data: [DONE]"]


# ── /scan and /search ───────────────────────────────────────────────────────


class TestScanEndpoint:
    def test_findings_and_debug_counts(self, client):
        resp = client.post(f"{API}/scan", json={
            "owner": "octocat",
            "repo": "hello-world",
            "files": [{"path": "src/app.js"}, {"path": "README.md"}],
        })
        assert resp.status_code == 200
        data = resp.json()
        assert data["findings"][0]["title"] == "Unsafe eval() usage"
        assert data["findings"][0]["file"] == "src/app.js"
        assert data["findings"][0]["line"] == 4
        assert data["summary"]["high"] == 1
        assert data["summary"]["debug"] == {
            "totalFilesProvided": 2,
            "codeFilesFound": 1,
            "filesSuccessfullyFetched": 1,
        }

    def test_nothing_to_scan(self, client):
        data = client.post(f"{API}/scan", json={"owner": "octocat", "repo": "hello-world"}).json()
        assert data["findings"] == []
        assert data["summary"]["total"] == 0


class TestSearchEndpoint:
    def test_definition_search(self, client):
        resp = client.post(f"{API}/search", json={
            "owner": "octocat",
            "repo": "hello-world",
            "filePaths": ["src/server.py", "src/app.js"],
            "query": "login",
            "type": "ast",
        })
        assert resp.status_code == 200
        assert resp.json() == [{"file": "src/server.py", "line": 3, "content": "def login(user):"}]

    def test_missing_query(self, client):
        resp = client.post(f"{API}/search", json={"owner": "octocat", "repo": "hello-world"})
        assert resp.status_code == 400


# ── diagrams ────────────────────────────────────────────────────────────────


class TestDiagramEndpoints:
    def test_raw_code_sanitized(self, client):
        resp = client.post(f"{API}/diagram", json={"code": "A[Load config] --> B"})
        assert resp.status_code == 200
        assert resp.json() == {
            "code": 'graph TD\nA["Load config"] --> B',
            "valid": True,
            "reason": None,
        }

    def test_structured_diagram(self, client):
        resp = client.post(f"{API}/diagram", json={"diagram": {
            "direction": "LR",
            "nodes": [{"id": "api", "label": "API"}, {"id": "db", "shape": "database"}],
            "edges": [{"from": "api", "to": "db", "label": "reads"}],
        }})
        data = resp.json()
        assert data["valid"] is True
        assert data["code"].split("\n")[0] == "graph LR"
        assert '  api -->|"reads"| db' in data["code"]

    def test_invalid_still_returned(self, client):
        data = client.post(f"{API}/diagram", json={"code": "graph TD"}).json()
        assert data["code"] == "graph TD"
        assert data["valid"] is False
        assert data["reason"] == "Diagram too short"

    def test_nothing_given(self, client):
        resp = client.post(f"{API}/diagram", json={})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Missing code or diagram"

    def test_fix_not_configured(self, client):
        resp = client.post(f"{API}/fix-mermaid", json={"code": "graph TD\nA -> B"})
        assert resp.status_code == 503

    def test_fix(self, make_client):
        llm = FakeLLM(reply="```mermaid\ngraph TD\n  A --> B\n```")
        resp = make_client(llm=llm.client()).post(f"{API}/fix-mermaid", json={"code": "graph TD\nA -> B"})
        assert resp.status_code == 200
        assert resp.json() == {"fixed": "graph TD\n  A --> B"}


# ── /generate and /quality ──────────────────────────────────────────────────


class TestGenerateEndpoint:
    BODY = {"owner": "octocat", "repo": "hello-world", "filePath": "src/server.py", "type": "doc"}

    def test_not_configured(self, client):
        resp = client.post(f"{API}/generate", json=self.BODY)
        assert resp.status_code == 503

    def test_artifact(self, make_client):
        llm = FakeLLM(reply='def login(user):\n    """Log a user in."""')
        resp = make_client(llm=llm.client()).post(f"{API}/generate", json=self.BODY)
        assert resp.status_code == 200
        assert resp.json()["artifact"].startswith("def login")

    def test_missing_file(self, make_client):
        llm = FakeLLM(reply="x")
        resp = make_client(llm=llm.client()).post(
            f"{API}/generate", json={**self.BODY, "filePath": "nope.py"}
        )
        assert resp.status_code == 404
        assert llm.payloads == []

    def test_too_large(self, make_client):
        github = FakeGitHub(files={"big.py": "word " * 5001})
        llm = FakeLLM(reply="x")
        resp = make_client(github=github, llm=llm.client()).post(
            f"{API}/generate", json={**self.BODY, "filePath": "big.py"}
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "File is too large (over 5000 words)"


class TestQualityEndpoint:
    def test_heuristic_report(self, client):
        resp = client.post(f"{API}/quality", json={
            "owner": "octocat", "repo": "hello-world", "filePath": "src/server.py",
        })
        assert resp.status_code == 200
        data = resp.json()
        assert data["score"] == 88
        assert data["metrics"] == {
            "lines": 5,
            "codeLines": 3,
            "commentLines": 0,
            "complexity": "Low",
            "cyclomaticComplexity": 1,
        }
        assert data["summary"] == "File has low complexity with 3 lines of code."
        assert data["issues"] == []

    @pytest.mark.parametrize("reply", ["not json", json.dumps({"summary": "Tidy."})])
    def test_ai_review_partial_or_broken(self, make_client, reply):
        llm = FakeLLM(reply=reply)
        resp = make_client(llm=llm.client()).post(f"{API}/quality", json={
            "owner": "octocat", "repo": "hello-world", "filePath": "src/server.py",
        })
        assert resp.status_code == 200
        assert resp.json()["score"] == 88
