"""Shared test fixtures for the code analyzer test suite."""

import base64
import json
from typing import Dict, Iterable, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from code_analyzer.core.config import AnalysisLimits
from code_analyzer.core.dependencies import get_github_client, get_llm_client
from code_analyzer.main import create_app
from code_analyzer.services.github_client import GitHubClient, GitHubClientConfig
from code_analyzer.services.llm_client import LLMClient, LLMConfig


def encode(content: str) -> str:
    """Base64 the way GitHub does, wrapped at 60 columns."""
    raw = base64.b64encode(content.encode("utf-8")).decode("ascii")
    return "\n".join(raw[i:i + 60] for i in range(0, len(raw), 60))


class FakeGitHub:
    """
    In-memory GitHub REST API served through httpx.MockTransport.

    Every file gets blob SHA "sha-<index>". Paths in `fail_paths` answer 500
    for both the blob and the contents endpoint.
    """

    def __init__(
        self,
        files: Optional[Dict[str, str]] = None,
        owner: str = "octocat",
        repo: str = "hello-world",
        default_branch: str = "main",
        fail_paths: Iterable[str] = (),
        truncated: bool = False,
    ):
        self.files = dict(files or {})
        self.owner = owner
        self.repo = repo
        self.default_branch = default_branch
        self.fail_paths = set(fail_paths)
        self.truncated = truncated
        self.requests: List[httpx.Request] = []
        self.sha_to_path = {f"sha-{i}": path for i, path in enumerate(self.files)}
        self.path_to_sha = {path: sha for sha, path in self.sha_to_path.items()}

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def client(self, token: Optional[str] = None, max_file_chars: int = 50_000) -> GitHubClient:
        config = GitHubClientConfig(token=token, max_file_chars=max_file_chars)
        return GitHubClient(config=config, transport=self.transport)

    def requests_to(self, fragment: str) -> List[httpx.Request]:
        return [r for r in self.requests if fragment in r.url.path]

    def _file_body(self, path: str) -> httpx.Response:
        if path in self.fail_paths:
            return httpx.Response(500, json={"message": "Server Error"})
        if path not in self.files:
            return httpx.Response(404, json={"message": "Not Found"})
        return httpx.Response(200, json={
            "content": encode(self.files[path]),
            "encoding": "base64",
        })

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = request.url.path.strip("/").split("/")
        if parts[:3] != ["repos", self.owner, self.repo]:
            return httpx.Response(404, json={"message": "Not Found"})
        rest = parts[3:]

        if not rest:
            return httpx.Response(200, json={
                "description": "A test repository",
                "stargazers_count": 42,
                "forks_count": 7,
                "open_issues_count": 3,
                "updated_at": "2024-01-01T00:00:00Z",
                "language": "Python",
                "default_branch": self.default_branch,
            })

        if rest[:2] == ["git", "trees"]:
            if rest[2] not in (self.default_branch, "HEAD"):
                return httpx.Response(404, json={"message": "Not Found"})
            tree = [{"path": "src", "type": "tree", "sha": "dir-sha"}]
            tree.extend(
                {"path": path, "type": "blob", "sha": sha, "size": len(self.files[path])}
                for path, sha in self.path_to_sha.items()
            )
            return httpx.Response(200, json={"tree": tree, "truncated": self.truncated})

        if rest[:2] == ["git", "blobs"]:
            path = self.sha_to_path.get(rest[2])
            if path is None:
                return httpx.Response(404, json={"message": "Not Found"})
            return self._file_body(path)

        if rest[0] == "contents":
            return self._file_body("/".join(rest[1:]))

        return httpx.Response(404, json={"message": "Not Found"})


def sse_body(*chunks: str, done: bool = True) -> bytes:
    """Upstream completion stream carrying the given deltas."""
    lines = [
        "data: " + json.dumps({"choices": [{"delta": {"content": chunk}}]})
        for chunk in chunks
    ]
    if done:
        lines.append("data: [DONE]")
    return ("\n\n".join(lines) + "\n\n").encode("utf-8")


class FakeLLM:
    """
    OpenAI-compatible chat-completions backend served through httpx.MockTransport.

    Non-streaming calls answer `reply`, or `body` verbatim when given;
    streaming calls answer `stream`.
    """

    def __init__(
        self,
        reply: str = "",
        stream: bytes = b"",
        status_code: int = 200,
        error_message: str = "Rate limit exceeded",
        body: Optional[bytes] = None,
    ):
        self.reply = reply
        self.stream = stream
        self.status_code = status_code
        self.error_message = error_message
        self.body = body
        self.payloads: List[dict] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        self.payloads.append(payload)
        if self.status_code >= 400:
            return httpx.Response(self.status_code, json={"error": {"message": self.error_message}})
        if payload.get("stream"):
            return httpx.Response(200, content=self.stream, headers={"Content-Type": "text/event-stream"})
        if self.body is not None:
            return httpx.Response(200, content=self.body, headers={"Content-Type": "application/json"})
        return httpx.Response(200, json={"choices": [{"message": {"content": self.reply}}]})

    def client(self) -> LLMClient:
        return LLMClient(LLMConfig(api_key="sk-test"), transport=httpx.MockTransport(self.handler))


@pytest.fixture
def limits():
    return AnalysisLimits()


@pytest.fixture
def fake_github():
    return FakeGitHub(files={
        "README.md": "# Hello\nA sample project.\n",
        "package.json": '{"name": "hello"}\n',
        "src/app.js": "const x = 1;\n" * 3 + "eval(userInput);\n",
        "src/server.py": "import os\n\ndef login(user):\n    return user\n",
        "docs/guide.md": "# Guide\n",
    })


@pytest.fixture
def unconfigured_llm():
    return LLMClient(LLMConfig(api_key=None))


@pytest.fixture
def make_client(fake_github, unconfigured_llm):
    """Build a TestClient whose upstreams are the given fakes."""
    created = []

    def _make(github: Optional[FakeGitHub] = None, llm: Optional[LLMClient] = None) -> TestClient:
        github = github or fake_github
        app = create_app()
        app.dependency_overrides[get_github_client] = lambda: github.client()
        app.dependency_overrides[get_llm_client] = lambda: llm or unconfigured_llm
        client = TestClient(app, raise_server_exceptions=False)
        created.append(client)
        return client

    yield _make
    for client in created:
        client.close()


@pytest.fixture
def client(make_client):
    return make_client()
