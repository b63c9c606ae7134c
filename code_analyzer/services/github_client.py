"""
GitHub Client - Tree, blob and content retrieval from the GitHub REST API.

Handles:
- Authentication headers (optional bearer token, fixed User-Agent)
- Listing a whole repository with ONE recursive git/trees call
- Fetching blobs by SHA and contents by path
- Base64 decoding and size truncation

Per-file fetches never raise: they return a StepResult so a batch can keep
whatever succeeded. Repository-level failures (unknown repo, unresolvable
branch, upstream errors) raise and are surfaced to the caller.
"""

import base64
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple
from urllib.parse import quote

import httpx

from code_analyzer.core.exceptions import UpstreamError, UpstreamNotFoundError
from code_analyzer.core.result import ErrorKind, StepResult
from code_analyzer.models.schemas import FetchedFile, FileRef, RepoInfo

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "\n... (truncated)"
GITHUB_MEDIA_TYPE = "application/vnd.github.v3+json"


@dataclass
class GitHubClientConfig:
    """Configuration for the GitHub client."""
    api_url: str = "https://api.github.com"
    token: Optional[str] = None
    user_agent: str = "DYOR-Code-Analyzer"
    timeout_seconds: float = 30.0
    max_file_chars: int = 50_000


def truncate_content(content: str, max_chars: int) -> Tuple[str, bool]:
    """Cap content at max_chars, appending a visible marker when capped."""
    if len(content) > max_chars:
        return content[:max_chars] + TRUNCATION_MARKER, True
    return content, False


def decode_content(content: str, encoding: Optional[str]) -> str:
    """Decode a blob/contents payload to text."""
    if encoding == "base64":
        # GitHub wraps base64 at 60 columns; b64decode drops the newlines
        return base64.b64decode(content).decode("utf-8", errors="replace")
    return content or ""


def _error_message(response: httpx.Response, default: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return default
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return default


def _kind_for_status(status_code: int) -> ErrorKind:
    if status_code == 404:
        return ErrorKind.UPSTREAM_NOT_FOUND
    return ErrorKind.UPSTREAM_ERROR


class GitHubClient:
    """
    Async GitHub REST client scoped to one inbound request.

    Use as an async context manager so every call of the request shares one
    connection pool:

        async with GitHubClient(config) as github:
            tree = await github.list_tree("octocat", "hello-world")
    """

    def __init__(
        self,
        config: Optional[GitHubClientConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.config = config or GitHubClientConfig()
        self._transport = transport
        self._http: Optional[httpx.AsyncClient] = None

    @property
    def headers(self) -> dict:
        """Headers attached to every outbound request."""
        headers = {
            "Accept": GITHUB_MEDIA_TYPE,
            "User-Agent": self.config.user_agent,
        }
        # Unauthenticated requests are allowed, just rate-limited harder
        if self.config.token:
            headers["Authorization"] = f"Bearer {self.config.token}"
        return headers

    async def __aenter__(self) -> "GitHubClient":
        self._http = httpx.AsyncClient(
            base_url=self.config.api_url,
            headers=self.headers,
            timeout=self.config.timeout_seconds,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def _get(self, url: str, **kwargs) -> httpx.Response:
        if self._http is None:
            raise RuntimeError("GitHubClient must be used as an async context manager")
        return await self._http.get(url, **kwargs)

    # ------------------------------------------------------------------
    # Repository-level calls (raise on failure)
    # ------------------------------------------------------------------

    async def get_repository(self, owner: str, repo: str) -> RepoInfo:
        """
        Fetch repository metadata.

        Raises:
            UpstreamNotFoundError: repository does not exist (or is private)
            UpstreamError: any other non-2xx or network failure
        """
        try:
            response = await self._get(f"/repos/{owner}/{repo}")
        except httpx.HTTPError as e:
            raise UpstreamError(f"GitHub request failed: {e}")

        if response.status_code == 404:
            raise UpstreamNotFoundError(
                _error_message(response, "Repository not found"),
                resource=f"{owner}/{repo}"
            )
        if not response.is_success:
            raise UpstreamError(
                _error_message(response, "Repository not found"),
                upstream_status=response.status_code
            )

        data = response.json()
        return RepoInfo(
            description=data.get("description"),
            stargazers_count=data.get("stargazers_count") or 0,
            forks_count=data.get("forks_count") or 0,
            open_issues_count=data.get("open_issues_count") or 0,
            updated_at=data.get("updated_at"),
            language=data.get("language"),
            default_branch=data.get("default_branch") or "HEAD",
        )

    async def list_tree(self, owner: str, repo: str, ref: str = "HEAD") -> List[FileRef]:
        """
        List every file in the repository with a single recursive call.

        `ref` may be a branch, tag or commit SHA; "HEAD" resolves the
        default branch on the GitHub side so no extra lookup is needed.

        Raises:
            UpstreamNotFoundError: repository or ref cannot be resolved
            UpstreamError: any other non-2xx or network failure
        """
        try:
            response = await self._get(
                f"/repos/{owner}/{repo}/git/trees/{quote(ref, safe='')}",
                params={"recursive": "1"},
            )
        except httpx.HTTPError as e:
            raise UpstreamError(f"GitHub request failed: {e}")

        # 409 is what GitHub answers for an empty repository
        if response.status_code in (404, 409):
            raise UpstreamNotFoundError(
                "Failed to fetch repository tree",
                resource=f"{owner}/{repo}@{ref}"
            )
        if not response.is_success:
            raise UpstreamError(
                _error_message(response, "Failed to fetch repository tree"),
                upstream_status=response.status_code
            )

        data = response.json()
        if data.get("truncated"):
            logger.warning(f"Tree for {owner}/{repo}@{ref} was truncated by GitHub")

        tree = [
            FileRef(
                path=item["path"],
                sha=item["sha"],
                size=item.get("size") or 0,
                type=item["type"],
            )
            for item in data.get("tree", [])
            if item.get("type") == "blob"
        ]
        logger.info(f"Listed {len(tree)} files in {owner}/{repo}@{ref}")
        return tree

    # ------------------------------------------------------------------
    # Per-file calls (never raise)
    # ------------------------------------------------------------------

    async def get_blob(self, owner: str, repo: str, ref: FileRef) -> StepResult:
        """Fetch one blob by SHA. Returns StepResult[FetchedFile]."""
        return await self._fetch(
            f"/repos/{owner}/{repo}/git/blobs/{ref.sha}",
            ref.path,
        )

    async def get_file_content(self, owner: str, repo: str, path: str) -> StepResult:
        """Fetch one file by path (SHA unknown). Returns StepResult[FetchedFile]."""
        return await self._fetch(
            f"/repos/{owner}/{repo}/contents/{quote(path, safe='/')}",
            path,
        )

    async def fetch_file(
        self,
        owner: str,
        repo: str,
        path: str,
        sha: Optional[str] = None
    ) -> StepResult:
        """Fetch by blob SHA when known, otherwise by path."""
        if sha:
            return await self.get_blob(owner, repo, FileRef(path=path, sha=sha))
        return await self.get_file_content(owner, repo, path)

    async def _fetch(self, url: str, path: str) -> StepResult:
        try:
            response = await self._get(url)
        except httpx.HTTPError as e:
            return StepResult.fail(ErrorKind.UPSTREAM_ERROR, f"{path}: {e}")

        if not response.is_success:
            return StepResult.fail(
                _kind_for_status(response.status_code),
                f"{path}: {_error_message(response, 'Failed to fetch file')}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError:
            return StepResult.fail(ErrorKind.PARSE_ERROR, f"{path}: invalid JSON from GitHub")

        if not isinstance(data, dict):
            return StepResult.fail(ErrorKind.BAD_REQUEST, f"{path}: is a directory")
        if not data.get("content"):
            return StepResult.fail(ErrorKind.BAD_REQUEST, f"{path}: no content available")

        try:
            text = decode_content(data["content"], data.get("encoding"))
        except ValueError as e:
            return StepResult.fail(ErrorKind.PARSE_ERROR, f"{path}: cannot decode content ({e})")

        content, truncated = truncate_content(text, self.config.max_file_chars)
        return StepResult.ok(FetchedFile(path=path, content=content, truncated=truncated))
