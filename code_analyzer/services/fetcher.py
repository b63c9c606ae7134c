"""
Fetch Stage and Context Assembler.

The fetch stage pulls at most max_fetch_files files through the GitHub
client with a small concurrency bound. Failed files are logged and
dropped; the stage returns whatever succeeded, in input order (results
are re-ordered after completion, never taken in arrival order).

The context assembler joins fetched files into one prompt-ready blob with
a per-file header so the model can attribute statements to files.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Protocol, Sequence

from code_analyzer.core.config import AnalysisLimits
from code_analyzer.core.exceptions import BadRequestError, UpstreamError, UpstreamNotFoundError
from code_analyzer.core.result import ErrorKind, StepResult
from code_analyzer.models.schemas import FetchedFile, FileRef
from code_analyzer.services.github_client import GitHubClient

logger = logging.getLogger(__name__)


class FileTarget(Protocol):
    """Anything with a path and an optional blob SHA."""
    path: str
    sha: Optional[str]


class FetchStage:
    """Bounded, order-preserving batch fetch of file contents."""

    def __init__(self, github: GitHubClient, limits: Optional[AnalysisLimits] = None):
        self.github = github
        self.limits = limits or AnalysisLimits()

    async def fetch(
        self,
        owner: str,
        repo: str,
        files: Sequence[FileTarget],
        tree: Optional[Sequence[FileRef]] = None,
        max_files: Optional[int] = None
    ) -> List[FetchedFile]:
        """
        Fetch up to `max_files` files (default max_fetch_files).

        SHA resolution: the request's SHA, else the tree's SHA for that path,
        else a contents-by-path fetch.
        """
        cap = max_files if max_files is not None else self.limits.max_fetch_files
        targets = list(files)[:cap]
        if len(files) > len(targets):
            logger.info(f"Fetch capped at {len(targets)} of {len(files)} requested files")

        sha_by_path: Dict[str, str] = {ref.path: ref.sha for ref in tree or ()}
        semaphore = asyncio.Semaphore(max(1, self.limits.fetch_concurrency))

        async def fetch_one(target: FileTarget) -> StepResult:
            sha = target.sha or sha_by_path.get(target.path)
            async with semaphore:
                return await self.github.fetch_file(owner, repo, target.path, sha)

        # gather returns results in argument order regardless of completion order
        results = await asyncio.gather(*(fetch_one(t) for t in targets))

        fetched: List[FetchedFile] = []
        for target, result in zip(targets, results):
            if result.success:
                fetched.append(result.data)
            else:
                logger.warning(f"Skipping {target.path} ({result.kind.value}): {result.error}")

        if len(fetched) < len(targets):
            logger.warning(
                f"Fetch finished with {ErrorKind.PARTIAL_FAILURE.value}: "
                f"{len(targets) - len(fetched)} of {len(targets)} files skipped in {owner}/{repo}"
            )
        logger.info(f"Fetched {len(fetched)}/{len(targets)} files from {owner}/{repo}")
        return fetched


def format_file_block(file: FetchedFile) -> str:
    return f"### File: {file.path}\n```\n{file.content}\n```"


def assemble_context(files: Sequence[FetchedFile]) -> str:
    """Concatenate fetched files, in order, into one delimited context string."""
    return "\n\n".join(format_file_block(f) for f in files)


async def fetch_required(github: GitHubClient, owner: str, repo: str, path: str) -> FetchedFile:
    """
    Fetch one file that the request cannot do without.

    Raises:
        UpstreamNotFoundError: the file does not exist
        BadRequestError: the path is a directory or has no content
        UpstreamError: any other fetch failure
    """
    result = await github.get_file_content(owner, repo, path)
    if result.success:
        return result.data
    if result.kind == ErrorKind.UPSTREAM_NOT_FOUND:
        raise UpstreamNotFoundError("Failed to fetch file", resource=path)
    if result.kind == ErrorKind.BAD_REQUEST:
        raise BadRequestError("No content available")
    raise UpstreamError(f"Failed to fetch file: {result.error}", upstream_status=result.status_code)
