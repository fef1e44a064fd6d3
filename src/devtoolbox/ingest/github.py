"""GitHub fetcher: key repository files via the GitHub REST API.

Pipeline:
  1. GET /repos/{owner}/{repo}                       → default branch
  2. GET /repos/{owner}/{repo}/git/trees/{branch}?recursive=1
  3. Keep blobs whose path looks important (README, manifests, source files),
     in tree order, first ``max_files``.
  4. GET /repos/{owner}/{repo}/contents/{path}       → base64 file content
     Files of ``max_file_bytes`` or more are skipped.

Every file is chunked as ``code``. A single file failing is logged and
skipped; repository- or tree-level failures fail the whole source.

GITHUB_TOKEN (optional) is sent as a bearer token and never logged.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import os
import re
import urllib.error
import urllib.parse
import urllib.request
from typing import Any

from devtoolbox.context.base import CHUNK_SIZE
from devtoolbox.context.chunking import chunk
from devtoolbox.context.models import (
    CODE,
    GITHUB,
    MAX_CHUNKS_PER_SOURCE,
    ContextChunk,
    ContextSource,
)
from devtoolbox.ingest.base import BaseFetcher

logger = logging.getLogger(__name__)

_API_URL = "https://api.github.com"
_USER_AGENT = "devtoolbox/0.1"
_TIMEOUT = 30  # seconds
_MAX_RESPONSE_BYTES = 10 * 1024 * 1024


class GitHubApiError(RuntimeError):
    """Non-2xx answer from the GitHub API; *status* is the HTTP code."""

    def __init__(self, message: str, status: int, rate_limited: bool = False) -> None:
        super().__init__(message)
        self.status = status
        self.rate_limited = rate_limited


_REPO_RE = re.compile(r"github\.com/([^/]+/[^/]+)")

_IMPORTANT_FILE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"README", re.IGNORECASE),
    re.compile(r"package\.json$"),
    re.compile(r"\.md$"),
    re.compile(r"\.js$"),
    re.compile(r"\.ts$"),
    re.compile(r"\.jsx$"),
    re.compile(r"\.tsx$"),
    re.compile(r"\.py$"),
    re.compile(r"\.java$"),
    re.compile(r"\.cpp$"),
    re.compile(r"\.c$"),
    re.compile(r"\.go$"),
    re.compile(r"\.rs$"),
)


def extract_repo_id(url: str) -> str | None:
    """Return ``owner/repo`` from a GitHub URL, or None if it is not one."""
    match = _REPO_RE.search(url)
    if not match:
        return None
    repo_id = match.group(1).split("#", 1)[0].split("?", 1)[0]
    if repo_id.endswith(".git"):
        repo_id = repo_id[: -len(".git")]
    return repo_id


def is_important_file(path: str) -> bool:
    return any(p.search(path) for p in _IMPORTANT_FILE_PATTERNS)


class GitHubFetcher(BaseFetcher):
    """Fetch a public (or token-accessible) GitHub repository."""

    def __init__(
        self,
        chunk_size: int = CHUNK_SIZE,
        max_chunks: int = MAX_CHUNKS_PER_SOURCE,
        *,
        api_url: str = _API_URL,
        max_files: int = 20,
        max_file_bytes: int = 100_000,
    ) -> None:
        super().__init__(chunk_size=chunk_size, max_chunks=max_chunks)
        self.api_url = api_url.rstrip("/")
        self.max_files = max_files
        self.max_file_bytes = max_file_bytes

    def _new_source(self, locator: str) -> ContextSource:
        repo_id = extract_repo_id(locator)
        if not repo_id:
            raise ValueError(f"Invalid GitHub URL: {locator}")
        return ContextSource(kind=GITHUB, locator=locator, title=repo_id)

    def _load(self, source: ContextSource) -> list[ContextChunk]:
        repo_id = source.title
        try:
            repo = self._get_json(f"/repos/{repo_id}")
        except GitHubApiError as exc:
            if exc.status in (403, 404) and not exc.rate_limited:
                raise RuntimeError(
                    f"Repository not found or private ({exc.status}): {repo_id}"
                ) from exc
            raise
        branch = repo.get("default_branch") or "main"

        tree = self._get_json(
            f"/repos/{repo_id}/git/trees/{urllib.parse.quote(branch, safe='')}?recursive=1"
        )
        entries = tree.get("tree") or []
        if tree.get("truncated"):
            logger.info("%s: tree listing truncated by GitHub", repo_id)

        paths = [
            e["path"]
            for e in entries
            if e.get("type") == "blob" and is_important_file(e.get("path", ""))
        ][: self.max_files]

        chunks: list[ContextChunk] = []
        for path in paths:
            try:
                content = self._get_file(repo_id, path)
            except (ValueError, RuntimeError) as exc:
                logger.warning("Failed to fetch file %s: %s", path, exc)
                continue
            if content is None:
                logger.debug("Skipping %s (too large or empty)", path)
                continue
            chunks.extend(chunk(content, path, CODE, chunk_size=self.chunk_size))
        return chunks

    # ------------------------------------------------------------------
    # API helpers
    # ------------------------------------------------------------------

    def _get_file(self, repo_id: str, path: str) -> str | None:
        """Return the decoded text of *path*, or None if it is skipped."""
        data = self._get_json(
            f"/repos/{repo_id}/contents/{urllib.parse.quote(path)}"
        )
        encoded = data.get("content")
        if not encoded or int(data.get("size", 0)) >= self.max_file_bytes:
            return None
        try:
            raw = base64.b64decode(encoded)
        except (binascii.Error, ValueError) as exc:
            raise ValueError(f"Invalid base64 content for {path}") from exc
        return raw.decode("utf-8", errors="replace")

    def _get_json(self, endpoint: str) -> dict[str, Any]:
        url = f"{self.api_url}{endpoint}"
        request = urllib.request.Request(url, headers=self._headers())
        try:
            with urllib.request.urlopen(request, timeout=_TIMEOUT) as response:
                body = response.read(_MAX_RESPONSE_BYTES + 1)
        except urllib.error.HTTPError as exc:
            remaining = exc.headers.get("X-RateLimit-Remaining") if exc.headers else None
            if exc.code in (403, 429) and remaining == "0":
                raise GitHubApiError(
                    "GitHub API rate limit exceeded; set GITHUB_TOKEN to raise it",
                    exc.code,
                    rate_limited=True,
                ) from exc
            raise GitHubApiError(f"GitHub API error {exc.code} for {endpoint}", exc.code) from exc
        except urllib.error.URLError as exc:
            raise RuntimeError(f"Failed to reach GitHub API: {exc.reason}") from exc

        if len(body) > _MAX_RESPONSE_BYTES:
            raise RuntimeError(f"GitHub API response too large for {endpoint}")
        try:
            data = json.loads(body)
        except json.JSONDecodeError as exc:
            raise RuntimeError(f"Invalid JSON from GitHub API for {endpoint}") from exc
        if not isinstance(data, dict):
            raise RuntimeError(f"Unexpected GitHub API response for {endpoint}")
        return data

    @staticmethod
    def _headers() -> dict[str, str]:
        headers = {
            "User-Agent": _USER_AGENT,
            "Accept": "application/vnd.github+json",
        }
        token = os.environ.get("GITHUB_TOKEN", "")
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers
