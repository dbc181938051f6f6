"""Read-only GitHub REST API client for remote block sources.

Only the contents endpoint is used:
    GET /repos/{owner}/{repo}/contents/{path}?ref={branch}

File responses carry base64-encoded content; directory responses are lists of
entries with ``name`` and ``type``.
"""

from __future__ import annotations

import base64
import logging
from typing import Any

import httpx

from .config import DASettings
from .exceptions import GitHubRequestError

logger = logging.getLogger(__name__)


class GitHubClient:
    """Minimal async client over the GitHub contents API."""

    def __init__(self, settings: DASettings, http_client: httpx.AsyncClient):
        self.settings = settings
        self._http = http_client

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.settings.github_token:
            headers["Authorization"] = f"Bearer {self.settings.github_token}"
        return headers

    async def get_content(self, owner: str, repo: str, path: str, ref: str = "main") -> Any:
        """Fetch raw contents API JSON for a file or directory.

        Raises:
            GitHubRequestError: Non-2xx response, transport failure or non-JSON body
        """
        url = f"{self.settings.github_api_url}/repos/{owner}/{repo}/contents/{path.strip('/')}"
        logger.debug(f"GitHub GET {url}@{ref}")
        try:
            response = await self._http.get(url, headers=self._headers(), params={"ref": ref})
        except httpx.HTTPError as e:
            raise GitHubRequestError(0, "GET", url, str(e)) from e

        if not response.is_success:
            raise GitHubRequestError(response.status_code, "GET", url, response.text[:200])

        try:
            return response.json()
        except ValueError as e:
            raise GitHubRequestError(
                response.status_code, "GET", url, f"response is not JSON: {e}"
            ) from e

    async def get_file_content(self, owner: str, repo: str, path: str, ref: str = "main") -> str:
        """Fetch and decode a file's text content.

        Raises:
            GitHubRequestError: Request failed
            ValueError: Path is not a file
        """
        data = await self.get_content(owner, repo, path, ref)
        if not isinstance(data, dict) or data.get("type") != "file":
            raise ValueError(f"Not a file: {path}")

        encoded = data.get("content") or ""
        if data.get("encoding", "base64") == "base64":
            return base64.b64decode(encoded).decode("utf-8")
        return encoded

    async def list_entries(
        self, owner: str, repo: str, path: str, ref: str = "main"
    ) -> list[dict[str, Any]]:
        """List a directory's entries (files and subdirectories)."""
        data = await self.get_content(owner, repo, path, ref)
        entries = data if isinstance(data, list) else [data]
        return [e for e in entries if isinstance(e, dict)]

    async def list_directories(
        self, owner: str, repo: str, path: str, ref: str = "main"
    ) -> list[dict[str, str]]:
        """List subdirectories of ``path`` as ``{"name", "type": "dir"}`` entries."""
        entries = await self.list_entries(owner, repo, path, ref)
        return [
            {"name": e["name"], "type": "dir"}
            for e in entries
            if e.get("type") == "dir" and e.get("name")
        ]


__all__ = ["GitHubClient"]
