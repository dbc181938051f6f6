"""DA Admin API client.

Thin wrapper over a shared ``httpx.AsyncClient``:
- URL construction from (api, org, repo, path, extension)
- Source document reads (HTML or JSON)
- Document uploads as multipart ``data`` field (HTML or JSON)

Errors are raised as AdminRequestError carrying the HTTP status. Whether a
failure means "document does not exist" is decided by ``is_not_found_error()``
from that status alone; the URL and response body never count.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from .config import DASettings
from .exceptions import AdminRequestError, UpstreamRequestError

logger = logging.getLogger(__name__)

# Upload file names only matter to the multipart encoder
_UPLOAD_TYPES: dict[str, tuple[str, str]] = {
    "html": ("index.html", "text/html"),
    "json": ("data.json", "application/json"),
}


def is_not_found_error(error: BaseException) -> bool:
    """Return True if an upstream error signals a missing document.

    Upstream errors are judged by their status code only. Other exceptions
    fall back to a "404" marker in the message.
    """
    if isinstance(error, UpstreamRequestError):
        return error.is_not_found
    return "404" in str(error)


class DAAdminClient:
    """Client for the DA Admin API (source documents) and content URLs.

    Usage:
        ```python
        async with httpx.AsyncClient() as http:
            client = DAAdminClient(settings, http)
            html = await client.get_source("org", "repo", "/library/blocks/hero", "html")
        ```
    """

    def __init__(self, settings: DASettings, http_client: httpx.AsyncClient):
        self.settings = settings
        self._http = http_client

    # ------------------------------------------------------------------
    # URL helpers
    # ------------------------------------------------------------------

    def format_url(
        self, api: str, org: str, repo: str, path: str = "", ext: str | None = None
    ) -> str:
        """Build an admin API URL.

        Examples:
            >>> client.format_url("source", "acme", "site", "/placeholders", "json")
            'https://admin.da.live/source/acme/site/placeholders.json'
        """
        clean_path = path.strip("/")
        url = f"{self.settings.admin_url}/{api}/{org}/{repo}"
        if clean_path:
            url += f"/{clean_path}"
        if ext:
            url += f".{ext}"
        return url

    def content_url(self, org: str, repo: str, path: str) -> str:
        """Build the public content URL for a document path (no extension)."""
        return f"{self.settings.content_url}/{org}/{repo}/{path.lstrip('/')}"

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.settings.admin_token:
            headers["Authorization"] = f"Bearer {self.settings.admin_token}"
        return headers

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def request(
        self,
        url: str,
        method: str = "GET",
        files: dict[str, tuple[str, bytes, str]] | None = None,
    ) -> Any:
        """Perform an admin API request.

        Returns:
            Parsed JSON for JSON responses, text otherwise (None for empty bodies)

        Raises:
            AdminRequestError: Non-2xx response or transport failure
        """
        logger.debug(f"DA Admin {method} {url}")
        try:
            response = await self._http.request(
                method, url, headers=self._headers(), files=files
            )
        except httpx.HTTPError as e:
            raise AdminRequestError(0, method, url, str(e)) from e

        if not response.is_success:
            raise AdminRequestError(response.status_code, method, url, response.text[:200])

        if not response.content:
            return None

        content_type = response.headers.get("content-type", "")
        if "application/json" in content_type.lower():
            try:
                return response.json()
            except json.JSONDecodeError:
                return response.text
        return response.text

    async def get_source(self, org: str, repo: str, path: str, ext: str = "html") -> Any:
        """Read a source document."""
        return await self.request(self.format_url("source", org, repo, path, ext))

    async def upload(self, url: str, content: str, kind: str) -> Any:
        """Upload a document body as the multipart ``data`` field.

        Args:
            url: Admin source URL (with extension)
            content: Serialized document
            kind: "html" or "json"
        """
        filename, content_type = _UPLOAD_TYPES[kind]
        files = {"data": (filename, content.encode("utf-8"), content_type)}
        result = await self.request(url, method="PUT", files=files)
        logger.info(f"Uploaded {kind} document: {url}")
        return result

    async def upload_html(self, url: str, html: str) -> Any:
        return await self.upload(url, html, "html")

    async def upload_json(self, url: str, data: Any) -> Any:
        return await self.upload(url, json.dumps(data, indent=2), "json")


__all__ = ["DAAdminClient", "is_not_found_error"]
