"""Exception hierarchy for da-library-mcp.

Not-found conditions are never raised from here: content sources and sheet
reads translate them into ``None``/empty results. These exceptions cover the
failures that must reach the tool boundary.
"""

from __future__ import annotations


class DALibraryError(Exception):
    """Base class for all da-library-mcp errors."""


class ConfigurationError(DALibraryError):
    """No usable configuration (content source, config file) could be determined."""


class InvalidBlockNameError(DALibraryError, ValueError):
    """
    Block or template name rejected before any I/O.

    Attributes:
        name: The rejected name
        reason: Human-readable explanation
    """

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Invalid block name '{name}': {reason}")


class UpstreamRequestError(DALibraryError):
    """
    HTTP request to an upstream service failed.

    The status code is embedded in the message so callers that only see the
    string form (FastMCP error results) can tell a missing document from other
    failures. In-process checks use ``is_not_found``, never the message text.

    Attributes:
        status_code: HTTP status code (0 when no response was received)
        method: HTTP method of the failed request
        url: Request URL
        detail: Response body excerpt or transport error text
    """

    service: str = "Upstream"

    def __init__(self, status_code: int, method: str, url: str, detail: str = ""):
        self.status_code = status_code
        self.method = method
        self.url = url
        self.detail = detail

        if status_code:
            message = f"{self.service} request {method} {url} failed with status {status_code}"
        else:
            message = f"{self.service} request {method} {url} failed before a response"
        if detail:
            message += f": {detail}"
        super().__init__(message)

    @property
    def is_not_found(self) -> bool:
        """True when the upstream reported 404."""
        return self.status_code == 404

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(status_code={self.status_code}, "
            f"method={self.method!r}, url={self.url!r})"
        )


class AdminRequestError(UpstreamRequestError):
    """DA Admin API request failed."""

    service = "DA Admin API"


class GitHubRequestError(UpstreamRequestError):
    """GitHub REST API request failed."""

    service = "GitHub API"


__all__ = [
    "DALibraryError",
    "ConfigurationError",
    "InvalidBlockNameError",
    "UpstreamRequestError",
    "AdminRequestError",
    "GitHubRequestError",
]
