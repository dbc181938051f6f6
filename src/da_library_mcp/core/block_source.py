"""Content sources: where block code lives.

A block source is either a local ``blocks/`` directory or a directory in a
GitHub repository. Both expose the same read-only interface (BlockSource).

Selection is split in two steps:
- ``resolve_source_spec()`` is a pure function turning a SourceRequest plus
  what was detected on disk into a tagged SourceSpec (local | github)
- ``open_block_source()`` builds the BlockSource for a SourceSpec

Resolution order (first match wins):
1. Explicit ``github`` config -> GitHub source
2. ``use_local`` or ``local_blocks_path`` -> local source
3. ``./blocks`` exists in the working directory -> local source
4. Otherwise ConfigurationError

All reads are best-effort: missing files and read errors become ``None``,
``[]`` or ``False``. Only resolution failures raise.
"""

from __future__ import annotations

import asyncio
import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path
from typing import Annotated, Any, Literal, TypeVar

from pydantic import BaseModel, Field

from .exceptions import ConfigurationError, DALibraryError
from .github_client import GitHubClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

BLOCK_FILE_SUFFIXES = (".js", ".css")

_ORIGIN_URL_RE = re.compile(r'\[remote "origin"\][^\[]*url\s*=\s*(.+)')
_GITHUB_URL_RE = re.compile(r"github\.com[:/]([^/]+)/([^/.]+)")

NO_SOURCE_MESSAGE = (
    "No block source specified. Either:\n"
    "1. Provide github: { org, repo } for remote source\n"
    "2. Set use_local: true for local blocks\n"
    "3. Run from an EDS project directory (auto-detect)"
)


# =============================================================================
# Source selection models
# =============================================================================


class GitHubSourceConfig(BaseModel):
    """Remote block source as supplied by a tool caller."""

    model_config = {"extra": "forbid"}

    org: str = Field(description="GitHub organization or user", min_length=1)
    repo: str = Field(description="Repository name", min_length=1)
    branch: str = Field(default="main", description="Branch or ref to read")
    blocks_path: str = Field(default="blocks", description="Directory holding block folders")


class SourceRequest(BaseModel):
    """Caller's source selection (all fields optional)."""

    github: GitHubSourceConfig | None = None
    use_local: bool | None = None
    local_blocks_path: str | None = None


class GitRemote(BaseModel):
    """Owner/repository recovered from the local git origin (display only)."""

    org: str
    repo: str
    remote: str


class LocalSourceSpec(BaseModel):
    kind: Literal["local"] = "local"
    path: str
    git: GitRemote | None = None


class GitHubSourceSpec(BaseModel):
    kind: Literal["github"] = "github"
    org: str
    repo: str
    branch: str = "main"
    blocks_path: str = "blocks"


SourceSpec = Annotated[LocalSourceSpec | GitHubSourceSpec, Field(discriminator="kind")]


def resolve_source_spec(
    request: SourceRequest,
    detected_blocks_dir: Path | None = None,
    git_remote: GitRemote | None = None,
) -> LocalSourceSpec | GitHubSourceSpec:
    """Pick the content source for a request.

    Args:
        request: Caller's source selection
        detected_blocks_dir: ``blocks`` directory found in the working directory
        git_remote: Parsed local git origin, attached to local specs

    Raises:
        ConfigurationError: No source can be determined
    """
    if request.github is not None:
        return GitHubSourceSpec(**request.github.model_dump())

    if request.use_local or request.local_blocks_path:
        blocks_path = request.local_blocks_path or detected_blocks_dir
        if not blocks_path:
            raise ConfigurationError(
                "Local blocks directory not found. "
                "Pass local_blocks_path or run from a directory containing ./blocks"
            )
        return LocalSourceSpec(path=str(blocks_path), git=git_remote)

    if detected_blocks_dir is not None:
        return LocalSourceSpec(path=str(detected_blocks_dir), git=git_remote)

    raise ConfigurationError(NO_SOURCE_MESSAGE)


# =============================================================================
# Local detection helpers
# =============================================================================


async def _run_sync(func: Callable[[], T]) -> T:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, func)


async def detect_local_blocks_dir(start_path: str | Path | None = None) -> Path | None:
    """Return ``<start_path>/blocks`` if it is a directory, else None."""
    blocks_path = (Path(start_path) if start_path else Path.cwd()).resolve() / "blocks"
    is_dir = await _run_sync(blocks_path.is_dir)
    return blocks_path if is_dir else None


def parse_git_remote(git_config: str) -> GitRemote | None:
    """Extract the GitHub owner/repo of ``origin`` from ``.git/config`` text."""
    remote_match = _ORIGIN_URL_RE.search(git_config)
    if not remote_match:
        return None

    url = remote_match.group(1).strip()
    github_match = _GITHUB_URL_RE.search(url)
    if not github_match:
        return None

    repo = github_match.group(2)
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    return GitRemote(org=github_match.group(1), repo=repo, remote=url)


async def detect_git_remote(cwd: str | Path | None = None) -> GitRemote | None:
    """Best-effort read of the local git origin; any failure yields None."""
    config_path = (Path(cwd) if cwd else Path.cwd()) / ".git" / "config"
    try:
        text = await _run_sync(lambda: config_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError):
        return None
    return parse_git_remote(text)


# =============================================================================
# Sources
# =============================================================================


class BlockSource(ABC):
    """Read-only view over a directory of block folders.

    Paths are relative to the blocks root, e.g. ``"hero/hero.js"``.
    """

    kind: str = ""

    @abstractmethod
    async def get_file_content(self, path: str) -> str | None:
        """Return file text, or None if missing or unreadable."""

    @abstractmethod
    async def list_directories(self) -> list[dict[str, str]]:
        """Return block folders as ``{"name": ..., "type": "dir"}``."""

    @abstractmethod
    async def file_exists(self, path: str) -> bool:
        """Return True if the file exists."""

    @abstractmethod
    async def list_files(self, block_name: str) -> list[str]:
        """Return the ``.js``/``.css`` file names in a block folder."""


class LocalBlockSource(BlockSource):
    """Block source backed by a local directory."""

    kind = "local"

    def __init__(self, blocks_path: str | Path):
        self.root = Path(blocks_path).resolve()

    def _resolve(self, path: str) -> Path | None:
        full_path = (self.root / path).resolve()
        if not full_path.is_relative_to(self.root):
            return None
        return full_path

    async def get_file_content(self, path: str) -> str | None:
        full_path = self._resolve(path)
        if full_path is None:
            return None
        try:
            return await _run_sync(lambda: full_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError):
            return None

    async def list_directories(self) -> list[dict[str, str]]:
        def _list() -> list[dict[str, str]]:
            return [
                {"name": entry.name, "type": "dir"}
                for entry in sorted(self.root.iterdir())
                if entry.is_dir()
            ]

        try:
            return await _run_sync(_list)
        except OSError:
            return []

    async def file_exists(self, path: str) -> bool:
        full_path = self._resolve(path)
        if full_path is None:
            return False
        return await _run_sync(full_path.exists)

    async def list_files(self, block_name: str) -> list[str]:
        block_path = self._resolve(block_name)
        if block_path is None:
            return []

        def _list() -> list[str]:
            return sorted(
                entry.name
                for entry in block_path.iterdir()
                if entry.is_file() and entry.name.endswith(BLOCK_FILE_SUFFIXES)
            )

        try:
            return await _run_sync(_list)
        except OSError:
            return []


class GitHubBlockSource(BlockSource):
    """Block source backed by a directory in a GitHub repository."""

    kind = "github"

    def __init__(
        self,
        client: GitHubClient,
        org: str,
        repo: str,
        branch: str = "main",
        blocks_path: str = "blocks",
    ):
        self.client = client
        self.org = org
        self.repo = repo
        self.branch = branch
        self.blocks_path = blocks_path.strip("/")

    def _full_path(self, path: str) -> str:
        return f"{self.blocks_path}/{path}" if self.blocks_path else path

    async def get_file_content(self, path: str) -> str | None:
        try:
            return await self.client.get_file_content(
                self.org, self.repo, self._full_path(path), self.branch
            )
        except (DALibraryError, ValueError, UnicodeDecodeError) as e:
            logger.debug(f"GitHub read failed for {path}: {e}")
            return None

    async def list_directories(self) -> list[dict[str, str]]:
        try:
            return await self.client.list_directories(
                self.org, self.repo, self.blocks_path, self.branch
            )
        except DALibraryError as e:
            logger.debug(f"GitHub directory listing failed: {e}")
            return []

    async def file_exists(self, path: str) -> bool:
        try:
            await self.client.get_content(self.org, self.repo, self._full_path(path), self.branch)
        except DALibraryError:
            return False
        return True

    async def list_files(self, block_name: str) -> list[str]:
        try:
            entries: list[dict[str, Any]] = await self.client.list_entries(
                self.org, self.repo, self._full_path(block_name), self.branch
            )
        except DALibraryError:
            return []
        return [
            entry["name"]
            for entry in entries
            if entry.get("type") == "file" and entry.get("name", "").endswith(BLOCK_FILE_SUFFIXES)
        ]


def open_block_source(
    spec: LocalSourceSpec | GitHubSourceSpec, github_client: GitHubClient | None = None
) -> BlockSource:
    """Create the BlockSource for a resolved spec."""
    if isinstance(spec, GitHubSourceSpec):
        if github_client is None:
            raise ConfigurationError("GitHub source requested but no GitHub client is available")
        return GitHubBlockSource(github_client, spec.org, spec.repo, spec.branch, spec.blocks_path)
    return LocalBlockSource(spec.path)


async def resolve_block_source(
    request: SourceRequest,
    github_client: GitHubClient | None = None,
    cwd: str | Path | None = None,
) -> tuple[BlockSource, LocalSourceSpec | GitHubSourceSpec]:
    """Resolve and open the block source for a request.

    Returns:
        (source, spec); ``spec.model_dump()`` is reported to callers as metadata

    Raises:
        ConfigurationError: No source can be determined
    """
    detected: Path | None = None
    git_remote: GitRemote | None = None
    if request.github is None:
        detected, git_remote = await asyncio.gather(
            detect_local_blocks_dir(cwd), detect_git_remote(cwd)
        )

    spec = resolve_source_spec(request, detected, git_remote)
    logger.debug(f"Resolved block source: {spec.kind}")
    return open_block_source(spec, github_client), spec


__all__ = [
    "BlockSource",
    "LocalBlockSource",
    "GitHubBlockSource",
    "GitHubSourceConfig",
    "SourceRequest",
    "GitRemote",
    "LocalSourceSpec",
    "GitHubSourceSpec",
    "SourceSpec",
    "resolve_source_spec",
    "resolve_block_source",
    "open_block_source",
    "detect_local_blocks_dir",
    "detect_git_remote",
    "parse_git_remote",
    "NO_SOURCE_MESSAGE",
]
