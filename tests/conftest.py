"""Shared test configuration for da-library-mcp tests.

Configures test environment including:
- In-memory DA Admin API emulator on a local HTTP mock server
- GitHub contents API mock for remote block sources
- Settings, clients and MCP context fixtures
- Sample blocks directory on disk
"""

import base64
import json
import re
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import httpx
import pytest
from pytest_httpserver import HTTPServer
from werkzeug.wrappers import Request, Response

from da_library_mcp.context import AppContext
from da_library_mcp.core import DAAdminClient, DASettings, GitHubClient

CARDS_JS = """/**
 * Cards block showing a grid of items
 */
import { createOptimizedPicture } from '../../scripts/aem.js';

export default function decorate(block) {
  const ul = document.createElement('ul');
  block.replaceChildren(ul);
}
"""

CARDS_CSS = """.cards > ul {
  display: grid;
}

.cards .cards-card-image img {
  width: 100%;
}

.cards .cards-card-body h3 {
  margin: 0;
}

.cards.compact .cards-card-body {
  padding: 8px;
}

.cards.dark {
  background: #000;
}

.cards.compact > ul {
  gap: 8px;
}
"""

HERO_JS = """export default async function decorate(block) {
  block.classList.add('ready');
}
"""

GIT_CONFIG = """[core]
\trepositoryformatversion = 0
[remote "origin"]
\turl = git@github.com:acme/site.git
\tfetch = +refs/heads/*:refs/remotes/origin/*
"""


class DAAdminEmulator:
    """In-memory document store answering DA Admin API source requests.

    GET returns a stored document or 404; PUT stores the multipart ``data``
    field. Every request is recorded as ``(method, path)``.
    """

    def __init__(self, httpserver: HTTPServer):
        self.httpserver = httpserver
        self.documents: dict[str, bytes] = {}
        self.requests: list[tuple[str, str]] = []
        self.fail_paths: dict[str, int] = {}

    @property
    def base_url(self) -> str:
        return self.httpserver.url_for("/").rstrip("/")

    def source_path(self, org: str, repo: str, path: str, ext: str) -> str:
        return f"/source/{org}/{repo}/{path.strip('/')}.{ext}"

    def put_html(self, org: str, repo: str, path: str, html: str) -> None:
        self.documents[self.source_path(org, repo, path, "html")] = html.encode("utf-8")

    def put_json(self, org: str, repo: str, path: str, data: Any) -> None:
        self.documents[self.source_path(org, repo, path, "json")] = json.dumps(data).encode(
            "utf-8"
        )

    def get_json(self, org: str, repo: str, path: str) -> Any:
        return json.loads(self.documents[self.source_path(org, repo, path, "json")])

    def get_html(self, org: str, repo: str, path: str) -> str:
        return self.documents[self.source_path(org, repo, path, "html")].decode("utf-8")

    def writes(self) -> list[str]:
        return [path for method, path in self.requests if method == "PUT"]

    def handle(self, request: Request) -> Response:
        self.requests.append((request.method, request.path))

        if request.path in self.fail_paths:
            return Response("Internal Server Error", status=self.fail_paths[request.path])

        if request.method == "PUT":
            upload = request.files.get("data")
            if upload is None:
                return Response("Missing data field", status=400)
            self.documents[request.path] = upload.read()
            return Response(json.dumps({"source": {"editUrl": request.path}}), status=201,
                            content_type="application/json")

        body = self.documents.get(request.path)
        if body is None:
            return Response("Not Found", status=404)
        if request.path.endswith(".json"):
            return Response(body, content_type="application/json")
        return Response(body, content_type="text/html")


@pytest.fixture
def da_admin(httpserver: HTTPServer) -> DAAdminEmulator:
    """DA Admin API emulator bound to the local mock server.

    Usage in tests:
        da_admin.put_json("acme", "site", "/placeholders", {...})
        result = await some_tool(org="acme", repo="site", ctx=mock_context)
        assert da_admin.get_json("acme", "site", "/placeholders")["total"] == 1
    """
    emulator = DAAdminEmulator(httpserver)
    httpserver.expect_request(re.compile(r"^/source/.*")).respond_with_handler(emulator.handle)
    return emulator


class GitHubContentsMock:
    """Static file tree served through the GitHub contents API shape."""

    def __init__(self, owner: str, repo: str, files: dict[str, str]):
        self.owner = owner
        self.repo = repo
        self.files = files
        self.refs: list[str] = []

    def _entries(self, directory: str) -> list[dict[str, Any]]:
        prefix = f"{directory}/" if directory else ""
        seen: dict[str, str] = {}
        for path in self.files:
            if not path.startswith(prefix):
                continue
            head, _, rest = path[len(prefix) :].partition("/")
            seen.setdefault(head, "dir" if rest else "file")
        return [{"name": name, "type": kind, "path": f"{prefix}{name}"} for name, kind in seen.items()]

    def handle(self, request: Request) -> Response:
        self.refs.append(request.args.get("ref", ""))
        prefix = f"/repos/{self.owner}/{self.repo}/contents/"
        path = request.path[len(prefix) :].strip("/")

        if path in self.files:
            data = {
                "type": "file",
                "name": path.rsplit("/", 1)[-1],
                "encoding": "base64",
                "content": base64.b64encode(self.files[path].encode("utf-8")).decode("ascii"),
            }
            return Response(json.dumps(data), content_type="application/json")

        entries = self._entries(path)
        if not entries:
            return Response(json.dumps({"message": "Not Found"}), status=404,
                            content_type="application/json")
        return Response(json.dumps(entries), content_type="application/json")


@pytest.fixture
def github_mock(httpserver: HTTPServer) -> GitHubContentsMock:
    """GitHub contents API serving the sample blocks under ``acme/site``."""
    mock = GitHubContentsMock(
        "acme",
        "site",
        {
            "blocks/cards/cards.js": CARDS_JS,
            "blocks/cards/cards.css": CARDS_CSS,
            "blocks/cards/README.md": "# Cards",
            "blocks/hero/hero.js": HERO_JS,
        },
    )
    httpserver.expect_request(re.compile(r"^/repos/acme/site/contents/.*")).respond_with_handler(
        mock.handle
    )
    return mock


@pytest.fixture
def settings(httpserver: HTTPServer) -> DASettings:
    base_url = httpserver.url_for("/").rstrip("/")
    return DASettings(
        admin_url=base_url,
        content_url="https://content.da.live",
        admin_token="test-token",
        github_api_url=base_url,
    )


@pytest.fixture
async def http_client() -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(timeout=5) as client:
        yield client


@pytest.fixture
def admin_client(settings: DASettings, http_client: httpx.AsyncClient) -> DAAdminClient:
    return DAAdminClient(settings, http_client)


@pytest.fixture
def github_client(settings: DASettings, http_client: httpx.AsyncClient) -> GitHubClient:
    return GitHubClient(settings, http_client)


@pytest.fixture
def app_context(
    settings: DASettings, admin_client: DAAdminClient, github_client: GitHubClient
) -> AppContext:
    return AppContext(settings=settings, admin_client=admin_client, github_client=github_client)


@pytest.fixture
def mock_context(app_context: AppContext) -> MagicMock:
    """Create mock MCP context with AppContext for unit testing MCP tools.

    Returns:
        Mock context object with request_context.lifespan_context structure
    """
    mock_ctx = MagicMock()
    mock_ctx.request_context.lifespan_context = app_context
    return mock_ctx


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """EDS-style project: ``blocks/`` with cards and hero, plus a git origin.

    - cards: script with JSDoc, stylesheet with compact and dark variants, README
    - hero: script only
    - empty: folder without code files
    """
    blocks = tmp_path / "blocks"
    (blocks / "cards").mkdir(parents=True)
    (blocks / "hero").mkdir()
    (blocks / "empty").mkdir()

    (blocks / "cards" / "cards.js").write_text(CARDS_JS)
    (blocks / "cards" / "cards.css").write_text(CARDS_CSS)
    (blocks / "cards" / "README.md").write_text("# Cards\n\nGrid of cards.")
    (blocks / "cards" / "notes.txt").write_text("not a block file")
    (blocks / "hero" / "hero.js").write_text(HERO_JS)

    (tmp_path / ".git").mkdir()
    (tmp_path / ".git" / "config").write_text(GIT_CONFIG)
    return tmp_path


@pytest.fixture
def blocks_dir(project_dir: Path) -> Path:
    return project_dir / "blocks"
