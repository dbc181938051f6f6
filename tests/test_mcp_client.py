"""MCP server and tool testing.

This suite validates:

1. **MCP Server Health & Protocol Compliance**
   - Server starts over stdio and exposes the full tool catalog

2. **MCP Tool Functionality**
   - Block tools against a local project and a mocked GitHub repository
   - Documentation generation and upload against the DA Admin emulator
   - Placeholder, template and library registration sheets

Test Approach:
- Protocol tests run ``python -m da_library_mcp`` exactly as an MCP client would
- Tool tests call the tool functions directly with a mock MCP context whose
  lifespan context is a real AppContext pointed at local mock servers
"""

import os
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from conftest import DAAdminEmulator, GitHubContentsMock
from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client

from da_library_mcp.core import (
    BlockStructure,
    ConfigurationError,
    GitHubSourceConfig,
    InvalidBlockNameError,
    create_sheet_json,
)
from da_library_mcp.tools import (
    PlaceholderItem,
    da_blocks_analyze,
    da_blocks_check_doc_exists,
    da_blocks_create_doc,
    da_blocks_generate_template,
    da_blocks_get_files,
    da_blocks_list,
    da_library_add_placeholder,
    da_library_add_template,
    da_library_config_list,
    da_library_placeholders_list,
    da_library_placeholders_remove,
    da_library_register_type,
    da_library_setup_placeholders,
    da_library_templates_create_doc,
    da_library_templates_list,
    da_library_templates_remove,
)

PAGE = """<body><main>
<div class="cards"><div><div><p>Base card</p></div></div></div>
<div class="cards compact"><div><div><p>Small card</p></div></div></div>
</main></body>"""

PLACEHOLDERS_URL = "https://content.da.live/acme/site/placeholders.json"


@asynccontextmanager
async def get_mcp_client() -> AsyncIterator[ClientSession]:
    """Context manager providing MCP client connected to server via stdio."""
    server_params = StdioServerParameters(
        command=sys.executable,
        args=["-m", "da_library_mcp"],
        env={**os.environ, "DA_LOG_LEVEL": "WARNING"},
    )

    async with stdio_client(server_params) as (read, write):
        async with ClientSession(read, write) as session:
            await session.initialize()
            yield session


# =============================================================================
# Test Classes - Part 1: MCP Server Health & Protocol Compliance
# =============================================================================


class TestMCPServerHealth:
    @pytest.mark.asyncio
    async def test_server_exposes_all_tools(self) -> None:
        """Test server exposes the complete block and library tool catalog."""
        async with get_mcp_client() as client:
            tools = await client.list_tools()
            tool_names = {tool.name for tool in tools.tools}

        required_tools = {
            "da_blocks_list",
            "da_blocks_get_files",
            "da_blocks_analyze",
            "da_blocks_generate_template",
            "da_blocks_create_doc",
            "da_blocks_check_doc_exists",
            "da_library_placeholders_list",
            "da_library_add_placeholder",
            "da_library_placeholders_remove",
            "da_library_setup_placeholders",
            "da_library_templates_list",
            "da_library_add_template",
            "da_library_templates_create_doc",
            "da_library_templates_remove",
            "da_library_config_list",
            "da_library_register_type",
        }

        missing = required_tools - tool_names
        if missing:
            pytest.fail(
                f"Required MCP tools missing: {sorted(missing)}\n"
                f"Available tools: {sorted(tool_names)}"
            )


# =============================================================================
# Test Classes - Part 2: Block Tools
# =============================================================================


class TestBlockTools:
    @pytest.mark.asyncio
    async def test_list_auto_detects_local_blocks(
        self, project_dir: Path, monkeypatch: pytest.MonkeyPatch, mock_context: MagicMock
    ) -> None:
        monkeypatch.chdir(project_dir)

        result = await da_blocks_list(ctx=mock_context)

        assert result["source"]["kind"] == "local"
        assert result["source"]["git"]["repo"] == "site"
        assert result["total_blocks"] == 3
        cards = next(b for b in result["blocks"] if b["name"] == "cards")
        assert cards == {"name": "cards", "has_js": True, "has_css": True, "type": "dir"}

    @pytest.mark.asyncio
    async def test_list_markdown(
        self, project_dir: Path, monkeypatch: pytest.MonkeyPatch, mock_context: MagicMock
    ) -> None:
        monkeypatch.chdir(project_dir)

        result = await da_blocks_list(format="markdown", ctx=mock_context)

        assert isinstance(result, str)
        assert result.startswith("## Blocks (3)")
        assert "- **hero** (js)" in result

    @pytest.mark.asyncio
    async def test_list_from_github(
        self, github_mock: GitHubContentsMock, mock_context: MagicMock
    ) -> None:
        result = await da_blocks_list(
            github=GitHubSourceConfig(org="acme", repo="site"), ctx=mock_context
        )

        assert result["source"]["kind"] == "github"
        assert {b["name"] for b in result["blocks"]} == {"cards", "hero"}

    @pytest.mark.asyncio
    async def test_no_source_is_an_error(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, mock_context: MagicMock
    ) -> None:
        monkeypatch.chdir(tmp_path)

        with pytest.raises(ConfigurationError, match="No block source specified"):
            await da_blocks_list(ctx=mock_context)

    @pytest.mark.asyncio
    async def test_explicit_local_path(self, blocks_dir: Path, mock_context: MagicMock) -> None:
        result = await da_blocks_get_files(
            block_name="cards", local_blocks_path=str(blocks_dir), ctx=mock_context
        )

        assert result["has_readme"] is True
        assert result["source"]["path"] == str(blocks_dir)

    @pytest.mark.asyncio
    async def test_analyze_json_and_markdown(
        self, project_dir: Path, monkeypatch: pytest.MonkeyPatch, mock_context: MagicMock
    ) -> None:
        monkeypatch.chdir(project_dir)

        result = await da_blocks_analyze(block_name="cards", ctx=mock_context)
        assert result["variants"] == ["compact", "dark"]
        assert result["structure"]["function_name"] == "decorate"

        markdown = await da_blocks_analyze(block_name="cards", format="markdown", ctx=mock_context)
        assert markdown.startswith("# Block: cards")
        assert "- compact" in markdown

    @pytest.mark.asyncio
    async def test_generate_template_without_content(self, mock_context: MagicMock) -> None:
        result = await da_blocks_generate_template(
            block_name="hero", description="Big banner", ctx=mock_context
        )

        assert result["used_structure"] is False
        assert result["used_content"] is False
        assert result["content_source"] is None
        assert '<div class="hero">' in result["template"]


class TestBlockDocumentationFlow:
    """Analyze local block, generate documentation with live content, upload."""

    @pytest.mark.asyncio
    async def test_cards_compact_end_to_end(
        self,
        project_dir: Path,
        monkeypatch: pytest.MonkeyPatch,
        da_admin: DAAdminEmulator,
        mock_context: MagicMock,
    ) -> None:
        monkeypatch.chdir(project_dir)
        da_admin.put_html("acme", "site", "/drafts/cards", PAGE)

        analysis = await da_blocks_analyze(block_name="cards", ctx=mock_context)
        generated = await da_blocks_generate_template(
            block_name="cards",
            variants=analysis["variants"],
            structure=BlockStructure(**analysis["structure"]),
            org="acme",
            repo="site",
            source_paths=["/missing", "/drafts/cards"],
            ctx=mock_context,
        )

        assert generated["used_structure"] is True
        assert generated["used_content"] is True
        assert generated["content_source"] == "/drafts/cards"
        template = generated["template"]
        assert "<p>Small card</p>" in template
        # "dark" has no instance on the page and falls back to the base content
        assert template.split('class="cards dark"')[1].count("<p>Base card</p>") == 1

        before = await da_blocks_check_doc_exists(
            org="acme", repo="site", block_name="cards", ctx=mock_context
        )
        assert before["exists"] is False

        created = await da_blocks_create_doc(
            org="acme", repo="site", block_name="cards", html_content=template, ctx=mock_context
        )
        assert created["created"] is True
        assert created["url"] == "https://content.da.live/acme/site/library/blocks/cards"
        assert da_admin.get_html("acme", "site", "/library/blocks/cards") == template

        after = await da_blocks_check_doc_exists(
            org="acme", repo="site", block_name="cards", ctx=mock_context
        )
        assert after["exists"] is True

    @pytest.mark.asyncio
    async def test_create_doc_rejects_bad_name(
        self, da_admin: DAAdminEmulator, mock_context: MagicMock
    ) -> None:
        with pytest.raises(InvalidBlockNameError):
            await da_blocks_create_doc(
                org="acme", repo="site", block_name="Bad Name", html_content="<body/>",
                ctx=mock_context,
            )
        assert da_admin.requests == []


# =============================================================================
# Test Classes - Part 3: Library Sheets
# =============================================================================


class TestPlaceholderTools:
    @pytest.mark.asyncio
    async def test_add_registers_once(
        self, da_admin: DAAdminEmulator, mock_context: MagicMock
    ) -> None:
        first = await da_library_add_placeholder(
            org="acme", repo="site", key="site-title", text="Welcome", ctx=mock_context
        )
        second = await da_library_add_placeholder(
            org="acme", repo="site", key="site-title", text="Hello", ctx=mock_context
        )

        assert (first["action"], first["registered"], first["already_registered"]) == (
            "created",
            True,
            False,
        )
        assert (second["action"], second["registered"], second["already_registered"]) == (
            "updated",
            False,
            True,
        )

        library = da_admin.get_json("acme", "site", "/.da/library")["data"]
        assert library == [{"title": "Placeholders", "path": PLACEHOLDERS_URL}]

        listed = await da_library_placeholders_list(org="acme", repo="site", ctx=mock_context)
        assert listed["placeholders"] == [{"key": "site-title", "value": "Hello"}]

    @pytest.mark.asyncio
    async def test_list_missing_sheet_is_empty(
        self, da_admin: DAAdminEmulator, mock_context: MagicMock
    ) -> None:
        result = await da_library_placeholders_list(org="acme", repo="site", ctx=mock_context)

        assert result["total_placeholders"] == 0
        assert result["placeholders"] == []

    @pytest.mark.asyncio
    async def test_setup_in_config_folder(
        self, da_admin: DAAdminEmulator, mock_context: MagicMock
    ) -> None:
        result = await da_library_setup_placeholders(
            org="acme",
            repo="site",
            placeholders=[
                PlaceholderItem(key="a", text="1"),
                PlaceholderItem(key="b", text="2"),
            ],
            config_path="config",
            ctx=mock_context,
        )

        assert (result["created"], result["updated"], result["total"]) == (2, 0, 2)
        assert result["registered"] is True
        assert result["library_sheet"] == {"existed": False, "entry_count": 1}
        assert result["url"] == "https://content.da.live/acme/site/config/placeholders.json"
        assert da_admin.get_json("acme", "site", "/config/placeholders")["total"] == 2

    @pytest.mark.asyncio
    async def test_remove(self, da_admin: DAAdminEmulator, mock_context: MagicMock) -> None:
        da_admin.put_json(
            "acme",
            "site",
            "/placeholders",
            create_sheet_json("placeholders", [{"key": "a", "value": "1"}]),
        )

        missing = await da_library_placeholders_remove(
            org="acme", repo="site", key="zzz", ctx=mock_context
        )
        removed = await da_library_placeholders_remove(
            org="acme", repo="site", key="a", ctx=mock_context
        )

        assert missing["removed"] is False
        assert removed["removed"] is True
        assert removed["total"] == 0
        assert da_admin.writes() == ["/source/acme/site/placeholders.json"]


class TestTemplateTools:
    @pytest.mark.asyncio
    async def test_create_doc_lists_and_registers(
        self, da_admin: DAAdminEmulator, mock_context: MagicMock
    ) -> None:
        result = await da_library_templates_create_doc(
            org="acme",
            repo="site",
            name="article",
            html_content="<body><main></main></body>",
            ctx=mock_context,
        )

        assert result["path"] == "/library/templates/article"
        assert result["sheet"]["action"] == "created"
        assert result["registered"] is True

        listed = await da_library_templates_list(org="acme", repo="site", ctx=mock_context)
        assert listed["templates"] == [
            {"name": "article", "path": "https://content.da.live/acme/site/library/templates/article"}
        ]

        library = da_admin.get_json("acme", "site", "/.da/library")["data"]
        assert library == [
            {"title": "Templates", "path": "https://content.da.live/acme/site/templates.json"}
        ]

    @pytest.mark.asyncio
    async def test_add_and_remove(self, da_admin: DAAdminEmulator, mock_context: MagicMock) -> None:
        added = await da_library_add_template(
            org="acme", repo="site", name="landing", path="/library/templates/landing",
            ctx=mock_context,
        )
        external = await da_library_add_template(
            org="acme", repo="site", name="promo", path="https://example.com/promo",
            ctx=mock_context,
        )

        assert added["already_registered"] is False
        assert external["already_registered"] is True

        templates = (await da_library_templates_list(org="acme", repo="site", ctx=mock_context))[
            "templates"
        ]
        assert templates == [
            {"name": "landing", "path": "https://content.da.live/acme/site/library/templates/landing"},
            {"name": "promo", "path": "https://example.com/promo"},
        ]

        removed = await da_library_templates_remove(
            org="acme", repo="site", name="landing", ctx=mock_context
        )
        assert removed["removed"] is True
        assert removed["total"] == 1


class TestLibraryConfigTools:
    @pytest.mark.asyncio
    async def test_list_and_register(
        self, da_admin: DAAdminEmulator, mock_context: MagicMock
    ) -> None:
        empty = await da_library_config_list(org="acme", repo="site", ctx=mock_context)
        assert empty["exists"] is False
        assert empty["entries"] == []

        registered = await da_library_register_type(
            org="acme",
            repo="site",
            library_type="Blocks",
            sheet_url="https://content.da.live/acme/site/library/blocks.json",
            ctx=mock_context,
        )
        again = await da_library_register_type(
            org="acme",
            repo="site",
            library_type="Blocks",
            sheet_url="https://content.da.live/acme/site/library/blocks.json",
            ctx=mock_context,
        )

        assert registered["registered"] is True
        assert again["existed"] is True

        listed = await da_library_config_list(org="acme", repo="site", ctx=mock_context)
        assert listed["total_entries"] == 1
        assert listed["entries"][0]["title"] == "Blocks"
