"""MCP tool implementations for the DA library.

This module contains all MCP tool function implementations that expose
block analysis, documentation generation and library sheet management to
MCP clients.

Following official Anthropic MCP Python SDK patterns:
- Tool functions decorated with @mcp.tool()
- Flat parameter signatures with Annotated types for validation
- Type hints for automatic schema generation
- Async functions for all tools
- Clear docstrings (become tool descriptions)

Expected "not found" conditions come back as result fields (``exists: False``,
``removed: False``, empty lists). Upstream and configuration errors raise and
are reported by FastMCP as tool errors.
"""

from collections.abc import Mapping
from typing import Annotated, Any, Literal

from mcp.types import ToolAnnotations
from pydantic import BaseModel, Field

from .context import AppContext, AppContextType
from .core import (
    BLOCK_NAME_PATTERN,
    BlockSource,
    BlockStructure,
    GitHubSourceConfig,
    LibraryType,
    SheetStore,
    SourceRequest,
    analyze_block,
    build_sheet_path,
    check_library_doc_exists,
    create_library_doc,
    extract_block_content,
    generate_block_template,
    get_block_files,
    library_sheet,
    list_blocks,
    register_library_type,
    resolve_block_source,
)
from .formatting import format_block_analysis_markdown, format_block_list_markdown
from .server import mcp

# =============================================================================
# Shared parameter types
# =============================================================================

Org = Annotated[str, Field(description="The organization name", min_length=1, max_length=200)]
Repo = Annotated[str, Field(description="The repository name", min_length=1, max_length=200)]
BlockName = Annotated[
    str,
    Field(
        description="The block name (folder name, e.g. 'hero' or 'cards-grid')",
        pattern=BLOCK_NAME_PATTERN,
        min_length=1,
        max_length=100,
    ),
]
GitHubParam = Annotated[
    GitHubSourceConfig | None,
    Field(
        description=(
            "ONLY provide if explicitly fetching from a different GitHub repo. "
            "Omit to auto-detect local blocks."
        )
    ),
]
UseLocalParam = Annotated[
    bool | None,
    Field(description="Explicitly use local file system. Omit to auto-detect."),
]
LocalBlocksPathParam = Annotated[
    str | None,
    Field(description="Custom path to local blocks directory. Omit to use ./blocks"),
]
ConfigPathParam = Annotated[
    str,
    Field(description="Optional folder path for the sheet (default: site root)"),
]
BaseFolderParam = Annotated[
    str,
    Field(description="Base folder for library documents (default: library)"),
]
OutputFormat = Annotated[Literal["json", "markdown"], Field(description="Output format")]


class PlaceholderItem(BaseModel):
    key: str = Field(description="Placeholder key (e.g. 'site-title')", min_length=1)
    text: str = Field(description="Placeholder text value")


# =============================================================================
# Helpers
# =============================================================================


def _app(ctx: AppContextType) -> AppContext:
    return ctx.request_context.lifespan_context


async def _open_source(
    ctx: AppContextType,
    github: GitHubSourceConfig | None,
    use_local: bool | None,
    local_blocks_path: str | None,
) -> tuple[BlockSource, dict[str, Any]]:
    request = SourceRequest(
        github=github, use_local=use_local, local_blocks_path=local_blocks_path
    )
    source, spec = await resolve_block_source(request, _app(ctx).github_client)
    return source, spec.model_dump()


def _placeholder_record(item: Mapping[str, Any]) -> dict[str, Any]:
    return {"key": item["key"], "value": item["text"]}


def _template_record(item: Mapping[str, Any]) -> dict[str, Any]:
    return {"name": item["name"], "path": item["path"]}


def _placeholders_sheet(ctx: AppContextType, org: str, repo: str, config_path: str) -> SheetStore:
    return SheetStore(
        _app(ctx).admin_client,
        org,
        repo,
        build_sheet_path(config_path, LibraryType.PLACEHOLDERS),
        LibraryType.PLACEHOLDERS.value,
        key_field="key",
        to_record=_placeholder_record,
    )


def _templates_sheet(ctx: AppContextType, org: str, repo: str, config_path: str) -> SheetStore:
    return SheetStore(
        _app(ctx).admin_client,
        org,
        repo,
        build_sheet_path(config_path, LibraryType.TEMPLATES),
        LibraryType.TEMPLATES.value,
        key_field="name",
        to_record=_template_record,
    )


# =============================================================================
# Block Tools
# =============================================================================


@mcp.tool(
    annotations=ToolAnnotations(
        title="List Blocks",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=True,
    )
)
async def da_blocks_list(
    github: GitHubParam = None,
    use_local: UseLocalParam = None,
    local_blocks_path: LocalBlocksPathParam = None,
    format: OutputFormat = "json",  # noqa: A002
    *,
    ctx: AppContextType,
) -> dict[str, Any] | str:
    """List all blocks with .js/.css presence. AUTO-DETECTS ./blocks. Optional: github, use_local, local_blocks_path, format."""
    source, metadata = await _open_source(ctx, github, use_local, local_blocks_path)
    blocks = [block.model_dump() for block in await list_blocks(source)]

    if format == "markdown":
        return format_block_list_markdown(metadata, blocks)

    return {
        "source": metadata,
        "total_blocks": len(blocks),
        "blocks": blocks,
    }


@mcp.tool(
    annotations=ToolAnnotations(
        title="Get Block Files",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=True,
    )
)
async def da_blocks_get_files(
    block_name: BlockName,
    github: GitHubParam = None,
    use_local: UseLocalParam = None,
    local_blocks_path: LocalBlocksPathParam = None,
    *,
    ctx: AppContextType,
) -> dict[str, Any]:
    """Get block source files (.js, .css, README). AUTO-DETECTS ./blocks. Required: block_name."""
    source, metadata = await _open_source(ctx, github, use_local, local_blocks_path)
    files = await get_block_files(source, block_name)
    return {"source": metadata, **files.model_dump()}


@mcp.tool(
    annotations=ToolAnnotations(
        title="Analyze Block",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=True,
    )
)
async def da_blocks_analyze(
    block_name: BlockName,
    github: GitHubParam = None,
    use_local: UseLocalParam = None,
    local_blocks_path: LocalBlocksPathParam = None,
    format: OutputFormat = "json",  # noqa: A002
    *,
    ctx: AppContextType,
) -> dict[str, Any] | str:
    """Analyze block code for description, variants and structure. AUTO-DETECTS ./blocks. Required: block_name."""
    source, metadata = await _open_source(ctx, github, use_local, local_blocks_path)
    analysis = await analyze_block(source, block_name)
    result = {"source": metadata, **analysis.model_dump()}

    if format == "markdown":
        return format_block_analysis_markdown(result)
    return result


@mcp.tool(
    annotations=ToolAnnotations(
        title="Generate Block Template",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=True,
    )
)
async def da_blocks_generate_template(
    block_name: BlockName,
    description: Annotated[
        str | None, Field(description="Optional description for the block")
    ] = None,
    variants: Annotated[
        list[str] | None, Field(description="Optional variant names")
    ] = None,
    structure: Annotated[
        BlockStructure | None,
        Field(description="Optional structure information from da_blocks_analyze"),
    ] = None,
    org: Annotated[
        str | None, Field(description="Organization of pages to pull example content from")
    ] = None,
    repo: Annotated[
        str | None, Field(description="Repository of pages to pull example content from")
    ] = None,
    source_paths: Annotated[
        list[str] | None,
        Field(description="Candidate page paths tried in order for example content"),
    ] = None,
    *,
    ctx: AppContextType,
) -> dict[str, Any]:
    """Generate documentation HTML for a block. Required: block_name. Optional: description, variants, structure, org+repo+source_paths (example content)."""
    extracted = None
    if org and repo and source_paths:
        extracted = await extract_block_content(
            _app(ctx).admin_client, org, repo, source_paths, block_name
        )

    block_content = extracted.content if extracted else None
    template = generate_block_template(
        block_name,
        description,
        variants,
        structure.model_dump() if structure else {},
        block_content,
    )
    return {
        "block_name": block_name,
        "template": template,
        "used_structure": structure is not None,
        "used_content": bool(block_content),
        "content_source": extracted.source_used if extracted else None,
    }


@mcp.tool(
    annotations=ToolAnnotations(
        title="Create Block Doc",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=True,
    )
)
async def da_blocks_create_doc(
    org: Org,
    repo: Repo,
    block_name: BlockName,
    html_content: Annotated[
        str, Field(description="The HTML content for the documentation", min_length=1)
    ],
    base_folder: BaseFolderParam = "library",
    *,
    ctx: AppContextType,
) -> dict[str, Any]:
    """Create block documentation at /{base_folder}/blocks/{block_name}. Required: org, repo, block_name, html_content."""
    result = await create_library_doc(
        _app(ctx).admin_client,
        org,
        repo,
        LibraryType.BLOCKS,
        block_name,
        html_content,
        base_folder,
    )
    return {
        "org": org,
        "repo": repo,
        "block_name": block_name,
        "base_folder": base_folder,
        **result.model_dump(),
    }


@mcp.tool(
    annotations=ToolAnnotations(
        title="Check Block Doc Exists",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=True,
    )
)
async def da_blocks_check_doc_exists(
    org: Org,
    repo: Repo,
    block_name: BlockName,
    base_folder: BaseFolderParam = "library",
    *,
    ctx: AppContextType,
) -> dict[str, Any]:
    """Check whether block documentation exists. Required: org, repo, block_name."""
    result = await check_library_doc_exists(
        _app(ctx).admin_client, org, repo, LibraryType.BLOCKS, block_name, base_folder
    )
    return {
        "org": org,
        "repo": repo,
        "block_name": block_name,
        "base_folder": base_folder,
        **result.model_dump(),
    }


# =============================================================================
# Placeholder Tools
# =============================================================================


@mcp.tool(
    annotations=ToolAnnotations(
        title="List Placeholders",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=True,
    )
)
async def da_library_placeholders_list(
    org: Org,
    repo: Repo,
    config_path: ConfigPathParam = "",
    *,
    ctx: AppContextType,
) -> dict[str, Any]:
    """List all placeholders from the placeholders sheet. Required: org, repo."""
    placeholders = await _placeholders_sheet(ctx, org, repo, config_path).list_records()
    return {
        "org": org,
        "repo": repo,
        "config_path": config_path,
        "total_placeholders": len(placeholders),
        "placeholders": placeholders,
    }


@mcp.tool(
    annotations=ToolAnnotations(
        title="Add Placeholder",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=True,
    )
)
async def da_library_add_placeholder(
    org: Org,
    repo: Repo,
    key: Annotated[str, Field(description="Placeholder key (e.g. 'site-title')", min_length=1)],
    text: Annotated[str, Field(description="Placeholder text value")],
    config_path: ConfigPathParam = "",
    *,
    ctx: AppContextType,
) -> dict[str, Any]:
    """Add or update a placeholder; registers Placeholders in the library if needed. Required: org, repo, key, text."""
    admin_client = _app(ctx).admin_client
    store = _placeholders_sheet(ctx, org, repo, config_path)
    result = await store.add({"key": key, "text": text})

    # Checked on every add, not only when the sheet is first created
    registration = await register_library_type(
        admin_client, org, repo, LibraryType.PLACEHOLDERS.display_name, store.content_url
    )
    return {
        "org": org,
        "repo": repo,
        "config_path": config_path,
        **result.model_dump(),
        "registered": registration.registered,
        "already_registered": registration.existed,
    }


@mcp.tool(
    annotations=ToolAnnotations(
        title="Remove Placeholder",
        readOnlyHint=False,
        destructiveHint=True,
        idempotentHint=True,
        openWorldHint=True,
    )
)
async def da_library_placeholders_remove(
    org: Org,
    repo: Repo,
    key: Annotated[str, Field(description="Placeholder key to remove", min_length=1)],
    config_path: ConfigPathParam = "",
    *,
    ctx: AppContextType,
) -> dict[str, Any]:
    """Remove a placeholder from the placeholders sheet. Required: org, repo, key."""
    result = await _placeholders_sheet(ctx, org, repo, config_path).remove(key)
    return {
        "org": org,
        "repo": repo,
        "config_path": config_path,
        "key": key,
        **result.model_dump(),
    }


@mcp.tool(
    annotations=ToolAnnotations(
        title="Setup Placeholders",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=True,
    )
)
async def da_library_setup_placeholders(
    org: Org,
    repo: Repo,
    placeholders: Annotated[
        list[PlaceholderItem],
        Field(description="Placeholders to create or update", max_length=1000),
    ],
    config_path: ConfigPathParam = "",
    *,
    ctx: AppContextType,
) -> dict[str, Any]:
    """Batch create/update placeholders in one sheet write; registers Placeholders in the library. Required: org, repo, placeholders."""
    admin_client = _app(ctx).admin_client
    store = _placeholders_sheet(ctx, org, repo, config_path)
    result = await store.setup(item.model_dump() for item in placeholders)

    registration = await register_library_type(
        admin_client, org, repo, LibraryType.PLACEHOLDERS.display_name, store.content_url
    )
    return {
        "org": org,
        "repo": repo,
        "config_path": config_path,
        **result.model_dump(),
        "registered": registration.registered,
        "library_sheet": {
            "existed": not registration.created_sheet,
            "entry_count": registration.library_entry_count,
        },
    }


# =============================================================================
# Template Tools
# =============================================================================


@mcp.tool(
    annotations=ToolAnnotations(
        title="List Templates",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=True,
    )
)
async def da_library_templates_list(
    org: Org,
    repo: Repo,
    config_path: ConfigPathParam = "",
    *,
    ctx: AppContextType,
) -> dict[str, Any]:
    """List all templates from the templates sheet. Required: org, repo."""
    templates = await _templates_sheet(ctx, org, repo, config_path).list_records()
    return {
        "org": org,
        "repo": repo,
        "config_path": config_path,
        "total_templates": len(templates),
        "templates": templates,
    }


@mcp.tool(
    annotations=ToolAnnotations(
        title="Add Template",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=True,
    )
)
async def da_library_add_template(
    org: Org,
    repo: Repo,
    name: BlockName,
    path: Annotated[
        str,
        Field(description="Template document URL or path (e.g. /library/templates/article)"),
    ],
    config_path: ConfigPathParam = "",
    *,
    ctx: AppContextType,
) -> dict[str, Any]:
    """Add or update a template entry; registers Templates in the library if needed. Required: org, repo, name, path."""
    admin_client = _app(ctx).admin_client
    url = path
    if not path.startswith(("http://", "https://")):
        url = admin_client.content_url(org, repo, path)

    store = _templates_sheet(ctx, org, repo, config_path)
    result = await store.add({"name": name, "path": url})
    registration = await register_library_type(
        admin_client, org, repo, LibraryType.TEMPLATES.display_name, store.content_url
    )
    return {
        "org": org,
        "repo": repo,
        "config_path": config_path,
        **result.model_dump(),
        "registered": registration.registered,
        "already_registered": registration.existed,
    }


@mcp.tool(
    annotations=ToolAnnotations(
        title="Create Template Doc",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=True,
    )
)
async def da_library_templates_create_doc(
    org: Org,
    repo: Repo,
    name: BlockName,
    html_content: Annotated[
        str, Field(description="The HTML content of the template", min_length=1)
    ],
    base_folder: BaseFolderParam = "library",
    config_path: ConfigPathParam = "",
    *,
    ctx: AppContextType,
) -> dict[str, Any]:
    """Create a template document at /{base_folder}/templates/{name} and list it in the templates sheet. Required: org, repo, name, html_content."""
    admin_client = _app(ctx).admin_client
    doc = await create_library_doc(
        admin_client, org, repo, LibraryType.TEMPLATES, name, html_content, base_folder
    )

    store = _templates_sheet(ctx, org, repo, config_path)
    sheet_result = await store.add({"name": name, "path": doc.url})
    registration = await register_library_type(
        admin_client, org, repo, LibraryType.TEMPLATES.display_name, store.content_url
    )
    return {
        "org": org,
        "repo": repo,
        "name": name,
        "base_folder": base_folder,
        **doc.model_dump(),
        "sheet": sheet_result.model_dump(),
        "registered": registration.registered,
    }


@mcp.tool(
    annotations=ToolAnnotations(
        title="Remove Template",
        readOnlyHint=False,
        destructiveHint=True,
        idempotentHint=True,
        openWorldHint=True,
    )
)
async def da_library_templates_remove(
    org: Org,
    repo: Repo,
    name: Annotated[str, Field(description="Template name to remove", min_length=1)],
    config_path: ConfigPathParam = "",
    *,
    ctx: AppContextType,
) -> dict[str, Any]:
    """Remove a template entry from the templates sheet (the document is kept). Required: org, repo, name."""
    result = await _templates_sheet(ctx, org, repo, config_path).remove(name)
    return {
        "org": org,
        "repo": repo,
        "config_path": config_path,
        "name": name,
        **result.model_dump(),
    }


# =============================================================================
# Library Configuration Tools
# =============================================================================


@mcp.tool(
    annotations=ToolAnnotations(
        title="List Library Config",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=True,
    )
)
async def da_library_config_list(
    org: Org,
    repo: Repo,
    *,
    ctx: AppContextType,
) -> dict[str, Any]:
    """List registered library types and their sheet URLs. Required: org, repo."""
    store = library_sheet(_app(ctx).admin_client, org, repo)
    entries = await store.read()
    return {
        "org": org,
        "repo": repo,
        "path": store.path,
        "exists": entries is not None,
        "total_entries": len(entries or []),
        "entries": entries or [],
    }


@mcp.tool(
    annotations=ToolAnnotations(
        title="Register Library Type",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=True,
    )
)
async def da_library_register_type(
    org: Org,
    repo: Repo,
    library_type: Annotated[
        str,
        Field(description="Library type display name (e.g. 'Placeholders')", min_length=1),
    ],
    sheet_url: Annotated[str, Field(description="URL of the sheet backing this type", min_length=1)],
    *,
    ctx: AppContextType,
) -> dict[str, Any]:
    """Register a library type in the library sheet; no-op if already registered. Required: org, repo, library_type, sheet_url."""
    result = await register_library_type(
        _app(ctx).admin_client, org, repo, library_type, sheet_url
    )
    return {
        "org": org,
        "repo": repo,
        "library_type": library_type,
        **result.model_dump(),
    }


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    # Block tools
    "da_blocks_list",
    "da_blocks_get_files",
    "da_blocks_analyze",
    "da_blocks_generate_template",
    "da_blocks_create_doc",
    "da_blocks_check_doc_exists",
    # Placeholder tools
    "da_library_placeholders_list",
    "da_library_add_placeholder",
    "da_library_placeholders_remove",
    "da_library_setup_placeholders",
    # Template tools
    "da_library_templates_list",
    "da_library_add_template",
    "da_library_templates_create_doc",
    "da_library_templates_remove",
    # Library configuration tools
    "da_library_config_list",
    "da_library_register_type",
]
