"""Shared formatting utilities for MCP tool responses.

Markdown renderings for tools that accept ``format="markdown"``. JSON
responses are the plain dicts built in the tools module.
"""

from typing import Any

# =============================================================================
# Markdown Formatting Utilities
# =============================================================================


def _source_label(source: dict[str, Any]) -> str:
    if source.get("kind") == "github":
        return (
            f"GitHub {source['org']}/{source['repo']}@{source.get('branch', 'main')} "
            f"({source.get('blocks_path', 'blocks')})"
        )
    label = f"Local {source.get('path', '')}"
    git = source.get("git")
    if git:
        label += f" ({git['org']}/{git['repo']})"
    return label


def format_block_list_markdown(source: dict[str, Any], blocks: list[dict[str, Any]]) -> str:
    """Format block listing as markdown.

    Args:
        source: Resolved source metadata
        blocks: Block summaries (name, has_js, has_css)

    Returns:
        Markdown list of blocks with their file presence
    """
    if not blocks:
        return f"No blocks found in {_source_label(source)}"

    lines = [
        f"## Blocks ({len(blocks)})",
        f"**Source**: {_source_label(source)}",
        "",
    ]
    for block in blocks:
        files = [ext for ext, key in (("js", "has_js"), ("css", "has_css")) if block[key]]
        lines.append(f"- **{block['name']}** ({', '.join(files) if files else 'no code files'})")
    return "\n".join(lines)


def format_block_analysis_markdown(analysis: dict[str, Any]) -> str:
    """Format block analysis as markdown.

    Args:
        analysis: BlockAnalysis dump plus ``source`` metadata

    Returns:
        Markdown-formatted analysis with description, variants and structure
    """
    structure = analysis.get("structure", {})
    lines = [
        f"# Block: {analysis['block_name']}",
        "",
        analysis.get("description") or "_No description found_",
        "",
        "## Files",
        f"- **JavaScript**: {'yes' if analysis.get('has_js') else 'no'}",
        f"- **CSS**: {'yes' if analysis.get('has_css') else 'no'}",
    ]
    if "source" in analysis:
        lines.append(f"- **Source**: {_source_label(analysis['source'])}")

    variants = analysis.get("variants") or []
    lines.append("")
    lines.append("## Variants")
    if variants:
        lines.extend(f"- {variant}" for variant in variants)
    else:
        lines.append("- (none)")

    flags = [
        label
        for key, label in (
            ("has_image", "images"),
            ("has_heading", "headings"),
            ("has_button", "buttons"),
            ("has_multiple_items", "multiple items"),
            ("is_bem", "BEM naming"),
        )
        if structure.get(key)
    ]
    lines.append("")
    lines.append("## Structure")
    lines.append(f"- **Features**: {', '.join(flags) if flags else 'none detected'}")
    if structure.get("function_name"):
        lines.append(f"- **Decorator**: `{structure['function_name']}`")
    if structure.get("classes"):
        lines.append(f"- **Classes**: {', '.join(structure['classes'])}")

    return "\n".join(lines)


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    "format_block_list_markdown",
    "format_block_analysis_markdown",
]
