"""Block documentation template generation.

Pure functions: the same inputs always give the same HTML. One section per
variant (a single unnamed section when there are none), each made of a
``library-metadata`` block (name, description) followed by the block itself.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any


def capitalize(name: str) -> str:
    """Upper-case the first character only ("hero-banner" -> "Hero-banner")."""
    return name[:1].upper() + name[1:]


def generate_auto_description(
    block_name: str,
    structure: Mapping[str, Any] | None = None,
    variants: Sequence[str] | None = None,
) -> str:
    """Describe a block from its structure flags and variants.

    Examples:
        >>> generate_auto_description("cards", {"has_multiple_items": True, "has_image": True})
        'Multi-item layout with images'
        >>> generate_auto_description("hero", {}, [])
        'Hero block'
    """
    structure = structure or {}
    parts: list[str] = []

    if structure.get("has_multiple_items"):
        parts.append("Multi-item layout")

    content = [
        label
        for flag, label in (
            ("has_image", "images"),
            ("has_heading", "headings"),
            ("has_button", "buttons"),
        )
        if structure.get(flag)
    ]
    if content:
        parts.append(f"with {', '.join(content)}")

    if variants:
        parts.append(f"Variants: {', '.join(variants)}")

    return " ".join(parts) if parts else f"{capitalize(block_name)} block"


def _render_section(
    block_name: str, variant: str, description: str, content: str
) -> str:
    capitalized = capitalize(block_name)
    variant_name = f"{capitalized} ({variant})" if variant else capitalized
    class_attr = f" {variant}" if variant else ""

    return f"""    <div>
      <div class="library-metadata">
        <div>
          <div>name</div>
          <div>{variant_name}</div>
        </div>
        <div>
          <div>description</div>
          <div>{description}</div>
        </div>
      </div>
      <div class="{block_name}{class_attr}">
{content}      </div>
    </div>"""


def generate_block_template(
    block_name: str,
    description: str | None = None,
    variants: Sequence[str] | None = None,
    structure: Mapping[str, Any] | None = None,
    block_content: Mapping[str, str] | None = None,
) -> str:
    """Build the documentation page HTML for a block.

    Args:
        block_name: Block name (also the section CSS class)
        description: Explicit description; generated when empty
        variants: Variant names; empty means one base section
        structure: Structure flags (see BlockStructure)
        block_content: Variant -> example inner HTML ("" is the base variant)
    """
    resolved_description = description or generate_auto_description(
        block_name, structure, variants
    )
    content_map = block_content or {}

    sections = [
        _render_section(
            block_name,
            variant,
            resolved_description,
            content_map.get(variant) or content_map.get("") or "",
        )
        for variant in (list(variants) if variants else [""])
    ]

    blocks_html = "\n".join(sections)
    return f"""<body>
  <header></header>
  <main>
{blocks_html}
  </main>
  <footer></footer>
</body>"""


__all__ = ["capitalize", "generate_auto_description", "generate_block_template"]
