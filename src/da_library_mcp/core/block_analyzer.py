"""Block analysis: infer metadata from a block's script and stylesheet.

From the script (``<block>/<block>.js``):
- leading JSDoc line -> description
- ``export default [async] function name`` -> structure.function_name

From the stylesheet (``<block>/<block>.css``):
- every ``.class`` selector -> structure.classes
- ``.<block>.<variant>`` selectors -> variants
- substring patterns over class names -> structure flags

Also provides block listing and raw file retrieval over a BlockSource.
Nothing here writes anywhere.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Iterable

from pydantic import BaseModel, Field

from .block_source import BlockSource

STRUCTURE_PATTERNS: dict[str, tuple[str, ...]] = {
    "has_image": ("image", "img", "picture", "photo"),
    "has_heading": ("title", "heading", "headline"),
    "has_button": ("button", "btn", "cta", "action"),
    "has_multiple_items": ("item", "card", "column"),
}

README_NAMES = ("README.md", "readme.md", "README.MD")

_JSDOC_RE = re.compile(r"/\*\*\s*\n\s*\*\s*(.+?)\s*\n")
_EXPORT_RE = re.compile(r"export\s+default\s+(?:async\s+)?function\s+(\w+)")
_CSS_CLASS_RE = re.compile(r"\.([a-zA-Z0-9_-]+)")


class BlockStructure(BaseModel):
    classes: list[str] = Field(default_factory=list)
    has_image: bool = False
    has_heading: bool = False
    has_button: bool = False
    has_multiple_items: bool = False
    is_bem: bool = False
    function_name: str | None = None


class BlockAnalysis(BaseModel):
    block_name: str
    description: str | None = None
    variants: list[str] = Field(default_factory=list)
    has_js: bool = False
    has_css: bool = False
    structure: BlockStructure = Field(default_factory=BlockStructure)


class BlockSummary(BaseModel):
    name: str
    has_js: bool
    has_css: bool
    type: str = "dir"


class BlockFiles(BaseModel):
    block_name: str
    has_js: bool
    has_css: bool
    has_readme: bool
    js_content: str | None = None
    css_content: str | None = None
    readme_content: str | None = None


def block_file_path(block_name: str, file_name: str) -> str:
    return f"{block_name}/{file_name}"


def detect_structure_features(classes: Iterable[str]) -> dict[str, bool]:
    """Compute structure flags from CSS class names.

    Order-independent: only membership of patterns in class names matters.
    """
    class_list = list(classes)
    features = {
        feature: any(pattern in name for name in class_list for pattern in patterns)
        for feature, patterns in STRUCTURE_PATTERNS.items()
    }
    features["is_bem"] = any("__" in name or "--" in name for name in class_list)
    return features


def extract_css_classes(css: str) -> list[str]:
    """Distinct class selector names in first-seen order."""
    return list(dict.fromkeys(_CSS_CLASS_RE.findall(css)))


def extract_variants(css: str, block_name: str) -> list[str]:
    """Variant names from ``.<block>.<variant>`` selectors, deduplicated."""
    pattern = re.compile(rf"\.{re.escape(block_name)}\.(\w+)")
    return list(dict.fromkeys(v for v in pattern.findall(css) if v != block_name))


def extract_description(js: str) -> str | None:
    match = _JSDOC_RE.search(js)
    return match.group(1) if match else None


def extract_function_name(js: str) -> str | None:
    match = _EXPORT_RE.search(js)
    return match.group(1) if match else None


async def analyze_block(source: BlockSource, block_name: str) -> BlockAnalysis:
    """Analyze a block's script and stylesheet.

    Either file may be missing; the corresponding flags stay False.
    """
    js_content, css_content = await asyncio.gather(
        source.get_file_content(block_file_path(block_name, f"{block_name}.js")),
        source.get_file_content(block_file_path(block_name, f"{block_name}.css")),
    )

    analysis = BlockAnalysis(block_name=block_name)

    if js_content:
        analysis.has_js = True
        analysis.description = extract_description(js_content)
        analysis.structure.function_name = extract_function_name(js_content)

    if css_content:
        analysis.has_css = True
        classes = extract_css_classes(css_content)
        analysis.structure.classes = classes
        analysis.variants = extract_variants(css_content, block_name)
        for feature, value in detect_structure_features(classes).items():
            setattr(analysis.structure, feature, value)

    return analysis


async def check_block_files(source: BlockSource, block_name: str) -> BlockSummary:
    js_content, css_content = await asyncio.gather(
        source.get_file_content(block_file_path(block_name, f"{block_name}.js")),
        source.get_file_content(block_file_path(block_name, f"{block_name}.css")),
    )
    return BlockSummary(name=block_name, has_js=bool(js_content), has_css=bool(css_content))


async def list_blocks(source: BlockSource) -> list[BlockSummary]:
    """List every block folder with its script/stylesheet presence."""
    directories = await source.list_directories()
    return list(
        await asyncio.gather(*(check_block_files(source, d["name"]) for d in directories))
    )


async def try_get_readme(source: BlockSource, block_name: str) -> str | None:
    """Return the first non-empty README variant, checked concurrently."""
    contents = await asyncio.gather(
        *(source.get_file_content(block_file_path(block_name, name)) for name in README_NAMES)
    )
    return next((content for content in contents if content), None)


async def get_block_files(source: BlockSource, block_name: str) -> BlockFiles:
    js_content, css_content, readme_content = await asyncio.gather(
        source.get_file_content(block_file_path(block_name, f"{block_name}.js")),
        source.get_file_content(block_file_path(block_name, f"{block_name}.css")),
        try_get_readme(source, block_name),
    )
    return BlockFiles(
        block_name=block_name,
        has_js=bool(js_content),
        has_css=bool(css_content),
        has_readme=bool(readme_content),
        js_content=js_content,
        css_content=css_content,
        readme_content=readme_content,
    )


__all__ = [
    "STRUCTURE_PATTERNS",
    "BlockStructure",
    "BlockAnalysis",
    "BlockSummary",
    "BlockFiles",
    "detect_structure_features",
    "extract_css_classes",
    "extract_variants",
    "analyze_block",
    "list_blocks",
    "get_block_files",
]
