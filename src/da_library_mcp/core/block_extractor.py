"""Extract example block content from authored pages.

Pages are read as HTML through the DA Admin API. Each ``<div>`` whose class
list contains the block name is a block instance; its inner markup is cut out
by counting nested ``<div>`` opens against ``</div>`` closes.

This is a token scan, not an HTML parser. Irregular markup can confuse the
depth count; that is accepted.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel

from .admin_client import DAAdminClient
from .exceptions import DALibraryError

logger = logging.getLogger(__name__)

_DIV_OPEN_RE = re.compile(r"<div[^>]*>")
_DIV_CLOSE_RE = re.compile(r"</div>")
_CLASS_ATTR_RE = re.compile(r'class="([^"]*)"')


class ExtractedContent(BaseModel):
    """Variant -> inner HTML, and the page that produced it."""

    content: dict[str, str] | None = None
    source_used: str | None = None


def detect_variant(classes: Sequence[str], block_name: str) -> str:
    """First class that is neither the block name nor ``<block>-*``; "" if none."""
    return next(
        (
            cls
            for cls in classes
            if cls and cls != block_name and not cls.startswith(f"{block_name}-")
        ),
        "",
    )


def _find_balanced_close(html: str, start: int) -> int | None:
    """Index of the ``</div>`` closing the div whose content starts at ``start``."""
    depth = 1
    pos = start
    while depth > 0 and pos < len(html):
        next_close = _DIV_CLOSE_RE.search(html, pos)
        if next_close is None:
            return None
        next_open = _DIV_OPEN_RE.search(html, pos)

        if next_open is not None and next_open.start() < next_close.start():
            depth += 1
            pos = next_open.end()
        else:
            depth -= 1
            if depth == 0:
                return next_close.start()
            pos = next_close.end()
    return None


def parse_block_instances(html: str, block_name: str) -> dict[str, str]:
    """Map each variant to the inner HTML of its first instance.

    Examples:
        >>> parse_block_instances('<div class="hero"><p>A</p></div>', "hero")
        {'': '<p>A</p>'}
    """
    instances: dict[str, str] = {}
    open_tag_re = re.compile(
        rf'<div([^>]*class="[^"]*\b{re.escape(block_name)}\b[^"]*"[^>]*)>', re.IGNORECASE
    )

    for match in open_tag_re.finditer(html):
        class_match = _CLASS_ATTR_RE.search(match.group(1))
        classes = class_match.group(1).split() if class_match else []
        variant = detect_variant(classes, block_name)

        if variant in instances:
            continue

        close_pos = _find_balanced_close(html, match.end())
        if close_pos is None:
            continue
        instances[variant] = html[match.end() : close_pos].strip()

    return instances


def _unwrap_html(result: Any) -> str:
    # The admin API can answer with a JSON-encoded string
    if isinstance(result, str) and len(result) >= 2 and result[0] == result[-1] == '"':
        result = json.loads(result)
    if not isinstance(result, str):
        raise ValueError(f"Expected HTML text, got {type(result).__name__}")
    return result


async def fetch_source_document(client: DAAdminClient, org: str, repo: str, path: str) -> str:
    """Read a page's HTML source through the admin API."""
    return _unwrap_html(await client.get_source(org, repo, path, "html"))


async def extract_block_content(
    client: DAAdminClient,
    org: str,
    repo: str,
    source_paths: str | Sequence[str] | None,
    block_name: str,
) -> ExtractedContent:
    """Try candidate pages in order; first one with any instance wins.

    Fetch and decode failures skip to the next candidate. No candidate with
    content yields an empty ExtractedContent, not an error.
    """
    if not source_paths:
        return ExtractedContent()

    paths = [source_paths] if isinstance(source_paths, str) else list(source_paths)

    for source_path in paths:
        try:
            html = await fetch_source_document(client, org, repo, source_path)
        except (DALibraryError, ValueError) as e:
            logger.debug(f"Skipping candidate page {source_path}: {e}")
            continue

        content = parse_block_instances(html, block_name)
        if content:
            logger.info(
                f"Extracted {len(content)} variant(s) of '{block_name}' from {source_path}"
            )
            return ExtractedContent(content=content, source_used=source_path)

    return ExtractedContent()


__all__ = [
    "ExtractedContent",
    "detect_variant",
    "parse_block_instances",
    "fetch_source_document",
    "extract_block_content",
]
