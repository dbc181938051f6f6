"""Library types, library paths and library type registration.

The library registration sheet lists, per library type ("Blocks",
"Placeholders", "Templates", "Icons"), the URL of the sheet backing it.
Registering an already listed type is a no-op.
"""

from __future__ import annotations

import logging
import re
from enum import Enum

from pydantic import BaseModel

from .admin_client import DAAdminClient, is_not_found_error
from .exceptions import AdminRequestError, InvalidBlockNameError
from .sheets import SheetStore

logger = logging.getLogger(__name__)

BLOCK_NAME_PATTERN = r"^[a-z0-9]+(-[a-z0-9]+)*$"
BLOCK_NAME_MAX_LENGTH = 100
_BLOCK_NAME_RE = re.compile(BLOCK_NAME_PATTERN)

LIBRARY_SHEET_TYPE = "library"
LIBRARY_KEY_FIELD = "title"


class LibraryType(str, Enum):
    """Library content types; the value is the folder/sheet name."""

    BLOCKS = "blocks"
    TEMPLATES = "templates"
    PLACEHOLDERS = "placeholders"
    ICONS = "icons"

    @property
    def display_name(self) -> str:
        """Display name used in the registration sheet."""
        return self.value.capitalize()


class RegistrationResult(BaseModel):
    registered: bool
    existed: bool
    created_sheet: bool
    library_entry_count: int


class CreateDocResult(BaseModel):
    created: bool
    path: str
    url: str
    error: str | None = None


class DocExistsResult(BaseModel):
    exists: bool
    path: str
    url: str


def validate_block_name(name: str) -> str:
    """Return ``name`` if it is a valid block/template name.

    Valid names are lowercase letters and digits in hyphen-separated groups,
    at most 100 characters.

    Raises:
        InvalidBlockNameError: Name is empty, too long or malformed
    """
    if not name:
        raise InvalidBlockNameError(name, "name must not be empty")
    if len(name) > BLOCK_NAME_MAX_LENGTH:
        raise InvalidBlockNameError(
            name, f"name must be at most {BLOCK_NAME_MAX_LENGTH} characters"
        )
    if not _BLOCK_NAME_RE.match(name):
        raise InvalidBlockNameError(
            name, "use lowercase letters, digits and single hyphens (e.g. 'hero-banner')"
        )
    return name


def build_library_path(library_type: LibraryType, base_folder: str, name: str) -> str:
    """``/{base_folder}/{type}/{name}``, e.g. ``/library/blocks/hero``."""
    folder = base_folder.strip("/")
    prefix = f"/{folder}" if folder else ""
    return f"{prefix}/{library_type.value}/{name}"


def build_sheet_path(config_path: str | None, library_type: LibraryType) -> str:
    """Sheet document path: ``/{type}`` at the root or ``/{config_path}/{type}``."""
    clean = (config_path or "").strip("/")
    if not clean:
        return f"/{library_type.value}"
    return f"/{clean}/{library_type.value}"


def library_sheet(client: DAAdminClient, org: str, repo: str) -> SheetStore:
    """SheetStore over the library registration sheet."""
    return SheetStore(
        client,
        org,
        repo,
        client.settings.library_config_path,
        LIBRARY_SHEET_TYPE,
        key_field=LIBRARY_KEY_FIELD,
    )


async def register_library_type(
    client: DAAdminClient, org: str, repo: str, type_name: str, sheet_url: str
) -> RegistrationResult:
    """Add ``type_name`` -> ``sheet_url`` to the registration sheet unless present.

    Args:
        type_name: Display name ("Placeholders", "Templates", ...)
        sheet_url: Content URL of the sheet backing that type
    """
    store = library_sheet(client, org, repo)
    existing = await store.read()
    entries = existing or []

    if any(entry.get(LIBRARY_KEY_FIELD) == type_name for entry in entries):
        return RegistrationResult(
            registered=False,
            existed=True,
            created_sheet=False,
            library_entry_count=len(entries),
        )

    entries.append({LIBRARY_KEY_FIELD: type_name, "path": sheet_url})
    await store.write(entries)
    logger.info(f"Registered library type '{type_name}' for {org}/{repo}")

    return RegistrationResult(
        registered=True,
        existed=False,
        created_sheet=existing is None,
        library_entry_count=len(entries),
    )


async def create_library_doc(
    client: DAAdminClient,
    org: str,
    repo: str,
    library_type: LibraryType,
    name: str,
    html_content: str,
    base_folder: str = "library",
) -> CreateDocResult:
    """Upload an HTML document to ``/{base_folder}/{type}/{name}``.

    Raises:
        InvalidBlockNameError: Invalid name (checked before any request)
        AdminRequestError: Upload failed
    """
    validate_block_name(name)
    doc_path = build_library_path(library_type, base_folder, name)
    url = client.format_url("source", org, repo, doc_path, "html")
    await client.upload_html(url, html_content)
    return CreateDocResult(
        created=True,
        path=doc_path,
        url=client.content_url(org, repo, doc_path),
        error=None,
    )


async def check_library_doc_exists(
    client: DAAdminClient,
    org: str,
    repo: str,
    library_type: LibraryType,
    name: str,
    base_folder: str = "library",
) -> DocExistsResult:
    """Report whether ``/{base_folder}/{type}/{name}`` exists.

    Raises:
        InvalidBlockNameError: Invalid name (checked before any request)
        AdminRequestError: Any failure other than 404
    """
    validate_block_name(name)
    doc_path = build_library_path(library_type, base_folder, name)
    url = client.format_url("source", org, repo, doc_path, "html")

    try:
        await client.request(url)
        exists = True
    except AdminRequestError as e:
        if not is_not_found_error(e):
            raise
        exists = False

    return DocExistsResult(
        exists=exists, path=doc_path, url=client.content_url(org, repo, doc_path)
    )


__all__ = [
    "BLOCK_NAME_PATTERN",
    "LibraryType",
    "RegistrationResult",
    "CreateDocResult",
    "DocExistsResult",
    "validate_block_name",
    "build_library_path",
    "build_sheet_path",
    "library_sheet",
    "register_library_type",
    "create_library_doc",
    "check_library_doc_exists",
]
