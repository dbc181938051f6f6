"""Core components behind the da-library-mcp tools.

Key Components:

- DASettings / DAConfigLoader: Connection settings from YAML file and environment
- DAAdminClient: DA Admin API requests, uploads and URL construction
- GitHubClient: Read-only GitHub contents API access
- BlockSource: Local or GitHub view over block folders (resolve_block_source)
- analyze_block: Description, variants and structure flags from block code
- extract_block_content: Example block markup pulled from authored pages
- generate_block_template: Documentation page HTML for a block
- SheetStore: Keyed record CRUD over one JSON sheet document
- register_library_type: Idempotent library type registration

Architecture:
- Tools in ``da_library_mcp.tools`` only wire these together
- Not-found is a value (None, [], False), never an exception
- Upstream and configuration failures raise DALibraryError subclasses
"""

from .admin_client import DAAdminClient, is_not_found_error
from .block_analyzer import (
    BlockAnalysis,
    BlockFiles,
    BlockStructure,
    BlockSummary,
    analyze_block,
    detect_structure_features,
    get_block_files,
    list_blocks,
)
from .block_extractor import ExtractedContent, extract_block_content, parse_block_instances
from .block_source import (
    BlockSource,
    GitHubBlockSource,
    GitHubSourceConfig,
    GitHubSourceSpec,
    LocalBlockSource,
    LocalSourceSpec,
    SourceRequest,
    resolve_block_source,
    resolve_source_spec,
)
from .block_template import generate_auto_description, generate_block_template
from .config import DAConfigLoader, DASettings, load_settings
from .exceptions import (
    AdminRequestError,
    ConfigurationError,
    DALibraryError,
    GitHubRequestError,
    InvalidBlockNameError,
)
from .github_client import GitHubClient
from .library_config import (
    BLOCK_NAME_PATTERN,
    LibraryType,
    RegistrationResult,
    build_library_path,
    build_sheet_path,
    check_library_doc_exists,
    create_library_doc,
    library_sheet,
    register_library_type,
    validate_block_name,
)
from .sheets import SheetStore, create_sheet_json

__all__ = [
    # Settings
    "DASettings",
    "DAConfigLoader",
    "load_settings",
    # Clients
    "DAAdminClient",
    "GitHubClient",
    "is_not_found_error",
    # Exceptions
    "DALibraryError",
    "ConfigurationError",
    "InvalidBlockNameError",
    "AdminRequestError",
    "GitHubRequestError",
    # Block sources
    "BlockSource",
    "LocalBlockSource",
    "GitHubBlockSource",
    "GitHubSourceConfig",
    "SourceRequest",
    "LocalSourceSpec",
    "GitHubSourceSpec",
    "resolve_source_spec",
    "resolve_block_source",
    # Blocks
    "BlockAnalysis",
    "BlockStructure",
    "BlockSummary",
    "BlockFiles",
    "analyze_block",
    "detect_structure_features",
    "list_blocks",
    "get_block_files",
    "ExtractedContent",
    "extract_block_content",
    "parse_block_instances",
    "generate_auto_description",
    "generate_block_template",
    # Library
    "BLOCK_NAME_PATTERN",
    "LibraryType",
    "RegistrationResult",
    "build_library_path",
    "build_sheet_path",
    "validate_block_name",
    "create_library_doc",
    "check_library_doc_exists",
    "library_sheet",
    "register_library_type",
    "SheetStore",
    "create_sheet_json",
]
