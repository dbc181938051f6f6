"""FastMCP server initialization for da-library-mcp.

This module initializes the MCP server and manages shared resources via lifespan context.
All tool implementations are in the tools module.

Following the official Anthropic Python SDK patterns:
- Lifespan context manager for resource initialization and cleanup
- Context injection for tool access to shared resources
- FastMCP server with stdio transport
"""

import logging
import os
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from mcp.server.fastmcp import FastMCP

from .context import AppContext, AppContextType
from .core import DAAdminClient, GitHubClient, load_settings

logger = logging.getLogger(__name__)

# =============================================================================
# Shared Resources and Lifespan Management
# =============================================================================


@asynccontextmanager
async def app_lifespan(_server: FastMCP) -> AsyncIterator[AppContext]:
    """Manage application lifecycle with resource initialization and cleanup.

    This lifespan context manager:
    1. Loads settings (config file + environment variables)
    2. Opens one shared HTTP client for the DA Admin API and GitHub
    3. Yields context to make resources available to tools
    4. Closes the HTTP client on shutdown

    Environment Variables:
        DA_ADMIN_URL, DA_CONTENT_URL, DA_ADMIN_TOKEN: DA Admin API access
        GITHUB_API_URL, GITHUB_TOKEN: GitHub access for remote block sources
        DA_REQUEST_TIMEOUT: HTTP timeout in seconds (default: 30, range: 1-600)
        DA_LIBRARY_CONFIG_PATH: Library registration sheet path
        DA_MCP_CONFIG: Optional YAML config file

    Args:
        _server: FastMCP server instance (unused, required by FastMCP signature)

    Yields:
        AppContext with initialized resources
    """
    logger.info("Initializing MCP server resources...")

    settings = load_settings()
    if not settings.admin_token:
        logger.warning(
            "No DA_ADMIN_TOKEN configured. Requests to protected DA organizations will fail."
        )

    http_client = httpx.AsyncClient(timeout=settings.request_timeout, follow_redirects=True)

    app_context = AppContext(
        settings=settings,
        admin_client=DAAdminClient(settings, http_client),
        github_client=GitHubClient(settings, http_client),
    )

    try:
        yield app_context
    finally:
        logger.info("Shutting down MCP server...")
        await http_client.aclose()
        logger.info("HTTP client closed")


# Initialize MCP server with lifespan management
# Following Python MCP naming convention: {service}_mcp
mcp = FastMCP("da_library_mcp", lifespan=app_lifespan)


# =============================================================================
# Server Entry Point
# =============================================================================


def main() -> None:
    """Entry point for running the MCP server.

    This function is called when the server is run directly via:
    - python -m da_library_mcp
    - da-library-mcp (console script entry point)

    Defaults to stdio transport for MCP protocol communication.
    """
    # Get log level from environment variable, default to INFO
    valid_log_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    log_level_str = os.getenv("DA_LOG_LEVEL", "INFO").upper()

    # Validate log level and provide feedback
    if log_level_str not in valid_log_levels:
        print(
            f"Warning: Invalid DA_LOG_LEVEL '{log_level_str}'. "
            f"Valid levels: {', '.join(sorted(valid_log_levels))}. "
            "Using INFO.",
            file=sys.stderr,
        )
        log_level_str = "INFO"

    log_level = getattr(logging, log_level_str)

    # Configure logging to stderr (MCP requirement)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    logger.info("Starting MCP server (press Ctrl+C to stop)...")

    try:
        mcp.run()
    except KeyboardInterrupt:
        logger.info("Received interrupt signal, shutting down gracefully...")
    except Exception as e:
        logger.exception(f"Server error: {e}")
        sys.exit(1)

    logger.info("Server shutdown complete")


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    "mcp",
    "main",
    "app_lifespan",
    "AppContext",
    "AppContextType",
]
