"""Settings for the DA Admin API and GitHub clients.

Configuration sources, lowest to highest priority:

1. Built-in defaults (public DA and GitHub endpoints)
2. Optional YAML file:
   - explicit path passed to DAConfigLoader
   - DA_MCP_CONFIG environment variable
   - standard location: ~/.da-library-mcp/config.yml
3. Environment variables (DA_ADMIN_URL, DA_ADMIN_TOKEN, GITHUB_TOKEN, ...)

Example config file:
```yaml
admin_url: "https://admin.da.live"
content_url: "https://content.da.live"
request_timeout: 60
library_config_path: "/.da/library"
```

Tokens can live in the file too, but environment variables are preferred.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT = 30
MIN_REQUEST_TIMEOUT = 1
MAX_REQUEST_TIMEOUT = 600

# Environment variable -> settings field
ENV_VARS: dict[str, str] = {
    "DA_ADMIN_URL": "admin_url",
    "DA_CONTENT_URL": "content_url",
    "DA_ADMIN_TOKEN": "admin_token",
    "GITHUB_API_URL": "github_api_url",
    "GITHUB_TOKEN": "github_token",
    "DA_REQUEST_TIMEOUT": "request_timeout",
    "DA_LIBRARY_CONFIG_PATH": "library_config_path",
}


class DASettings(BaseModel):
    """Resolved connection settings shared by all tools."""

    model_config = {"extra": "forbid"}

    admin_url: str = Field(
        default="https://admin.da.live",
        description="DA Admin API base URL",
    )
    content_url: str = Field(
        default="https://content.da.live",
        description="Base URL used to build public content links",
    )
    admin_token: str | None = Field(
        default=None,
        description="Bearer token for the DA Admin API",
        repr=False,
    )
    github_api_url: str = Field(
        default="https://api.github.com",
        description="GitHub REST API base URL",
    )
    github_token: str | None = Field(
        default=None,
        description="GitHub token for remote block sources",
        repr=False,
    )
    request_timeout: int = Field(
        default=DEFAULT_REQUEST_TIMEOUT,
        description="HTTP request timeout in seconds",
    )
    library_config_path: str = Field(
        default="/.da/library",
        description="Path of the library registration sheet",
    )

    @field_validator("admin_url", "content_url", "github_api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("library_config_path")
    @classmethod
    def ensure_leading_slash(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v:
            raise ValueError("library_config_path must not be empty")
        return v if v.startswith("/") else f"/{v}"

    @field_validator("request_timeout", mode="before")
    @classmethod
    def clamp_timeout(cls, v: Any) -> int:
        try:
            timeout = int(v)
        except (TypeError, ValueError):
            logger.warning(
                f"Invalid request timeout {v!r}, using default {DEFAULT_REQUEST_TIMEOUT}s"
            )
            return DEFAULT_REQUEST_TIMEOUT
        return max(MIN_REQUEST_TIMEOUT, min(MAX_REQUEST_TIMEOUT, timeout))


class DAConfigLoader:
    """Loader for DASettings from YAML file and environment.

    Usage:
        ```python
        loader = DAConfigLoader()
        settings = loader.load()
        ```

    The result is cached; call once during server startup.
    """

    def __init__(
        self,
        config_path: str | Path | None = None,
        environ: dict[str, str] | None = None,
    ):
        """Initialize loader.

        Args:
            config_path: Explicit path to a YAML config file (optional)
            environ: Environment mapping to read (defaults to os.environ)
        """
        self._explicit_path = Path(config_path).expanduser() if config_path else None
        self._environ = environ if environ is not None else os.environ
        self._settings: DASettings | None = None

    def get_config_path(self) -> Path | None:
        """Determine config file path using priority order.

        Returns:
            Path to the config file, or None if no file should be read

        Raises:
            ConfigurationError: If an explicitly requested file does not exist
        """
        if self._explicit_path:
            if not self._explicit_path.is_file():
                raise ConfigurationError(f"Config file not found: {self._explicit_path}")
            return self._explicit_path

        env_path_str = self._environ.get("DA_MCP_CONFIG")
        if env_path_str:
            env_path = Path(env_path_str).expanduser()
            if not env_path.is_file():
                raise ConfigurationError(f"DA_MCP_CONFIG points to a missing file: {env_path}")
            return env_path

        standard_path = Path.home() / ".da-library-mcp" / "config.yml"
        if standard_path.is_file():
            return standard_path

        return None

    def _read_file(self, path: Path) -> dict[str, Any]:
        try:
            with open(path, encoding="utf-8") as f:
                raw = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to read config file {path}: {e}") from e

        if raw is None:
            return {}
        if not isinstance(raw, dict):
            raise ConfigurationError(f"Config file {path} must contain a YAML mapping")
        return raw

    def _read_environ(self) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for env_name, field_name in ENV_VARS.items():
            value = self._environ.get(env_name)
            if value is not None and value.strip():
                values[field_name] = value.strip()
        return values

    def load(self) -> DASettings:
        """Load and validate settings.

        Returns:
            Validated DASettings

        Raises:
            ConfigurationError: If the config file is unreadable or invalid
        """
        if self._settings is not None:
            return self._settings

        values: dict[str, Any] = {}
        config_path = self.get_config_path()
        if config_path is not None:
            logger.info(f"Loading config from: {config_path}")
            values.update(self._read_file(config_path))

        values.update(self._read_environ())

        try:
            settings = DASettings(**values)
        except ValidationError as e:
            source = config_path or "environment"
            raise ConfigurationError(f"Invalid configuration ({source}): {e}") from e

        logger.info(
            f"DA Admin API: {settings.admin_url} "
            f"(token {'configured' if settings.admin_token else 'not configured'})"
        )
        if not settings.github_token:
            logger.debug("No GITHUB_TOKEN configured; GitHub requests are unauthenticated")

        self._settings = settings
        return settings


def load_settings(config_path: str | Path | None = None) -> DASettings:
    """Load settings using the default environment."""
    return DAConfigLoader(config_path).load()


__all__ = ["DASettings", "DAConfigLoader", "load_settings", "ENV_VARS"]
