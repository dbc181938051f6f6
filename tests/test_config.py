"""Tests for settings loading from YAML file and environment."""

from pathlib import Path

import pytest

from da_library_mcp.core import ConfigurationError, DAConfigLoader, DASettings


class TestDASettings:
    def test_defaults(self) -> None:
        settings = DASettings()

        assert settings.admin_url == "https://admin.da.live"
        assert settings.content_url == "https://content.da.live"
        assert settings.request_timeout == 30
        assert settings.library_config_path == "/.da/library"
        assert settings.admin_token is None

    def test_normalization(self) -> None:
        settings = DASettings(
            admin_url="https://admin.example/",
            library_config_path="config/library/",
        )

        assert settings.admin_url == "https://admin.example"
        assert settings.library_config_path == "/config/library"

    @pytest.mark.parametrize(
        ("value", "expected"),
        [("60", 60), (0, 1), (10_000, 600), ("soon", 30)],
    )
    def test_timeout_is_clamped(self, value, expected: int) -> None:
        assert DASettings(request_timeout=value).request_timeout == expected

    def test_token_hidden_from_repr(self) -> None:
        assert "secret" not in repr(DASettings(admin_token="secret"))

    def test_unknown_fields_rejected(self) -> None:
        with pytest.raises(ValueError):
            DASettings(admin_uri="https://typo")


class TestDAConfigLoader:
    def test_environment_overrides_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yml"
        config_file.write_text(
            "admin_url: https://file.example\nrequest_timeout: 45\ncontent_url: https://c.example\n"
        )

        settings = DAConfigLoader(
            config_file,
            environ={"DA_ADMIN_URL": "https://env.example", "DA_ADMIN_TOKEN": "tok"},
        ).load()

        assert settings.admin_url == "https://env.example"
        assert settings.content_url == "https://c.example"
        assert settings.request_timeout == 45
        assert settings.admin_token == "tok"

    def test_config_path_from_environment(self, tmp_path: Path) -> None:
        config_file = tmp_path / "da.yml"
        config_file.write_text("library_config_path: /custom/library\n")

        loader = DAConfigLoader(environ={"DA_MCP_CONFIG": str(config_file)})

        assert loader.get_config_path() == config_file
        assert loader.load().library_config_path == "/custom/library"

    def test_missing_explicit_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            DAConfigLoader(tmp_path / "missing.yml", environ={}).load()

    def test_non_mapping_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yml"
        config_file.write_text("- just\n- a list\n")

        with pytest.raises(ConfigurationError, match="mapping"):
            DAConfigLoader(config_file, environ={}).load()

    def test_invalid_field(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yml"
        config_file.write_text("admin_uri: https://typo.example\n")

        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            DAConfigLoader(config_file, environ={}).load()

    def test_blank_environment_values_ignored(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yml"
        config_file.write_text("{}\n")

        settings = DAConfigLoader(config_file, environ={"DA_ADMIN_TOKEN": "  "}).load()
        assert settings.admin_token is None
