# tests/unit/core/test_config.py
"""Tests for ServerSettings and load_settings."""

import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from gradle_mcp.contracts import ServerMode
from gradle_mcp.core.config import ServerSettings, load_settings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's own GRADLE_MCP_* variables out of these tests."""
    for key in list(os.environ):
        if key.startswith("GRADLE_MCP_"):
            monkeypatch.delenv(key)


class TestServerSettings:
    def test_defaults(self) -> None:
        settings = ServerSettings()

        assert settings.mode is ServerMode.STDIO
        assert settings.port == 3001
        assert settings.debug is False
        assert settings.default_max_log_lines == 100
        assert settings.gradle_executable is None
        assert settings.build_timeout_seconds is None

    def test_frozen(self) -> None:
        settings = ServerSettings()

        with pytest.raises(ValidationError):
            settings.port = 9000  # type: ignore[misc]

    @pytest.mark.parametrize("port", [0, 70000])
    def test_port_range(self, port: int) -> None:
        with pytest.raises(ValidationError, match="port"):
            ServerSettings(port=port)

    def test_log_level_normalized(self) -> None:
        assert ServerSettings(log_level="warning").log_level == "WARNING"

    def test_log_level_rejected(self) -> None:
        with pytest.raises(ValidationError, match="log_level must be one of"):
            ServerSettings(log_level="CHATTY")

    def test_effective_log_level(self) -> None:
        assert ServerSettings(log_level="ERROR").effective_log_level == "ERROR"
        assert ServerSettings(log_level="ERROR", debug=True).effective_log_level == "DEBUG"

    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            ServerSettings(build_timeout_seconds=0)


class TestLoadSettings:
    def test_defaults_without_file(self) -> None:
        assert load_settings() == ServerSettings()

    def test_yaml_file(self, tmp_path: Path) -> None:
        config = tmp_path / "gradle-mcp.yaml"
        config.write_text(
            "mode: sse\nport: 4000\ndefault_max_log_lines: 0\nbuild_timeout_seconds: 600\nunrelated: 1\n",
            encoding="utf-8",
        )

        settings = load_settings(config)

        assert settings.mode is ServerMode.SSE
        assert settings.port == 4000
        assert settings.default_max_log_lines == 0
        assert settings.build_timeout_seconds == 600

    def test_environment_overrides_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config = tmp_path / "gradle-mcp.yaml"
        config.write_text("port: 4000\n", encoding="utf-8")
        monkeypatch.setenv("GRADLE_MCP_PORT", "5000")
        monkeypatch.setenv("GRADLE_MCP_DEBUG", "true")

        settings = load_settings(config)

        assert settings.port == 5000
        assert settings.debug is True

    def test_env_var_expansion_in_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config = tmp_path / "gradle-mcp.yaml"
        config.write_text(
            'gradle_executable: "${GRADLE_BIN}"\nhost: "${BIND_HOST:-127.0.0.1}"\n',
            encoding="utf-8",
        )
        monkeypatch.setenv("GRADLE_BIN", "/opt/gradle/bin/gradle")
        monkeypatch.delenv("BIND_HOST", raising=False)

        settings = load_settings(config)

        assert settings.gradle_executable == "/opt/gradle/bin/gradle"
        assert settings.host == "127.0.0.1"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="Config file not found"):
            load_settings(tmp_path / "missing.yaml")

    def test_invalid_values(self, tmp_path: Path) -> None:
        config = tmp_path / "gradle-mcp.yaml"
        config.write_text("mode: carrier-pigeon\n", encoding="utf-8")

        with pytest.raises(ValidationError):
            load_settings(config)
