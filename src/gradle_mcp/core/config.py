"""
Configuration schema and loading for the gradle-mcp server.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

import os
import re
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from gradle_mcp.contracts.enums import ServerMode
from gradle_mcp.contracts.results import DEFAULT_TEST_LOG_LINES

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class ServerSettings(BaseModel):
    """Top-level server configuration.

    Example YAML:
        mode: sse
        port: 3001
        default_max_log_lines: 200
        gradle_executable: /opt/gradle/bin/gradle
        build_timeout_seconds: 1800
    """

    model_config = {"frozen": True}

    mode: ServerMode = Field(
        default=ServerMode.STDIO,
        description="Transport: stdio (launched by an MCP client) or sse (HTTP server)",
    )
    host: str = Field(
        default="0.0.0.0",
        description="Bind address for the SSE transport",
    )
    port: int = Field(
        default=3001,
        ge=1,
        le=65535,
        description="Port for the SSE transport",
    )
    debug: bool = Field(
        default=False,
        description="Verbose logging, full Gradle output and stack traces in tool responses",
    )
    json_logs: bool = Field(
        default=False,
        description="Render log records as JSON instead of console output",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level when debug is off (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    default_max_log_lines: int = Field(
        default=DEFAULT_TEST_LOG_LINES,
        description="Per-test output line limit when a request sets none; <= 0 means unlimited",
    )
    gradle_executable: str | None = Field(
        default=None,
        description="Gradle launcher; defaults to the project's gradlew, then gradle on PATH",
    )
    build_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Kill builds running longer than this many seconds",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and check the log level name."""
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}, got {v!r}")
        return level

    @property
    def effective_log_level(self) -> str:
        """DEBUG when debug mode is on, else the configured level."""
        return "DEBUG" if self.debug else self.log_level


_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")


def _expand_env_vars(config: dict[str, Any]) -> dict[str, Any]:
    """Expand ${VAR} and ${VAR:-default} patterns in top-level string values."""

    def replacer(match: re.Match[str]) -> str:
        env_value = os.environ.get(match.group(1))
        if env_value is not None:
            return env_value
        if match.group(2) is not None:
            return match.group(2)
        # No env var and no default - keep original (will likely fail validation)
        return match.group(0)

    return {k: _ENV_VAR_PATTERN.sub(replacer, v) if isinstance(v, str) else v for k, v in config.items()}


def load_settings(config_path: Path | None = None) -> ServerSettings:
    """Load settings from an optional YAML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (GRADLE_MCP_*) - highest priority
    2. Config file, when given
    3. Defaults from Pydantic schema - lowest priority

    Args:
        config_path: Path to YAML configuration file, or None for
            environment and defaults only

    Returns:
        Validated ServerSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If an explicit config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Explicit check for file existence (Dynaconf silently accepts missing files)
    if config_path is not None and not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="GRADLE_MCP",
        settings_files=[str(config_path)] if config_path is not None else [],
        environments=False,
        load_dotenv=False,
    )

    # Dynaconf returns uppercase keys; keep only the ones the schema knows
    known = set(ServerSettings.model_fields)
    raw_config = {k.lower(): v for k, v in dynaconf_settings.as_dict().items() if k.lower() in known}
    return ServerSettings(**_expand_env_vars(raw_config))
