# src/gradle_mcp/core/__init__.py
"""Core infrastructure: Configuration, Logging."""

from gradle_mcp.core.config import ServerSettings, load_settings
from gradle_mcp.core.logging import configure_from_settings, configure_logging, get_logger

__all__ = [
    "ServerSettings",
    "configure_from_settings",
    "configure_logging",
    "get_logger",
    "load_settings",
]
