# src/gradle_mcp/mcp/__init__.py
"""MCP (Model Context Protocol) server for Gradle projects.

Provides tools for driving Gradle builds:
- get_gradle_project_info: Build structure, tasks, environment, project details
- execute_gradle_task: Run tasks and report a plain-text summary
- run_gradle_tests: Run test tasks and report a hierarchical result tree

``mcp.server`` (and with it the MCP SDK, starlette and uvicorn) is only
imported when one of the wrappers below is called.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mcp.server import Server

    from gradle_mcp.core.config import ServerSettings
    from gradle_mcp.gradle.service import GradleService


def create_server(settings: ServerSettings, service: GradleService | None = None) -> Server:
    """Create MCP server with the Gradle tools (see ``mcp.server.create_server``)."""
    from gradle_mcp.mcp.server import create_server as _create_server

    return _create_server(settings, service)


def main() -> None:
    """Console entry point (see ``mcp.server.main``)."""
    from gradle_mcp.mcp.server import main as _main

    _main()


__all__ = ["create_server", "main"]
