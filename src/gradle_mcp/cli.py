# src/gradle_mcp/cli.py
"""gradle-mcp Command Line Interface.

Entry point for the gradle-mcp CLI tool.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer
from dynaconf.vendor.ruamel.yaml.parser import ParserError as YamlParserError
from dynaconf.vendor.ruamel.yaml.scanner import ScannerError as YamlScannerError
from pydantic import ValidationError

from gradle_mcp import __version__
from gradle_mcp.contracts.enums import ServerMode
from gradle_mcp.core.config import ServerSettings, load_settings
from gradle_mcp.core.logging import configure_from_settings

__all__ = [
    "app",
]

app = typer.Typer(
    name="gradle-mcp",
    help="Gradle project, task and test operations over the Model Context Protocol.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"gradle-mcp version {__version__}")
        raise typer.Exit()


def _load_dotenv(env_file: Path | None = None) -> bool:
    """Load environment variables from .env file.

    Args:
        env_file: Explicit path to .env file. If None, searches for .env
                 in current directory and parent directories.

    Returns:
        True if .env was found and loaded, False otherwise.

    Raises:
        typer.Exit: If explicit env_file path doesn't exist.
    """
    from dotenv import load_dotenv

    if env_file is not None:
        if not env_file.exists():
            typer.secho(
                f"Error: .env file not found: {env_file}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(1)
        return load_dotenv(env_file, override=False)

    return load_dotenv(override=False)  # Don't override existing env vars


def _resolve_settings(config: Path | None, overrides: dict[str, Any]) -> ServerSettings:
    """Load settings and apply explicitly given command-line options.

    Raises:
        typer.Exit: Configuration could not be loaded or is invalid.
    """
    try:
        settings = load_settings(config.expanduser() if config is not None else None)
        explicit = {key: value for key, value in overrides.items() if value is not None}
        if explicit:
            settings = ServerSettings(**{**settings.model_dump(), **explicit})
    except (YamlParserError, YamlScannerError) as e:
        typer.echo(f"YAML syntax error in {config}: {e.problem}", err=True)
        raise typer.Exit(1) from None
    except FileNotFoundError:
        typer.echo(f"Error: Config file not found: {config}", err=True)
        raise typer.Exit(1) from None
    except ValidationError as e:
        typer.echo("Configuration errors:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(1) from None
    return settings


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    no_dotenv: bool = typer.Option(
        False,
        "--no-dotenv",
        help="Skip loading .env file.",
    ),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Path to .env file (skips automatic search).",
        exists=False,  # Existence is checked in _load_dotenv for a better message
    ),
) -> None:
    """gradle-mcp: Gradle operations for MCP clients."""
    if not no_dotenv:
        _load_dotenv(env_file=env_file)
    elif env_file is not None:
        typer.secho(
            "Warning: --env-file ignored because --no-dotenv is set.",
            fg=typer.colors.YELLOW,
            err=True,
        )


@app.command()
def serve(
    sse: bool | None = typer.Option(
        None,
        "--sse/--stdio",
        help="Transport: SSE over HTTP, or stdio (default).",
    ),
    port: int | None = typer.Option(
        None,
        "--port",
        "-p",
        help="Port for the SSE transport (default 3001).",
    ),
    host: str | None = typer.Option(
        None,
        "--host",
        help="Bind address for the SSE transport (default 0.0.0.0).",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to settings YAML file.",
    ),
    debug: bool | None = typer.Option(
        None,
        "--debug/--no-debug",
        help="Verbose logging, full Gradle output, stack traces in responses.",
    ),
    json_logs: bool | None = typer.Option(
        None,
        "--json-logs/--console-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """Start the MCP server.

    Logs go to stderr; with --stdio, stdout carries the protocol.
    """
    import asyncio

    from gradle_mcp.mcp.server import run_server

    mode = None if sse is None else (ServerMode.SSE if sse else ServerMode.STDIO)
    settings = _resolve_settings(
        config,
        {"mode": mode, "port": port, "host": host, "debug": debug, "json_logs": json_logs},
    )
    configure_from_settings(settings)

    try:
        asyncio.run(run_server(settings))
    except KeyboardInterrupt:
        typer.echo("Server stopped.", err=True)


@app.command("test")
def run_tests_command(
    project_path: Path = typer.Argument(
        ...,
        help="Root directory of the Gradle project.",
    ),
    task: list[str] | None = typer.Option(
        None,
        "--task",
        "-t",
        help="Test task to run (repeatable). Defaults to 'test'.",
    ),
    tests: list[str] | None = typer.Option(
        None,
        "--tests",
        help="Test filter pattern (repeatable).",
    ),
    include_passed: bool = typer.Option(
        False,
        "--include-passed",
        help="Include output lines for passed tests.",
    ),
    max_log_lines: int | None = typer.Option(
        None,
        "--max-log-lines",
        "-n",
        help="Output lines kept per test; 0 or negative means unlimited.",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to settings YAML file.",
    ),
    debug: bool | None = typer.Option(
        None,
        "--debug/--no-debug",
        help="Verbose logging and full tracebacks.",
    ),
) -> None:
    """Run Gradle tests once and print the aggregated JSON result.

    Exits 0 when the build succeeded, 1 otherwise.
    """
    from gradle_mcp.gradle.service import GradleService
    from gradle_mcp.mcp.tools.run_tests import run_tests

    settings = _resolve_settings(config, {"debug": debug})
    configure_from_settings(settings)

    service = GradleService(
        executable=settings.gradle_executable,
        timeout_seconds=settings.build_timeout_seconds,
        debug=settings.debug,
    )
    response = run_tests(
        service,
        str(project_path.expanduser()),
        gradle_tasks=task,
        test_patterns=tests,
        include_output_for_passed=include_passed,
        max_log_lines=max_log_lines,
        server_default_max_log_lines=settings.default_max_log_lines,
    )
    typer.echo(json.dumps(response, indent=2))
    if not response["success"]:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
