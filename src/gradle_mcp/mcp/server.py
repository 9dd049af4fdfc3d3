# src/gradle_mcp/mcp/server.py
"""MCP server exposing Gradle project, task and test operations.

Usage:
    # stdio transport, launched by an MCP client
    gradle-mcp serve

    # SSE transport over HTTP
    gradle-mcp serve --sse --port 3001

The tool logic lives in ``mcp.tools.*``. This file contains only MCP
protocol machinery: argument validation, tool registration, dispatcher
and transports.
"""

import asyncio
import json
from dataclasses import dataclass
from typing import Any

import structlog
from mcp.server import Server
from mcp.server.sse import SseServerTransport
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Mount, Route

from gradle_mcp import __version__
from gradle_mcp.contracts.enums import InfoCategory, ServerMode
from gradle_mcp.contracts.results import DEFAULT_TEST_LOG_LINES
from gradle_mcp.core.config import ServerSettings
from gradle_mcp.gradle.service import GradleService
from gradle_mcp.mcp.tools.execute_task import execute_task
from gradle_mcp.mcp.tools.project_info import get_project_info
from gradle_mcp.mcp.tools.run_tests import run_tests

logger = structlog.get_logger(__name__)

SERVER_NAME = "gradle-mcp"


# ══════════════════════════════════════════════════════════════════════════════
# MCP Argument Validation (external trust boundary)
#
# The MCP SDK delivers tool arguments as dict[str, Any]; the client can send
# any JSON. Types are validated immediately rather than letting bad values
# travel into the Gradle command line.
# ══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class _ArgSpec:
    """Declarative schema for one MCP tool's arguments."""

    required_str: tuple[str, ...] = ()
    required_str_list: tuple[str, ...] = ()
    optional_str_list: tuple[str, ...] = ()  # defaults to None
    optional_str_map: tuple[str, ...] = ()  # defaults to None
    optional_bool: tuple[tuple[str, bool], ...] = ()  # (name, default)
    optional_int: tuple[str, ...] = ()  # defaults to None


_TOOL_ARGS: dict[str, _ArgSpec] = {
    "get_gradle_project_info": _ArgSpec(
        required_str=("projectPath",),
        optional_str_list=("requestedInfo",),
    ),
    "execute_gradle_task": _ArgSpec(
        required_str=("projectPath",),
        required_str_list=("tasks",),
        optional_str_list=("arguments", "jvmArguments"),
        optional_str_map=("environmentVariables",),
    ),
    "run_gradle_tests": _ArgSpec(
        required_str=("projectPath",),
        optional_str_list=("gradleTasks", "arguments", "testPatterns"),
        optional_str_map=("environmentVariables",),
        optional_bool=(("includeOutputForPassed", False),),
        optional_int=("maxLogLines", "defaultMaxLogLines"),
    ),
}


def _check_str_list(name: str, fname: str, val: Any) -> list[str]:
    if not isinstance(val, list):
        raise TypeError(f"'{name}': '{fname}' must be array of strings, got {type(val).__name__}")
    for item in val:
        if not isinstance(item, str):
            raise TypeError(f"'{name}': '{fname}' items must be strings, got {type(item).__name__}")
    return list(val)


def _validate_tool_args(name: str, arguments: dict[str, Any]) -> dict[str, Any]:
    """Validate MCP tool arguments at the external boundary.

    Checks required fields exist, validates types, and applies defaults for
    optional fields. Returns a new dict with only the declared fields,
    preventing unexpected keys from leaking through.

    Raises:
        ValueError: Missing required field or unknown tool.
        TypeError: Field has wrong type.
    """
    arg_spec = _TOOL_ARGS.get(name)
    if arg_spec is None:
        raise ValueError(f"Unknown tool: {name}")

    validated: dict[str, Any] = {}

    for fname in arg_spec.required_str:
        if fname not in arguments:
            raise ValueError(f"'{name}' requires '{fname}'")
        val = arguments[fname]
        if not isinstance(val, str):
            raise TypeError(f"'{name}': '{fname}' must be string, got {type(val).__name__}")
        validated[fname] = val

    for fname in arg_spec.required_str_list:
        if fname not in arguments:
            raise ValueError(f"'{name}' requires '{fname}'")
        validated[fname] = _check_str_list(name, fname, arguments[fname])

    for fname in arg_spec.optional_str_list:
        val = arguments.get(fname)
        validated[fname] = None if val is None else _check_str_list(name, fname, val)

    for fname in arg_spec.optional_str_map:
        val = arguments.get(fname)
        if val is not None:
            if not isinstance(val, dict):
                raise TypeError(f"'{name}': '{fname}' must be object or null, got {type(val).__name__}")
            for key, item in val.items():
                if not isinstance(item, str):
                    raise TypeError(f"'{name}': '{fname}.{key}' must be string, got {type(item).__name__}")
            val = dict(val)
        validated[fname] = val

    for fname, bool_default in arg_spec.optional_bool:
        val = arguments.get(fname)
        if val is None:
            val = bool_default
        if not isinstance(val, bool):
            raise TypeError(f"'{name}': '{fname}' must be boolean, got {type(val).__name__}")
        validated[fname] = val

    for fname in arg_spec.optional_int:
        val = arguments.get(fname)
        # JSON has no int/float distinction - accept both, convert to int
        if isinstance(val, float) and val.is_integer():
            val = int(val)
        if val is not None and (not isinstance(val, int) or isinstance(val, bool)):
            raise TypeError(f"'{name}': '{fname}' must be integer or null, got {type(val).__name__}")
        validated[fname] = val

    return validated


_STR_ARRAY: dict[str, Any] = {"type": "array", "items": {"type": "string"}}
_STR_MAP: dict[str, Any] = {"type": "object", "additionalProperties": {"type": "string"}}


def _tool_definitions() -> list[Tool]:
    return [
        Tool(
            name="get_gradle_project_info",
            description=(
                "Retrieves specific details about a Gradle project, returning structured JSON. "
                "Categories (requestedInfo): 'buildStructure' (root project and subprojects), "
                "'tasks' (root project tasks), 'environment' (Gradle version, Java home, JVM arguments), "
                "'projectDetails' (root project name, path, description, build script). "
                "All categories are returned when requestedInfo is omitted; pass [] to only validate the path. "
                "An 'errors' field is included if fetching specific parts failed."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "projectPath": {
                        "type": "string",
                        "description": "The absolute path to the root directory of the Gradle project.",
                    },
                    "requestedInfo": {
                        "type": "array",
                        "items": {"type": "string", "enum": [category.value for category in InfoCategory]},
                        "description": "Categories of information to fetch. If omitted, all are fetched.",
                    },
                },
                "required": ["projectPath"],
            },
        ),
        Tool(
            name="execute_gradle_task",
            description=(
                "Executes one or more Gradle tasks in a project (e.g. 'clean', 'build', 'assemble', "
                "custom tasks). Do not use this to run tests when per-test results are needed; use "
                "run_gradle_tests instead. Returns a text report with the request parameters, a "
                "'Status:' line (Success or Failure), the captured stdout and stderr, and failure details."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "projectPath": {
                        "type": "string",
                        "description": "The absolute path to the root directory of the Gradle project.",
                    },
                    "tasks": {**_STR_ARRAY, "description": "Task names to execute in order, e.g. ['clean', 'build']."},
                    "arguments": {
                        **_STR_ARRAY,
                        "description": "Gradle command-line arguments, e.g. ['--stacktrace', '-PmyProp=value'].",
                    },
                    "jvmArguments": {**_STR_ARRAY, "description": "JVM arguments for the Gradle process, e.g. ['-Xmx4g']."},
                    "environmentVariables": {**_STR_MAP, "description": "Environment variables for the build."},
                },
                "required": ["projectPath", "tasks"],
            },
        ),
        Tool(
            name="run_gradle_tests",
            description=(
                "Executes Gradle test tasks and returns a hierarchical JSON structure of the results "
                "(suite, class, test) with outcome and failure message per node. Output lines are included "
                "only for failed tests by default, filtered for common noise and truncated to the first and "
                "last lines. --info/--debug arguments are filtered out. The response holds tasks_executed, "
                "arguments, environment_variables, test_hierarchy, success and notes."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "projectPath": {
                        "type": "string",
                        "description": "Absolute path to the root directory of the Gradle project.",
                    },
                    "gradleTasks": {**_STR_ARRAY, "description": "Test tasks to run. Defaults to ['test']."},
                    "arguments": {
                        **_STR_ARRAY,
                        "description": "Additional Gradle arguments. --info/--debug are filtered.",
                    },
                    "environmentVariables": {**_STR_MAP, "description": "Environment variables for the build."},
                    "testPatterns": {**_STR_ARRAY, "description": "Test filter patterns passed via '--tests'."},
                    "includeOutputForPassed": {
                        "type": "boolean",
                        "description": "Include output lines for passed tests. Defaults to false.",
                    },
                    "maxLogLines": {
                        "type": "integer",
                        "description": "Output lines kept per test (first/last halves). 0 or negative means unlimited.",
                    },
                    "defaultMaxLogLines": {
                        "type": "integer",
                        "description": "Limit used when maxLogLines is not set. 0 or negative means unlimited.",
                        "default": DEFAULT_TEST_LOG_LINES,
                    },
                },
                "required": ["projectPath"],
            },
        ),
    ]


def create_server(settings: ServerSettings, service: GradleService | None = None) -> Server:
    """Create MCP server with the Gradle tools.

    Args:
        settings: Server settings
        service: Gradle runner; built from settings when None

    Returns:
        Configured MCP Server
    """
    server = Server(SERVER_NAME, version=__version__)
    gradle = service or GradleService(
        executable=settings.gradle_executable,
        timeout_seconds=settings.build_timeout_seconds,
        debug=settings.debug,
    )

    @server.list_tools()  # type: ignore[misc, no-untyped-call, untyped-decorator]  # MCP SDK decorators lack type stubs
    async def list_tools() -> list[Tool]:
        """List available Gradle tools."""
        return _tool_definitions()

    @server.call_tool()  # type: ignore[misc, untyped-decorator]  # MCP SDK decorators lack type stubs
    async def call_tool(name: str, arguments: dict[str, Any] | None) -> list[TextContent]:
        """Handle tool calls.

        Arguments are validated before dispatch; the blocking Gradle work
        runs in a worker thread so the event loop keeps serving the session.
        """
        try:
            args = _validate_tool_args(name, arguments or {})
        except (ValueError, TypeError) as e:
            return [TextContent(type="text", text=f"Invalid arguments: {e!s}")]

        logger.debug("Tool call", tool=name, project_path=args["projectPath"])
        text: str
        if name == "get_gradle_project_info":
            info = await asyncio.to_thread(
                get_project_info,
                gradle,
                args["projectPath"],
                args["requestedInfo"],
            )
            text = json.dumps(info, indent=2)
        elif name == "execute_gradle_task":
            text = await asyncio.to_thread(
                execute_task,
                gradle,
                args["projectPath"],
                args["tasks"],
                args["arguments"],
                args["jvmArguments"],
                args["environmentVariables"],
            )
        elif name == "run_gradle_tests":
            response = await asyncio.to_thread(
                lambda: run_tests(
                    gradle,
                    args["projectPath"],
                    gradle_tasks=args["gradleTasks"],
                    arguments=args["arguments"],
                    environment_variables=args["environmentVariables"],
                    test_patterns=args["testPatterns"],
                    include_output_for_passed=args["includeOutputForPassed"],
                    max_log_lines=args["maxLogLines"],
                    default_max_log_lines=args["defaultMaxLogLines"],
                    server_default_max_log_lines=settings.default_max_log_lines,
                )
            )
            text = json.dumps(response, indent=2)
            if settings.debug:
                logger.debug("Test result payload", payload=text)
        else:
            # _validate_tool_args already raises for unknown tools
            return [TextContent(type="text", text=f"Unknown tool: {name}")]

        return [TextContent(type="text", text=text)]

    return server


async def run_stdio(server: Server) -> None:
    """Serve one MCP session over stdin/stdout."""
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def create_sse_app(server: Server) -> Starlette:
    """Starlette app serving MCP over SSE: GET /sse, POST /messages/."""
    transport = SseServerTransport("/messages/")

    async def handle_sse(request: Request) -> Response:
        async with transport.connect_sse(request.scope, request.receive, request._send) as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())
        return Response()

    routes = [
        Route("/sse", endpoint=handle_sse, methods=["GET"]),
        Mount("/messages/", app=transport.handle_post_message),
    ]
    return Starlette(debug=False, routes=routes)


async def run_sse(server: Server, *, host: str, port: int) -> None:
    """Serve MCP over SSE until interrupted."""
    import uvicorn

    config = uvicorn.Config(create_sse_app(server), host=host, port=port, log_config=None)
    logger.info("MCP server listening (SSE)", host=host, port=port)
    await uvicorn.Server(config).serve()


async def run_server(settings: ServerSettings) -> None:
    """Run the MCP server on the configured transport."""
    server = create_server(settings)
    logger.info("Starting MCP server", mode=settings.mode.value, debug=settings.debug, version=__version__)
    if settings.mode is ServerMode.SSE:
        await run_sse(server, host=settings.host, port=settings.port)
    else:
        await run_stdio(server)


def main() -> None:
    """Console entry point; delegates to the typer application."""
    from gradle_mcp.cli import app

    app()
