"""execute_gradle_task: run arbitrary tasks and report a plain-text summary."""

from __future__ import annotations

import traceback
from collections.abc import Mapping, Sequence

import structlog

from gradle_mcp.contracts.errors import BuildInvocationError
from gradle_mcp.gradle.service import BuildExecutionConfig, BuildResult, GradleService

logger = structlog.get_logger(__name__)

STACKTRACE_HINT = "(Use Gradle argument '--stacktrace' or run server with '--debug' for full stack trace)"


def _combined_output(result: BuildResult) -> str:
    sections: list[str] = []
    if result.output.strip():
        sections.extend(["--- Standard Output ---", result.output.rstrip()])
    if result.error_output.strip():
        sections.extend(["--- Standard Error ---", result.error_output.rstrip()])
    if not sections:
        sections.append("[No output captured from stdout or stderr]")
    return "\n".join(sections)


def format_execution_summary(
    project_path: str,
    config: BuildExecutionConfig,
    result: BuildResult,
    *,
    show_stacktrace: bool,
) -> str:
    """Human-readable report of a build that ran."""
    env = ", ".join(f"{key}={value}" for key, value in config.environment_variables.items())
    lines = [
        "=== Gradle Task Execution Summary ===",
        f"Project Path: {project_path}",
        f"Executed Tasks: {', '.join(config.tasks)}",
        f"Arguments: {' '.join(config.arguments)}",
        f"JVM Arguments: {' '.join(config.jvm_arguments)}",
        f"Environment Variables: {env}",
        f"Status: {'Success' if result.success else 'Failure'}",
        "",
        "=== Build Output ===",
        _combined_output(result),
    ]
    if not result.success:
        error = result.exception
        lines.extend(["", "=== Failure Details ===", f"Error: {error if error is not None else 'Unknown execution error.'}"])
        if show_stacktrace and error is not None:
            lines.extend(["", "Stack Trace:", "".join(traceback.format_exception(error)).rstrip()])
        elif not show_stacktrace:
            lines.append(STACKTRACE_HINT)
    return "\n".join(lines)


def format_setup_error(
    project_path: str,
    config: BuildExecutionConfig,
    error: BaseException,
    *,
    debug: bool,
) -> str:
    """Report for a build that could not be started."""
    lines = [
        "=== Gradle Task Execution Failed ===",
        f"Project Path: {project_path}",
        f"Attempted Tasks: {', '.join(config.tasks)}",
        "Error: Failed during setup, connection, or before task execution could complete.",
        f"Message: {error}",
    ]
    if debug:
        lines.extend(["", "Stack Trace:", "".join(traceback.format_exception(error)).rstrip()])
    return "\n".join(lines)


def execute_task(
    service: GradleService,
    project_path: str,
    tasks: Sequence[str],
    arguments: Sequence[str] | None = None,
    jvm_arguments: Sequence[str] | None = None,
    environment_variables: Mapping[str, str] | None = None,
) -> str:
    """Run ``tasks`` and return the plain-text execution report."""
    config = BuildExecutionConfig(
        tasks=tuple(tasks),
        arguments=tuple(arguments or ()),
        jvm_arguments=tuple(jvm_arguments or ()),
        environment_variables=dict(environment_variables or {}),
    )
    try:
        result = service.execute_build(project_path, config)
    except BuildInvocationError as e:
        logger.error("Error setting up or executing Gradle task", project_path=project_path, error=str(e))
        return format_setup_error(project_path, config, e, debug=service.debug)

    show_stacktrace = service.debug or "--stacktrace" in config.arguments
    return format_execution_summary(project_path, config, result, show_stacktrace=show_stacktrace)
