"""Gradle build runner: subprocess lifecycle, init scripts, event decoding."""

from gradle_mcp.gradle.decoder import EventDecodeError, EventDecoder, is_event_line
from gradle_mcp.gradle.failures import classify_failure, parse_failure_chain
from gradle_mcp.gradle.service import (
    BuildExecutionConfig,
    BuildResult,
    GradleConnection,
    GradleService,
)
from gradle_mcp.gradle.source import GradleTestRun

__all__ = [
    "BuildExecutionConfig",
    "BuildResult",
    "EventDecodeError",
    "EventDecoder",
    "GradleConnection",
    "GradleService",
    "GradleTestRun",
    "classify_failure",
    "is_event_line",
    "parse_failure_chain",
]
