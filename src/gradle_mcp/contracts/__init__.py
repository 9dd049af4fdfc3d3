"""Shared contracts for cross-boundary data types.

Events, results, enums and errors that travel between the Gradle runner,
the aggregator and the MCP tools are defined here.

Import pattern:
    from gradle_mcp.contracts import NodeKind, ResultNode, NodeStarted
"""

from gradle_mcp.contracts.enums import (
    AggregationPhase,
    InfoCategory,
    NodeKind,
    NodeOutcome,
    OutputStream,
    ServerMode,
)
from gradle_mcp.contracts.errors import (
    BuildFailedError,
    BuildInvocationError,
    CompilationError,
    DependencyResolutionError,
    GradleConnectionError,
    GradleFailure,
    GradleMcpError,
    ScriptEvaluationError,
    TaskExecutionError,
    TestFailuresError,
)
from gradle_mcp.contracts.events import (
    BuildEvent,
    BuildEventSource,
    BuildOutcome,
    EventHandle,
    EventListener,
    FailureRecord,
    KindMetadata,
    NodeFinished,
    NodeOutput,
    NodeStarted,
)
from gradle_mcp.contracts.results import (
    DEFAULT_TEST_LOG_LINES,
    AggregationOptions,
    AggregationResult,
    EventResult,
    ResultNode,
)

__all__ = [
    # enums
    "AggregationPhase",
    "InfoCategory",
    "NodeKind",
    "NodeOutcome",
    "OutputStream",
    "ServerMode",
    # errors
    "BuildFailedError",
    "BuildInvocationError",
    "CompilationError",
    "DependencyResolutionError",
    "GradleConnectionError",
    "GradleFailure",
    "GradleMcpError",
    "ScriptEvaluationError",
    "TaskExecutionError",
    "TestFailuresError",
    # events
    "BuildEvent",
    "BuildEventSource",
    "BuildOutcome",
    "EventHandle",
    "EventListener",
    "FailureRecord",
    "KindMetadata",
    "NodeFinished",
    "NodeOutput",
    "NodeStarted",
    # results
    "DEFAULT_TEST_LOG_LINES",
    "AggregationOptions",
    "AggregationResult",
    "EventResult",
    "ResultNode",
]
