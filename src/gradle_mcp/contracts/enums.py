"""All kinds, outcomes and modes used across subsystem boundaries.

Values are serialized verbatim into MCP tool responses, so changing a
value is a wire-format change.
"""

from enum import StrEnum


class NodeKind(StrEnum):
    """Classification of a node in the test result tree.

    Decided once, when the node's start event is processed.
    TEST denotes an atomic, non-divisible unit of execution.
    """

    SUITE = "SUITE"
    CLASS = "CLASS"
    TEST = "TEST"


class NodeOutcome(StrEnum):
    """Outcome of a test result node.

    UNKNOWN until the node's finish event is processed; terminal after.
    """

    UNKNOWN = "unknown"
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"

    @property
    def is_terminal(self) -> bool:
        """Whether this outcome can only be reached from a finish event."""
        return self is not NodeOutcome.UNKNOWN


class OutputStream(StrEnum):
    """Destination stream of captured test output.

    The value doubles as the line prefix tag: ``[stdout] ...``.
    """

    STDOUT = "stdout"
    STDERR = "stderr"


class AggregationPhase(StrEnum):
    """Lifecycle of one aggregation run.

    COLLECTING -> FINALIZING -> SORTED -> DONE. Events are only accepted
    while COLLECTING.
    """

    COLLECTING = "collecting"
    FINALIZING = "finalizing"
    SORTED = "sorted"
    DONE = "done"


class ServerMode(StrEnum):
    """MCP transport the server listens on."""

    STDIO = "stdio"
    SSE = "sse"


class InfoCategory(StrEnum):
    """Project information categories for the project-info tool.

    Values are the names MCP clients send in ``requestedInfo``.
    """

    BUILD_STRUCTURE = "buildStructure"
    TASKS = "tasks"
    ENVIRONMENT = "environment"
    PROJECT_DETAILS = "projectDetails"
