"""Aggregation outcomes and results.

These types answer: "What did an aggregation run produce?"

ResultNode is mutable while a run is collecting events and is treated as
frozen once the run reaches DONE. AggregationResult uses factory methods,
mirroring the success/error split of the rest of the codebase.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from gradle_mcp.contracts.enums import NodeKind, NodeOutcome

DEFAULT_TEST_LOG_LINES = 100


@dataclass
class ResultNode:
    """One node of the test result tree (suite, class or test).

    Children are exclusively owned. Their order is insertion order until
    the aggregator's finalize pass sorts them by display name.
    """

    display_name: str
    kind: NodeKind
    outcome: NodeOutcome = NodeOutcome.UNKNOWN
    failure_message: str | None = None
    output_lines: list[str] = field(default_factory=list)
    children: list[ResultNode] = field(default_factory=list)

    def walk(self) -> list[ResultNode]:
        """Return this node and all descendants, depth-first pre-order."""
        nodes = [self]
        for child in self.children:
            nodes.extend(child.walk())
        return nodes

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the wire shape used in tool responses."""
        return {
            "display_name": self.display_name,
            "type": self.kind.value,
            "outcome": self.outcome.value,
            "failure_message": self.failure_message,
            "output_lines": list(self.output_lines),
            "children": [child.to_dict() for child in self.children],
        }


@dataclass(frozen=True, slots=True)
class AggregationOptions:
    """Caller options for one aggregation run.

    Attributes:
        include_output_for_passed: Keep output lines for non-failed tests too
        max_log_lines: Per-test output line limit; <= 0 means unlimited
        test_patterns: Test filters requested for the build (notes only)
        arguments_filtered: Whether noisy build arguments were stripped
            before the build was invoked (notes only)
    """

    include_output_for_passed: bool = False
    max_log_lines: int = DEFAULT_TEST_LOG_LINES
    test_patterns: tuple[str, ...] = ()
    arguments_filtered: bool = False


@dataclass(frozen=True, slots=True)
class EventResult:
    """Result of handling one build event.

    Use the factory methods to create instances. Errors are logged and
    discarded by the aggregator; they never stop the event stream.
    """

    status: Literal["ok", "error"]
    reason: str | None = None

    @classmethod
    def ok(cls) -> EventResult:
        """Event applied."""
        return cls(status="ok")

    @classmethod
    def error(cls, reason: str) -> EventResult:
        """Event rejected, with the reason it was skipped."""
        return cls(status="error", reason=reason)

    @property
    def is_ok(self) -> bool:
        return self.status == "ok"


@dataclass(frozen=True)
class AggregationResult:
    """Final result of an aggregation run.

    ``status == "completed"``: ``root_nodes`` holds the sorted tree,
    ``success`` the build's own success flag, ``notes`` free-text
    diagnostics.

    ``status == "error"``: the build could not be invoked. The tree is
    always empty and ``error_message`` says why.
    """

    status: Literal["completed", "error"]
    root_nodes: tuple[ResultNode, ...]
    success: bool
    notes: str | None = None
    error_message: str | None = None
    error_details: str | None = None

    @classmethod
    def completed(
        cls,
        root_nodes: list[ResultNode],
        *,
        success: bool,
        notes: str | None,
    ) -> AggregationResult:
        """Create a result for a build that ran to completion."""
        return cls(
            status="completed",
            root_nodes=tuple(root_nodes),
            success=success,
            notes=notes,
        )

    @classmethod
    def error(
        cls,
        message: str,
        *,
        details: str | None = None,
    ) -> AggregationResult:
        """Create a result for a build that could not be invoked."""
        return cls(
            status="error",
            root_nodes=(),
            success=False,
            notes="An error occurred during test execution setup or processing.",
            error_message=message,
            error_details=details,
        )

    @property
    def has_failed_nodes(self) -> bool:
        """Whether any node anywhere in the tree reports FAILED."""
        return any(node.outcome is NodeOutcome.FAILED for root in self.root_nodes for node in root.walk())
