"""Hierarchical test execution aggregator.

Turns the unordered, concurrently delivered test events of one build into
a deterministic result tree. Pure helpers (truncation, noise filtering,
failure formatting, cause-chain resolution) live in their own modules and
can be used on their own.

Import pattern:
    from gradle_mcp.aggregation import run_aggregation, TestEventAggregator
"""

from gradle_mcp.aggregation.aggregator import (
    TestEventAggregator,
    build_notes,
    run_aggregation,
    sort_tree,
)
from gradle_mcp.aggregation.causes import (
    MAX_CAUSE_DEPTH,
    describe_cause,
    find_significant_cause,
)
from gradle_mcp.aggregation.failures import (
    UNKNOWN_FAILURE_REASON,
    failure_rank,
    select_primary_failure,
    summarize_failures,
)
from gradle_mcp.aggregation.noise import filter_noise, is_noise
from gradle_mcp.aggregation.output import OutputAssociator
from gradle_mcp.aggregation.registry import NodeRegistry, infer_node_kind
from gradle_mcp.aggregation.truncation import truncate_lines

__all__ = [
    "MAX_CAUSE_DEPTH",
    "UNKNOWN_FAILURE_REASON",
    "NodeRegistry",
    "OutputAssociator",
    "TestEventAggregator",
    "build_notes",
    "describe_cause",
    "failure_rank",
    "filter_noise",
    "find_significant_cause",
    "infer_node_kind",
    "is_noise",
    "run_aggregation",
    "select_primary_failure",
    "sort_tree",
    "summarize_failures",
    "truncate_lines",
]
