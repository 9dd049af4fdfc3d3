"""Hierarchical test result aggregator.

Consumes the start/finish/output events of one build and produces a
deterministic result tree (suite -> class -> test) with bounded, filtered
output and formatted failure messages.

State machine:
    COLLECTING  - events arrive from any thread; registry/associator mutate
    FINALIZING  - single-threaded: orphans re-parented, output retention
                  policy applied to every node, transient buffers cleared
    SORTED      - children sorted by display name at every level, then roots
    DONE        - tree handed to the caller together with notes

Failure semantics:
    A malformed event is logged and skipped; it never loses the rest of the
    tree. A build that cannot be invoked at all yields an error result with
    an empty tree (see ``run_aggregation``).
"""

from __future__ import annotations

import traceback

import structlog

from gradle_mcp.aggregation.causes import describe_cause, find_significant_cause
from gradle_mcp.aggregation.failures import summarize_failures
from gradle_mcp.aggregation.noise import filter_noise, noise_categories
from gradle_mcp.aggregation.output import OutputAssociator
from gradle_mcp.aggregation.registry import NodeRegistry, infer_node_kind
from gradle_mcp.aggregation.truncation import truncate_lines
from gradle_mcp.contracts.enums import AggregationPhase, NodeKind, NodeOutcome
from gradle_mcp.contracts.events import (
    BuildEvent,
    BuildEventSource,
    BuildOutcome,
    NodeFinished,
    NodeOutput,
    NodeStarted,
)
from gradle_mcp.contracts.results import (
    AggregationOptions,
    AggregationResult,
    EventResult,
    ResultNode,
)

logger = structlog.get_logger(__name__)


def sort_tree(nodes: list[ResultNode]) -> None:
    """Sort ``nodes`` and every descendant's children by display name, in place.

    The sort is stable, so siblings sharing a display name keep their
    insertion order.
    """
    for node in nodes:
        sort_tree(node.children)
    nodes.sort(key=lambda node: node.display_name)


def build_notes(
    options: AggregationOptions,
    *,
    success: bool,
    failure: BaseException | None,
    roots: list[ResultNode],
) -> str | None:
    """Assemble the free-text diagnostic summary for a finished run."""
    notes: list[str] = []
    if options.arguments_filtered:
        notes.append("Note: Verbose Gradle arguments (--info/--debug) were filtered out.")
    if options.test_patterns:
        notes.append(f"Applied test filters: {', '.join(options.test_patterns)}.")
    if options.include_output_for_passed:
        notes.append("Output lines included for all tests.")
    else:
        notes.append("Output lines included only for failed tests.")
    notes.append(f"Output filtered for noise ({', '.join(noise_categories())}).")
    if options.max_log_lines > 0:
        notes.append(f"Output lines per test limited to ~{options.max_log_lines} (keeps first/last lines).")
    else:
        notes.append("Output lines per test are unlimited.")

    any_failed = any(node.outcome is NodeOutcome.FAILED for root in roots for node in root.walk())
    if not success:
        if failure is not None:
            notes.append(f"The overall Gradle build failed: {describe_cause(find_significant_cause(failure))}.")
        else:
            notes.append("The overall Gradle build failed.")
        if roots and not any_failed:
            notes.append(
                "No reported test failed, so the build failed outside reported test execution "
                "(e.g., compilation errors, other task failures)."
            )
    elif any_failed:
        notes.append("The overall Gradle build succeeded, but some reported tests failed.")

    return " ".join(notes) or None


class TestEventAggregator:
    """Builds a result tree from concurrently delivered build events.

    Thread Safety:
        ``on_event`` may be called from any number of threads while the
        aggregator is COLLECTING. ``finalize`` must be called exactly once,
        after the build has returned, from a single thread.

    Example:
        aggregator = TestEventAggregator(AggregationOptions(max_log_lines=50))
        outcome = source.run(aggregator.on_event)
        result = aggregator.finalize(outcome)
    """

    __test__ = False

    def __init__(self, options: AggregationOptions | None = None) -> None:
        self._options = options or AggregationOptions()
        self._registry = NodeRegistry()
        self._associator = OutputAssociator(self._registry)
        self._phase = AggregationPhase.COLLECTING
        self._rejected_events = 0

    @property
    def phase(self) -> AggregationPhase:
        return self._phase

    @property
    def options(self) -> AggregationOptions:
        return self._options

    @property
    def rejected_events(self) -> int:
        """Number of events skipped because they could not be applied."""
        return self._rejected_events

    # === Collecting ===

    def on_event(self, event: BuildEvent) -> EventResult:
        """Apply one build event. Never raises.

        Rejected events are logged and counted; processing of the stream
        continues regardless.
        """
        try:
            result = self._dispatch(event)
        except Exception as e:
            # Per-event isolation: one malformed event must not lose the tree
            logger.warning(
                "Build event processing failed",
                event_type=type(event).__name__,
                error=str(e),
                exc_info=True,
            )
            result = EventResult.error(f"{type(e).__name__}: {e}")

        if not result.is_ok:
            self._rejected_events += 1
            logger.debug("Build event skipped", event_type=type(event).__name__, reason=result.reason)
        return result

    def _dispatch(self, event: BuildEvent) -> EventResult:
        if self._phase is not AggregationPhase.COLLECTING:
            return EventResult.error(f"event arrived after collection ended (phase={self._phase.value})")
        match event:
            case NodeStarted():
                return self._on_start(event)
            case NodeFinished():
                return self._on_finish(event)
            case NodeOutput():
                return self._on_output(event)
            case _:
                return EventResult.error(f"unsupported event type {type(event).__name__}")

    def _on_start(self, event: NodeStarted) -> EventResult:
        kind = infer_node_kind(event.metadata)
        entry, created = self._registry.get_or_create(event.handle, event.display_name, kind)
        with entry.lock:
            if entry.started:
                return EventResult.error(f"duplicate start for {event.display_name!r}")
            entry.started = True
            if not created:
                # Created earlier by an out-of-order finish; start metadata wins
                entry.node.display_name = event.display_name
                entry.node.kind = kind

        logger.debug(
            "Test node started",
            display_name=event.display_name,
            kind=kind.value,
            parent=event.handle.parent.name if event.handle.parent is not None else None,
        )
        return EventResult.ok()

    def _on_finish(self, event: NodeFinished) -> EventResult:
        if not event.outcome.is_terminal:
            return EventResult.error(f"finish for {event.handle.name!r} carries no terminal outcome")

        entry, created = self._registry.get_or_create(event.handle, event.handle.name, NodeKind.SUITE)
        if created:
            logger.debug("Finish event before start", display_name=event.handle.name)

        with entry.lock:
            node = entry.node
            if node.outcome.is_terminal:
                return EventResult.error(
                    f"{node.display_name!r} already finished as {node.outcome.value}, ignoring {event.outcome.value}"
                )
            node.outcome = event.outcome
            node.failure_message = summarize_failures(event.failures) if event.outcome is NodeOutcome.FAILED else None
            entry.pending_output.extend(self._associator.release(event.handle))

        logger.debug("Test node finished", display_name=node.display_name, outcome=event.outcome.value)
        return EventResult.ok()

    def _on_output(self, event: NodeOutput) -> EventResult:
        # Dropping output without an enclosing test is expected, not an error
        self._associator.on_output(event.handle, event.stream, event.text)
        return EventResult.ok()

    # === Finalizing ===

    def finalize(self, outcome: BuildOutcome) -> AggregationResult:
        """Close collection and produce the sorted result tree.

        Args:
            outcome: What the build reported after returning

        Returns:
            Completed AggregationResult

        Raises:
            RuntimeError: If called more than once
        """
        if self._phase is not AggregationPhase.COLLECTING:
            raise RuntimeError(f"finalize() called twice (phase={self._phase.value})")

        self._phase = AggregationPhase.FINALIZING
        self._registry.reconcile_orphans()
        late_output = self._associator.drain()
        for entry in self._registry.entries():
            raw_lines = entry.pending_output + late_output.pop(entry.handle, [])
            entry.pending_output = []
            node = entry.node
            if node.outcome is NodeOutcome.FAILED or self._options.include_output_for_passed:
                node.output_lines = truncate_lines(filter_noise(raw_lines), self._options.max_log_lines)
            else:
                node.output_lines = []

        self._phase = AggregationPhase.SORTED
        roots = self._registry.roots()
        sort_tree(roots)

        notes = build_notes(self._options, success=outcome.success, failure=outcome.failure, roots=roots)
        self._phase = AggregationPhase.DONE
        logger.info(
            "Test aggregation finished",
            nodes=len(self._registry),
            roots=len(roots),
            rejected_events=self._rejected_events,
            build_success=outcome.success,
        )
        return AggregationResult.completed(roots, success=outcome.success, notes=notes)


def run_aggregation(
    source: BuildEventSource,
    options: AggregationOptions | None = None,
    *,
    include_traceback: bool = False,
) -> AggregationResult:
    """Run one build through a fresh aggregator.

    This is the aggregator's outer boundary and never raises: an exception
    from ``source.run`` (the build could not be connected to or invoked)
    yields an error result with an empty tree.

    Args:
        source: Build to run
        options: Aggregation options (defaults when None)
        include_traceback: Put the full traceback in ``error_details``

    Returns:
        Completed result, or error result when the build could not run.
    """
    aggregator = TestEventAggregator(options)
    try:
        outcome = source.run(aggregator.on_event)
    except Exception as e:
        logger.error("Build invocation failed", error=str(e), error_type=type(e).__name__, exc_info=True)
        details = (
            "".join(traceback.format_exception(e))
            if include_traceback
            else "Gradle connection/setup or listener processing failed."
        )
        return AggregationResult.error(str(e) or type(e).__name__, details=details)
    return aggregator.finalize(outcome)
