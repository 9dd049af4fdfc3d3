"""Decoding of test event lines printed by the test-events init script.

Event lines are external data: they are validated with Pydantic at this
boundary and turned into the typed events the aggregator consumes. Anything
past this module can trust event shapes.

Handle bookkeeping:
    One ``EventHandle`` per descriptor id, so start, finish and output events
    for the same test refer to the same object. Output events get a fresh
    synthetic handle below the test's handle, because the aggregator
    attributes output by walking up from the output operation.

Held events:
    A handle is created when its start line is decoded and its parent (if
    any) already has a handle, so ``parent`` is always the real enclosing
    operation. Until then the decoder holds the start, and any finish or
    output for that id, and releases them in arrival order once the start
    links up. ``flush`` releases whatever is still held when the build ends.
"""

from __future__ import annotations

import itertools
import json
import threading
from collections import deque
from typing import Annotated, Literal

import structlog
from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from gradle_mcp.contracts.enums import NodeOutcome, OutputStream
from gradle_mcp.contracts.events import (
    BuildEvent,
    EventHandle,
    FailureRecord,
    KindMetadata,
    NodeFinished,
    NodeOutput,
    NodeStarted,
)
from gradle_mcp.gradle.init_scripts import TEST_EVENT_MARKER

logger = structlog.get_logger(__name__)

_RESULT_OUTCOMES: dict[str, NodeOutcome] = {
    "SUCCESS": NodeOutcome.PASSED,
    "FAILURE": NodeOutcome.FAILED,
    "SKIPPED": NodeOutcome.SKIPPED,
}


class EventDecodeError(ValueError):
    """Raised when a marked event line cannot be decoded."""


class _FailurePayload(BaseModel):
    model_config = {"frozen": True}

    message: str | None = None
    description: str | None = None
    causes: list[_FailurePayload] = Field(default_factory=list)

    def to_record(self) -> FailureRecord:
        return FailureRecord(
            message=self.message,
            description=self.description,
            causes=tuple(cause.to_record() for cause in self.causes),
        )


class _StartPayload(BaseModel):
    model_config = {"frozen": True}

    type: Literal["start"]
    id: str
    parent: str | None = None
    name: str
    composite: bool | None = None
    className: str | None = None
    methodName: str | None = None


class _FinishPayload(BaseModel):
    model_config = {"frozen": True}

    type: Literal["finish"]
    id: str
    result: str
    failures: list[_FailurePayload] = Field(default_factory=list)


class _OutputPayload(BaseModel):
    model_config = {"frozen": True}

    type: Literal["output"]
    id: str
    stream: OutputStream
    text: str


_EventPayload = TypeAdapter(
    Annotated[_StartPayload | _FinishPayload | _OutputPayload, Field(discriminator="type")]
)


def is_event_line(line: str) -> bool:
    """Whether ``line`` carries a test event."""
    return line.startswith(TEST_EVENT_MARKER)


class EventDecoder:
    """Turns marked event lines into build events.

    One decoder per build: handle identity is only meaningful within the
    build that printed the ids.

    Thread Safety:
        ``decode`` and ``flush`` may be called from several threads; all
        handle and held-event bookkeeping is serialized by an internal lock.

    Example:
        decoder = EventDecoder()
        for line in build_output:
            for event in decoder.decode(line):
                listener(event)
        for event in decoder.flush():
            listener(event)
    """

    def __init__(self) -> None:
        self._handles: dict[str, EventHandle] = {}
        # Starts waiting for their parent's start, keyed by parent id
        self._held_starts: dict[str, list[_StartPayload]] = {}
        # Finish/output waiting for their own start, keyed by id
        self._held_events: dict[str, list[_FinishPayload | _OutputPayload]] = {}
        self._lock = threading.Lock()
        self._output_ids = itertools.count(1)

    @property
    def held_count(self) -> int:
        """Number of decoded events not yet released."""
        with self._lock:
            starts = sum(len(held) for held in self._held_starts.values())
            return starts + sum(len(held) for held in self._held_events.values())

    def handle(self, descriptor_id: str) -> EventHandle | None:
        """Handle created for ``descriptor_id``, or None before its start links up."""
        with self._lock:
            return self._handles.get(descriptor_id)

    def decode(self, line: str) -> list[BuildEvent]:
        """Decode one build output line.

        Returns:
            Events ready for delivery, in order. Empty for ordinary build
            output and when the event is held for a start not yet decoded.

        Raises:
            EventDecodeError: The line is marked as an event but its payload
                is not valid JSON or not a known event shape.
        """
        if not is_event_line(line):
            return []
        raw = line[len(TEST_EVENT_MARKER) :].strip()
        try:
            payload = _EventPayload.validate_python(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            raise EventDecodeError(f"Malformed test event: {e}") from e

        with self._lock:
            match payload:
                case _StartPayload():
                    return self._on_start(payload)
                case _:
                    return self._on_activity(payload)

    def flush(self) -> list[BuildEvent]:
        """Release every held event. Call once the build output has ended.

        Starts whose parent never started are released without a parent, so
        they surface as roots. Finish and output events for ids that never
        started get a handle named after the id.
        """
        events: list[BuildEvent] = []
        with self._lock:
            while self._held_starts:
                parent_id, starts = next(iter(self._held_starts.items()))
                del self._held_starts[parent_id]
                logger.warning("Parent test descriptor never started", parent=parent_id, children=len(starts))
                for start in starts:
                    events.extend(self._release(start, None))

            for descriptor_id, held in self._held_events.items():
                logger.warning("Test descriptor never started", descriptor=descriptor_id, events=len(held))
                handle = EventHandle(id=descriptor_id, name=descriptor_id)
                self._handles[descriptor_id] = handle
                events.extend(self._event_for(payload, handle) for payload in held)
            self._held_events.clear()
        return events

    def _on_start(self, payload: _StartPayload) -> list[BuildEvent]:
        parent: EventHandle | None = None
        if payload.parent is not None:
            parent = self._handles.get(payload.parent)
            if parent is None:
                logger.debug("Holding start until its parent starts", descriptor=payload.id, parent=payload.parent)
                self._held_starts.setdefault(payload.parent, []).append(payload)
                return []
        return self._release(payload, parent)

    def _on_activity(self, payload: _FinishPayload | _OutputPayload) -> list[BuildEvent]:
        handle = self._handles.get(payload.id)
        if handle is None:
            logger.debug("Holding event until its start", event_type=payload.type, descriptor=payload.id)
            self._held_events.setdefault(payload.id, []).append(payload)
            return []
        return [self._event_for(payload, handle)]

    def _release(self, payload: _StartPayload, parent: EventHandle | None) -> list[BuildEvent]:
        """Emit ``payload`` and everything that was waiting on it, in arrival order."""
        events: list[BuildEvent] = []
        pending: deque[tuple[_StartPayload, EventHandle | None]] = deque([(payload, parent)])
        while pending:
            start, start_parent = pending.popleft()
            handle = self._handles.get(start.id)
            if handle is None:
                handle = EventHandle(id=start.id, name=start.name, parent=start_parent)
                self._handles[start.id] = handle
            events.append(self._started(start, handle))
            events.extend(self._event_for(held, handle) for held in self._held_events.pop(start.id, []))
            pending.extend((child, handle) for child in self._held_starts.pop(start.id, []))
        return events

    def _event_for(self, payload: _FinishPayload | _OutputPayload, handle: EventHandle) -> BuildEvent:
        match payload:
            case _FinishPayload():
                return self._finished(payload, handle)
            case _:
                return self._output(payload, handle)

    def _started(self, payload: _StartPayload, handle: EventHandle) -> NodeStarted:
        if payload.composite is None:
            test_kind = None
        else:
            test_kind = "suite" if payload.composite else "atomic"
        metadata = KindMetadata(
            test_kind=test_kind,
            class_name=payload.className,
            method_name=payload.methodName,
        )
        return NodeStarted(handle=handle, display_name=payload.name, metadata=metadata)

    def _finished(self, payload: _FinishPayload, handle: EventHandle) -> NodeFinished:
        outcome = _RESULT_OUTCOMES.get(payload.result.upper(), NodeOutcome.UNKNOWN)
        return NodeFinished(
            handle=handle,
            outcome=outcome,
            failures=tuple(failure.to_record() for failure in payload.failures),
        )

    def _output(self, payload: _OutputPayload, handle: EventHandle) -> NodeOutput:
        output_handle = EventHandle(
            id=f"{payload.id}/output-{next(self._output_ids)}",
            name=f"output of {handle.name}",
            parent=handle,
        )
        return NodeOutput(handle=output_handle, stream=payload.stream, text=payload.text)
