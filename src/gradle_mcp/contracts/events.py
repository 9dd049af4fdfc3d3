"""Build events consumed by the test result aggregator.

A running build reports three kinds of events for every test operation:
a start, a finish, and any number of output chunks. Events reference the
operation through an ``EventHandle``; handles form a parent chain
(executor -> class -> method -> output) that the aggregator walks upwards
but never owns.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Literal, Protocol

from gradle_mcp.contracts.enums import NodeOutcome, OutputStream


@dataclass(frozen=True, eq=False, slots=True)
class EventHandle:
    """Opaque identifier for one operation instance.

    Compared and hashed by identity (``eq=False``): two handles are the same
    operation only if they are the same object. ``parent`` is a non-owning
    back-reference used purely for lookups.

    Attributes:
        id: Source-assigned identifier, used for diagnostics only
        name: Human-readable label, used for diagnostics and as the display
            name of nodes created before their start event arrives
        parent: Enclosing operation, or None at the top of the chain
    """

    id: str
    name: str
    parent: EventHandle | None = field(default=None, repr=False)

    def ancestors(self) -> Iterator[EventHandle]:
        """Yield parent, grandparent, ... up to the top of the chain."""
        current = self.parent
        while current is not None:
            yield current
            current = current.parent


@dataclass(frozen=True, slots=True)
class KindMetadata:
    """Descriptor metadata used to classify a node at start time.

    Attributes:
        test_kind: "atomic" for a single test case, "suite" for a grouping
            operation, None when the source does not say
        class_name: Test class name, if the operation belongs to a class
        method_name: Test method name, if the operation is a method
    """

    test_kind: Literal["atomic", "suite"] | None = None
    class_name: str | None = None
    method_name: str | None = None


@dataclass(frozen=True, slots=True)
class FailureRecord:
    """One failure reported for a finished test.

    A test may report several (an assertion plus a cleanup exception).

    Attributes:
        message: Short failure message (exception message)
        description: Long description, typically a stack trace
        causes: Nested failures, outermost first
    """

    message: str | None = None
    description: str | None = None
    causes: tuple[FailureRecord, ...] = ()


@dataclass(frozen=True, slots=True)
class NodeStarted:
    """An operation started."""

    handle: EventHandle
    display_name: str
    metadata: KindMetadata = field(default_factory=KindMetadata)


@dataclass(frozen=True, slots=True)
class NodeFinished:
    """An operation finished with an outcome."""

    handle: EventHandle
    outcome: NodeOutcome
    failures: tuple[FailureRecord, ...] = ()


@dataclass(frozen=True, slots=True)
class NodeOutput:
    """A chunk of output captured while an operation was running.

    ``handle`` is the output operation itself; the test it belongs to is
    found by walking ``handle.parent``.
    """

    handle: EventHandle
    stream: OutputStream
    text: str


BuildEvent = NodeStarted | NodeFinished | NodeOutput

EventListener = Callable[[BuildEvent], None]


@dataclass(frozen=True, slots=True)
class BuildOutcome:
    """What the build reported once it returned.

    Attributes:
        success: Whether the build as a whole succeeded
        failure: Exception chain explaining a failed build, if any
    """

    success: bool
    failure: BaseException | None = None


class BuildEventSource(Protocol):
    """Anything that runs a build and reports its events.

    ``run`` blocks until the build completes. Events may be delivered to
    ``listener`` from any thread while ``run`` is executing. Raising from
    ``run`` means the build could not be invoked at all.
    """

    def run(self, listener: EventListener) -> BuildOutcome: ...
