"""Association of captured output with the test that produced it.

Output events are reported against output operations nested somewhere
below a test (possibly several levels deep). Each chunk is attributed to
the nearest enclosing TEST-kind node and buffered raw; filtering and
truncation happen once the whole run is known.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

import structlog

from gradle_mcp.aggregation.registry import NodeRegistry, StripedLocks
from gradle_mcp.contracts.enums import OutputStream
from gradle_mcp.contracts.events import EventHandle

logger = structlog.get_logger(__name__)


def prefix_lines(stream: OutputStream, text: str) -> list[str]:
    """Split ``text`` into lines tagged with their stream: ``[stdout] ...``."""
    return [f"[{stream.value}] {line}" for line in text.splitlines()]


@dataclass(eq=False)
class OutputBuffer:
    """Raw output lines of one in-flight test."""

    lines: list[str] = field(default_factory=list)
    closed: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def extend(self, lines: list[str]) -> bool:
        """Append lines; False if the buffer was already released."""
        with self.lock:
            if self.closed:
                return False
            self.lines.extend(lines)
            return True

    def close(self) -> list[str]:
        with self.lock:
            self.closed = True
            return list(self.lines)


class OutputAssociator:
    """Buffers output lines per atomic test.

    Thread Safety:
        ``on_output`` and ``release`` may be called concurrently. Buffer
        creation is atomic per test handle; appends are serialized per
        buffer. ``drain`` belongs to the single-threaded finalize pass.
    """

    def __init__(self, registry: NodeRegistry, stripes: int = 32) -> None:
        self._registry = registry
        self._buffers: dict[EventHandle, OutputBuffer] = {}
        self._create_locks = StripedLocks(stripes)

    def nearest_test(self, handle: EventHandle) -> EventHandle | None:
        """Closest ancestor of ``handle`` registered as a TEST node."""
        for ancestor in handle.ancestors():
            if self._registry.is_test(ancestor):
                return ancestor
        return None

    def on_output(self, handle: EventHandle, stream: OutputStream, text: str) -> EventHandle | None:
        """Buffer ``text`` for the test enclosing ``handle``.

        Returns:
            The test handle the output was attributed to, or None when no
            enclosing test is registered and the output was dropped.
        """
        test_handle = self.nearest_test(handle)
        if test_handle is None:
            logger.debug(
                "Dropping output without an enclosing test",
                output=handle.name,
                parent=handle.parent.name if handle.parent is not None else None,
            )
            return None

        lines = prefix_lines(stream, text)
        # A buffer released by a concurrent finish is closed; retry on a fresh one.
        while lines and not self._buffer_for(test_handle).extend(lines):
            pass
        return test_handle

    def _buffer_for(self, test_handle: EventHandle) -> OutputBuffer:
        buffer = self._buffers.get(test_handle)
        if buffer is not None:
            return buffer
        with self._create_locks.for_key(test_handle):
            buffer = self._buffers.get(test_handle)
            if buffer is None:
                buffer = OutputBuffer()
                self._buffers[test_handle] = buffer
            return buffer

    def release(self, test_handle: EventHandle) -> list[str]:
        """Remove and return the buffered lines for ``test_handle``.

        Called when the test finishes. Output arriving afterwards starts a
        fresh buffer, picked up by ``drain``.
        """
        with self._create_locks.for_key(test_handle):
            buffer = self._buffers.pop(test_handle, None)
        if buffer is None:
            return []
        return buffer.close()

    def drain(self) -> dict[EventHandle, list[str]]:
        """Remove and return every remaining buffer. Finalize use only."""
        drained = {handle: buffer.lines for handle, buffer in self._buffers.items()}
        self._buffers.clear()
        return drained

    @property
    def pending_count(self) -> int:
        """Number of tests with buffered, unreleased output."""
        return len(self._buffers)
