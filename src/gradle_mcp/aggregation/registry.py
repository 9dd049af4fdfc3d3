"""Concurrent registry of test result nodes.

Maps event handles to tree nodes and links each node into its parent's
children as start events arrive, in whatever order the build delivers
them.

Thread Safety:
    All public methods except ``reconcile_orphans`` and ``entries`` may be
    called concurrently from any thread. Node creation is atomic per handle
    via lock striping over the handle hash; appends to a parent's children
    are serialized by that parent's own lock. There is no lock covering the
    whole tree. ``reconcile_orphans`` and ``entries`` belong to the
    single-threaded finalize pass.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

import structlog

from gradle_mcp.contracts.enums import NodeKind
from gradle_mcp.contracts.events import EventHandle, KindMetadata
from gradle_mcp.contracts.results import ResultNode

logger = structlog.get_logger(__name__)


def infer_node_kind(metadata: KindMetadata) -> NodeKind:
    """Classify a node from its start-event metadata.

    Rules, first match wins:
    1. marked as an atomic execution unit -> TEST
    2. has a class name but no method name -> CLASS
    3. anything else -> SUITE
    """
    if metadata.test_kind == "atomic":
        return NodeKind.TEST
    if metadata.class_name is not None and metadata.method_name is None:
        return NodeKind.CLASS
    return NodeKind.SUITE


class StripedLocks:
    """Fixed pool of locks selected by object hash.

    Serializes work on the same key without one lock for every key.
    """

    def __init__(self, stripes: int = 32) -> None:
        if stripes < 1:
            raise ValueError(f"stripes must be >= 1, got {stripes}")
        self._locks = tuple(threading.Lock() for _ in range(stripes))

    def for_key(self, key: object) -> threading.Lock:
        return self._locks[hash(key) % len(self._locks)]


@dataclass(eq=False)
class NodeEntry:
    """Registry bookkeeping for one node.

    Attributes:
        handle: Handle the node was registered under
        node: The tree node
        started: Whether a start event has been applied (False for nodes
            created by a finish event that arrived first)
        pending_output: Raw output lines released to this node when its
            finish event was processed; consumed by the finalize pass
        lock: Guards ``node`` mutation, including ``node.children``
    """

    handle: EventHandle
    node: ResultNode
    started: bool = False
    pending_output: list[str] = field(default_factory=list)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


class NodeRegistry:
    """Handle -> node registry and tree builder.

    Entries are never removed during a run: late output or finish events
    may still need a node whose subtree has otherwise completed.

    Example:
        registry = NodeRegistry()
        entry, created = registry.get_or_create(handle, "MathTest", NodeKind.CLASS)
        ...
        registry.reconcile_orphans()
        roots = registry.roots()
    """

    def __init__(self, stripes: int = 32) -> None:
        self._entries: dict[EventHandle, NodeEntry] = {}
        self._insert_locks = StripedLocks(stripes)
        self._roots: dict[EventHandle, NodeEntry] = {}
        self._roots_lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, handle: EventHandle) -> NodeEntry | None:
        """Entry for ``handle``, or None if it was never registered."""
        return self._entries.get(handle)

    def get_or_create(
        self,
        handle: EventHandle,
        display_name: str,
        kind: NodeKind,
    ) -> tuple[NodeEntry, bool]:
        """Return the entry for ``handle``, creating and linking it if needed.

        A new node is appended to its parent's children when the parent
        handle is registered, otherwise it becomes a root.

        Returns:
            (entry, created) where ``created`` is True only for the one call
            that actually inserted the entry.
        """
        entry = self._entries.get(handle)
        if entry is not None:
            return entry, False

        with self._insert_locks.for_key(handle):
            entry = self._entries.get(handle)
            if entry is not None:
                return entry, False
            entry = NodeEntry(handle=handle, node=ResultNode(display_name=display_name, kind=kind))
            self._entries[handle] = entry

        self._link(entry)
        return entry, True

    def _link(self, entry: NodeEntry) -> None:
        parent_handle = entry.handle.parent
        parent = self._entries.get(parent_handle) if parent_handle is not None else None
        if parent is None:
            with self._roots_lock:
                self._roots[entry.handle] = entry
            return
        with parent.lock:
            parent.node.children.append(entry.node)

    def is_test(self, handle: EventHandle) -> bool:
        """Whether ``handle`` is registered as a TEST-kind node."""
        entry = self._entries.get(handle)
        return entry is not None and entry.node.kind is NodeKind.TEST

    def reconcile_orphans(self) -> int:
        """Move roots whose parent registered late under that parent.

        A node created before its parent is registered starts out as a root.
        Re-parenting those once collection has ended makes the final tree
        independent of start-event arrival order. Single-threaded only.

        Returns:
            Number of roots that were re-parented.
        """
        moved = 0
        for handle, entry in list(self._roots.items()):
            parent_handle = handle.parent
            parent = self._entries.get(parent_handle) if parent_handle is not None else None
            if parent is None:
                continue
            parent.node.children.append(entry.node)
            del self._roots[handle]
            moved += 1
        if moved:
            logger.debug("Re-parented orphan nodes", count=moved)
        return moved

    def roots(self) -> list[ResultNode]:
        """Current root nodes, in insertion order."""
        with self._roots_lock:
            return [entry.node for entry in self._roots.values()]

    def entries(self) -> list[NodeEntry]:
        """Snapshot of all entries. Single-threaded finalize use only."""
        return list(self._entries.values())
