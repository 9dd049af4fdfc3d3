# tests/unit/aggregation/test_registry.py
"""Tests for NodeRegistry: kind inference, linking, orphans, concurrency."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from gradle_mcp.aggregation.registry import NodeRegistry, StripedLocks, infer_node_kind
from gradle_mcp.contracts import EventHandle, KindMetadata, NodeKind


class TestInferNodeKind:
    @pytest.mark.parametrize(
        ("metadata", "expected"),
        [
            (KindMetadata(test_kind="atomic", class_name="FooTest", method_name="works"), NodeKind.TEST),
            (KindMetadata(test_kind="atomic"), NodeKind.TEST),
            (KindMetadata(test_kind="suite", class_name="FooTest"), NodeKind.CLASS),
            (KindMetadata(class_name="FooTest"), NodeKind.CLASS),
            (KindMetadata(test_kind="suite"), NodeKind.SUITE),
            (KindMetadata(class_name="FooTest", method_name="works"), NodeKind.SUITE),
            (KindMetadata(), NodeKind.SUITE),
        ],
    )
    def test_rules(self, metadata: KindMetadata, expected: NodeKind) -> None:
        assert infer_node_kind(metadata) is expected


class TestStripedLocks:
    def test_rejects_zero_stripes(self) -> None:
        with pytest.raises(ValueError, match="stripes"):
            StripedLocks(0)

    def test_same_key_same_lock(self) -> None:
        locks = StripedLocks(8)
        key = object()

        assert locks.for_key(key) is locks.for_key(key)


class TestNodeRegistry:
    def test_get_or_create_is_idempotent(self) -> None:
        registry = NodeRegistry()
        handle = EventHandle("1", "root")

        first, created_first = registry.get_or_create(handle, "root", NodeKind.SUITE)
        second, created_second = registry.get_or_create(handle, "other", NodeKind.TEST)

        assert created_first is True
        assert created_second is False
        assert first is second
        assert second.node.display_name == "root"
        assert len(registry) == 1

    def test_child_linked_under_registered_parent(self) -> None:
        registry = NodeRegistry()
        parent = EventHandle("1", "suite")
        child = EventHandle("2", "FooTest", parent)

        parent_entry, _ = registry.get_or_create(parent, "suite", NodeKind.SUITE)
        child_entry, _ = registry.get_or_create(child, "FooTest", NodeKind.CLASS)

        assert parent_entry.node.children == [child_entry.node]
        assert registry.roots() == [parent_entry.node]

    def test_unknown_parent_makes_root(self) -> None:
        registry = NodeRegistry()
        child = EventHandle("2", "FooTest", EventHandle("1", "never registered"))

        entry, _ = registry.get_or_create(child, "FooTest", NodeKind.CLASS)

        assert registry.roots() == [entry.node]

    def test_handles_compare_by_identity(self) -> None:
        registry = NodeRegistry()
        registry.get_or_create(EventHandle("1", "a"), "a", NodeKind.SUITE)
        registry.get_or_create(EventHandle("1", "a"), "a", NodeKind.SUITE)

        assert len(registry) == 2

    def test_is_test(self) -> None:
        registry = NodeRegistry()
        test = EventHandle("1", "works")
        suite = EventHandle("2", "suite")
        registry.get_or_create(test, "works", NodeKind.TEST)
        registry.get_or_create(suite, "suite", NodeKind.SUITE)

        assert registry.is_test(test)
        assert not registry.is_test(suite)
        assert not registry.is_test(EventHandle("3", "unregistered"))


class TestReconcileOrphans:
    def test_child_before_parent_is_reparented(self) -> None:
        registry = NodeRegistry()
        parent = EventHandle("1", "FooTest")
        child = EventHandle("2", "works", parent)

        child_entry, _ = registry.get_or_create(child, "works", NodeKind.TEST)
        parent_entry, _ = registry.get_or_create(parent, "FooTest", NodeKind.CLASS)

        assert len(registry.roots()) == 2
        assert registry.reconcile_orphans() == 1
        assert registry.roots() == [parent_entry.node]
        assert parent_entry.node.children == [child_entry.node]

    def test_true_roots_stay(self) -> None:
        registry = NodeRegistry()
        registry.get_or_create(EventHandle("1", "a"), "a", NodeKind.SUITE)
        registry.get_or_create(EventHandle("2", "b"), "b", NodeKind.SUITE)

        assert registry.reconcile_orphans() == 0
        assert [node.display_name for node in registry.roots()] == ["a", "b"]


class TestConcurrentRegistration:
    """Many threads registering the same tree."""

    def test_each_handle_created_exactly_once(self) -> None:
        registry = NodeRegistry(stripes=4)
        root = EventHandle("root", "root")
        registry.get_or_create(root, "root", NodeKind.SUITE)
        handles = [EventHandle(str(i), f"test-{i}", root) for i in range(200)]

        def register(handle: EventHandle) -> bool:
            _, created = registry.get_or_create(handle, handle.name, NodeKind.TEST)
            return created

        with ThreadPoolExecutor(max_workers=8) as pool:
            # Every handle submitted several times from different workers
            results = list(pool.map(register, handles * 4))

        assert sum(results) == len(handles)
        assert len(registry) == len(handles) + 1
        (root_node,) = registry.roots()
        assert sorted(child.display_name for child in root_node.children) == sorted(h.name for h in handles)
