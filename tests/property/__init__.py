# tests/property/__init__.py
"""Property-based tests for gradle-mcp.

Property-based testing validates invariants that must hold for ALL inputs,
not just the specific examples we think of. Result trees must be identical
regardless of the order the build delivers events in.

Test categories:
- test_truncation_properties: head/tail bounds and marker accounting
- test_tree_properties: tree determinism under event permutations
- test_cause_properties: cause-chain walks terminate on arbitrary chains
"""
