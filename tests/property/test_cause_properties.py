# tests/property/test_cause_properties.py
"""Property tests for significant-cause resolution.

CAUSE-CHAIN INVARIANTS:
1. The walk terminates for any chain shape, cycles included
2. The result is always a member of the chain
3. A specific failure within reach is always preferred
"""

from hypothesis import given
from hypothesis import strategies as st

from gradle_mcp.aggregation.causes import MAX_CAUSE_DEPTH, find_significant_cause
from gradle_mcp.contracts.errors import (
    BuildFailedError,
    CompilationError,
    GradleFailure,
    TaskExecutionError,
    TestFailuresError,
)
from tests.property.settings import STANDARD_SETTINGS

_FACTORIES = {
    "wrapper": lambda i: TaskExecutionError(f"task {i}"),
    "build": lambda i: BuildFailedError(f"build {i}"),
    "plain": lambda i: GradleFailure(f"plain {i}"),
    "other": lambda i: ValueError(f"other {i}"),
    "tests": lambda i: TestFailuresError(f"tests {i}"),
    "compile": lambda i: CompilationError(f"compile {i}"),
}


@st.composite
def cause_chains(draw: st.DrawFn) -> list[BaseException]:
    """A cause chain, optionally closed into a cycle."""
    kinds = draw(st.lists(st.sampled_from(sorted(_FACTORIES)), min_size=1, max_size=MAX_CAUSE_DEPTH + 5))
    chain = [_FACTORIES[kind](i) for i, kind in enumerate(kinds)]
    for outer, inner in zip(chain, chain[1:]):
        outer.__cause__ = inner
    loop_target = draw(st.none() | st.integers(min_value=0, max_value=len(chain) - 1))
    if loop_target is not None:
        chain[-1].__cause__ = chain[loop_target]
    return chain


@given(chain=cause_chains())
@STANDARD_SETTINGS
def test_result_is_chain_member(chain: list[BaseException]) -> None:
    result = find_significant_cause(chain[0])

    assert any(result is error for error in chain)


@given(chain=cause_chains())
@STANDARD_SETTINGS
def test_reachable_specific_failure_wins(chain: list[BaseException]) -> None:
    reachable = chain[: MAX_CAUSE_DEPTH + 1]
    specific = [e for e in reachable if isinstance(e, (TestFailuresError, CompilationError))]

    result = find_significant_cause(chain[0])

    if specific:
        assert result is specific[0]
