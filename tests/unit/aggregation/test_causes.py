# tests/unit/aggregation/test_causes.py
"""Tests for significant-cause resolution over exception chains."""

from gradle_mcp.aggregation.causes import MAX_CAUSE_DEPTH, cause_of, describe_cause, find_significant_cause
from gradle_mcp.contracts.errors import (
    BuildFailedError,
    BuildInvocationError,
    CompilationError,
    GradleFailure,
    TaskExecutionError,
    TestFailuresError,
)


def _chain(*errors: BaseException) -> BaseException:
    for outer, inner in zip(errors, errors[1:]):
        outer.__cause__ = inner
    return errors[0]


class TestFindSignificantCause:
    """Walking wrapper chains to the reported reason."""

    def test_specific_type_below_wrappers(self) -> None:
        specific = TestFailuresError("There were failing tests")
        error = _chain(BuildFailedError("build failed"), TaskExecutionError("task ':test'"), specific)

        assert find_significant_cause(error) is specific

    def test_specific_type_stops_the_walk(self) -> None:
        specific = CompilationError("Compilation failed")
        deeper = RuntimeError("javac crashed")
        error = _chain(BuildFailedError("build failed"), specific, deeper)

        assert find_significant_cause(error) is specific

    def test_non_wrapper_is_best_so_far(self) -> None:
        informative = GradleFailure("Something odd happened")
        error = _chain(BuildFailedError("build failed"), TaskExecutionError("task"), informative)

        assert find_significant_cause(error) is informative

    def test_deepest_non_wrapper_wins_without_specific(self) -> None:
        outer = GradleFailure("outer detail")
        inner = ValueError("inner detail")
        error = _chain(BuildFailedError("build failed"), outer, inner)

        assert find_significant_cause(error) is inner

    def test_only_wrappers_returns_input(self) -> None:
        error = _chain(BuildFailedError("a"), TaskExecutionError("b"), BuildInvocationError("c"))

        assert find_significant_cause(error) is error

    def test_single_exception(self) -> None:
        error = RuntimeError("boom")

        assert find_significant_cause(error) is error

    def test_self_referencing_chain_terminates(self) -> None:
        error = BuildFailedError("loop")
        error.__cause__ = error

        assert find_significant_cause(error) is error

    def test_two_node_cycle_returns_best_so_far(self) -> None:
        wrapper = TaskExecutionError("task")
        informative = GradleFailure("detail")
        wrapper.__cause__ = informative
        informative.__cause__ = wrapper

        assert find_significant_cause(wrapper) is informative

    def test_depth_bound(self) -> None:
        errors = [TaskExecutionError(f"level {i}") for i in range(MAX_CAUSE_DEPTH + 10)]
        errors.append(TestFailuresError("too deep"))
        error = _chain(*errors)

        assert find_significant_cause(error) is error

    def test_implicit_context_followed(self) -> None:
        specific = TestFailuresError("failing tests")
        try:
            try:
                raise specific
            except TestFailuresError:
                raise BuildFailedError("build failed") from None
        except BuildFailedError as e:
            suppressed = e

        assert find_significant_cause(suppressed) is suppressed

        wrapper = BuildFailedError("build failed")
        wrapper.__context__ = specific
        assert find_significant_cause(wrapper) is specific


class TestCauseOf:
    def test_cause_preferred_over_context(self) -> None:
        error = RuntimeError("outer")
        error.__context__ = ValueError("context")
        error.__cause__ = KeyError("cause")

        assert isinstance(cause_of(error), KeyError)

    def test_suppressed_context_ignored(self) -> None:
        error = RuntimeError("outer")
        error.__context__ = ValueError("context")
        error.__suppress_context__ = True

        assert cause_of(error) is None


class TestDescribeCause:
    def test_type_and_message(self) -> None:
        assert describe_cause(TestFailuresError("There were failing tests")) == (
            "TestFailuresError: There were failing tests"
        )

    def test_empty_message_uses_type_name(self) -> None:
        assert describe_cause(RuntimeError()) == "RuntimeError"
