# tests/unit/gradle/test_failure_report.py
"""Tests for turning Gradle's failure report into an exception chain."""

import pytest

from gradle_mcp.aggregation.causes import find_significant_cause
from gradle_mcp.contracts.errors import (
    BuildFailedError,
    CompilationError,
    DependencyResolutionError,
    GradleFailure,
    ScriptEvaluationError,
    TaskExecutionError,
    TestFailuresError,
)
from gradle_mcp.gradle.failures import classify_failure, extract_failure_sections, parse_failure_chain

FAILING_TESTS_REPORT = """\
> Task :app:test FAILED

MathTest > divides() FAILED
    java.lang.ArithmeticException at MathTest.java:12

3 tests completed, 1 failed

FAILURE: Build failed with an exception.

* What went wrong:
Execution failed for task ':app:test'.
> There were failing tests. See the report at: file:///work/app/build/reports/tests/test/index.html

* Try:
> Run with --stacktrace option to get the stack trace.

BUILD FAILED in 4s
"""

MULTIPLE_FAILURES_REPORT = """\
FAILURE: Build completed with 2 failures.

1: Task failed with an exception.
-----------
* What went wrong:
Execution failed for task ':lib:compileJava'.
> Compilation failed; see the compiler error output for details.

* Try:
> Run with --info option to get more log output.
==============================================================================

2: Task failed with an exception.
-----------
* What went wrong:
Could not resolve all files for configuration ':app:runtimeClasspath'.
> Could not find com.example:missing:1.0.
  Required by:
      project :app

* Try:
> Run with --scan to get full insights.
==============================================================================

BUILD FAILED in 1s
"""


class TestClassifyFailure:
    @pytest.mark.parametrize(
        ("message", "expected"),
        [
            ("There were failing tests. See the report at: file:///x", TestFailuresError),
            ("5 tests completed, 2 failed", TestFailuresError),
            ("Compilation failed; see the compiler error output for details.", CompilationError),
            ("Script compilation error:", ScriptEvaluationError),
            ("A problem occurred evaluating root project 'app'.", ScriptEvaluationError),
            ("A problem occurred configuring project ':lib'.", ScriptEvaluationError),
            ("Could not resolve all files for configuration ':app:runtimeClasspath'.", DependencyResolutionError),
            ("Could not find com.example:missing:1.0.", DependencyResolutionError),
            ("Out of memory", GradleFailure),
        ],
    )
    def test_classification(self, message: str, expected: type[GradleFailure]) -> None:
        failure = classify_failure(message)

        assert type(failure) is expected
        assert str(failure) == message

    def test_task_execution_captures_path(self) -> None:
        failure = classify_failure("Execution failed for task ':app:test'.")

        assert isinstance(failure, TaskExecutionError)
        assert failure.task_path == ":app:test"


class TestExtractFailureSections:
    def test_single_section(self) -> None:
        assert extract_failure_sections(FAILING_TESTS_REPORT) == [
            [
                "Execution failed for task ':app:test'.",
                "There were failing tests. See the report at: "
                "file:///work/app/build/reports/tests/test/index.html",
            ]
        ]

    def test_multiple_sections_with_continuations(self) -> None:
        sections = extract_failure_sections(MULTIPLE_FAILURES_REPORT)

        assert len(sections) == 2
        assert sections[0] == [
            "Execution failed for task ':lib:compileJava'.",
            "Compilation failed; see the compiler error output for details.",
        ]
        assert sections[1][0] == "Could not resolve all files for configuration ':app:runtimeClasspath'."
        assert sections[1][1] == "Could not find com.example:missing:1.0. Required by: project :app"

    def test_no_report(self) -> None:
        assert extract_failure_sections("BUILD FAILED in 1s\n") == []


class TestParseFailureChain:
    def test_chain_for_failing_tests(self) -> None:
        error = parse_failure_chain(FAILING_TESTS_REPORT, 1)

        assert isinstance(error, BuildFailedError)
        assert error.exit_code == 1
        assert str(error) == "Gradle build failed: Execution failed for task ':app:test'."
        assert isinstance(error.__cause__, TaskExecutionError)
        assert isinstance(error.__cause__.__cause__, TestFailuresError)
        assert error.additional_failures == []
        assert isinstance(find_significant_cause(error), TestFailuresError)

    def test_additional_failures_kept(self) -> None:
        error = parse_failure_chain(MULTIPLE_FAILURES_REPORT, 1)

        assert str(error).endswith("(and 1 more failure(s))")
        assert isinstance(find_significant_cause(error), CompilationError)
        (extra,) = error.additional_failures
        assert isinstance(extra, DependencyResolutionError)

    def test_no_sections_uses_exit_code(self) -> None:
        error = parse_failure_chain("something exploded\n", 137)

        assert str(error) == "Gradle build failed with exit code 137"
        assert error.__cause__ is None
