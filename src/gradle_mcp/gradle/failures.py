"""Parse Gradle's failure report into an exception chain.

A failed build ends with one or more sections like:

    * What went wrong:
    Execution failed for task ':app:test'.
    > There were failing tests. See the report at: file:///.../index.html

The headline and every ``>`` line below it become one exception each,
chained through ``__cause__`` from outermost (headline) to innermost, under
a ``BuildFailedError`` for the whole build. Each message is classified
into the failure-chain types so the significant cause can be found later.
"""

import re

from gradle_mcp.contracts.errors import (
    BuildFailedError,
    CompilationError,
    DependencyResolutionError,
    GradleFailure,
    ScriptEvaluationError,
    TaskExecutionError,
    TestFailuresError,
)

_SECTION_START = "* What went wrong:"
# A section ends at the next "* Try:"/"* Where:"/... heading or the build summary
_SECTION_END = re.compile(r"^(?:\* \w|BUILD FAILED|FAILURE:|={3,}|-{3,}|\d+: Task failed)")
_TASK_PATH = re.compile(r"Execution failed for task '([^']+)'")

# Ordered: first match wins
_CLASSIFIERS: tuple[tuple[re.Pattern[str], type[GradleFailure]], ...] = (
    (re.compile(r"there were failing tests|tests? completed, \d+ failed", re.IGNORECASE), TestFailuresError),
    (
        re.compile(
            r"script compilation error|problem occurred evaluating|problem occurred configuring",
            re.IGNORECASE,
        ),
        ScriptEvaluationError,
    ),
    (re.compile(r"compilation (?:failed|error)|compiler error", re.IGNORECASE), CompilationError),
    (
        re.compile(r"could not resolve|could not find .+:.+|dependency resolution", re.IGNORECASE),
        DependencyResolutionError,
    ),
)


def classify_failure(message: str) -> GradleFailure:
    """Build the failure-chain exception matching one report message."""
    task_match = _TASK_PATH.search(message)
    if task_match is not None:
        return TaskExecutionError(message, task_path=task_match.group(1))
    for pattern, failure_type in _CLASSIFIERS:
        if pattern.search(message):
            return failure_type(message)
    return GradleFailure(message)


def extract_failure_sections(output: str) -> list[list[str]]:
    """Messages of every "What went wrong" section, headline first."""
    sections: list[list[str]] = []
    current: list[str] | None = None
    for raw in output.splitlines():
        line = raw.strip()
        if line == _SECTION_START:
            current = []
            sections.append(current)
            continue
        if current is None:
            continue
        if _SECTION_END.match(line):
            current = None
            continue
        if not line:
            continue
        if line.startswith(">"):
            current.append(line.lstrip("> ").strip())
        elif current:
            # Continuation of a wrapped message
            current[-1] = f"{current[-1]} {line}"
        else:
            current.append(line)
    return [section for section in sections if section]


def _chain(messages: list[str]) -> GradleFailure:
    failures = [classify_failure(message) for message in messages]
    for outer, inner in zip(failures, failures[1:]):
        outer.__cause__ = inner
    return failures[0]


def parse_failure_chain(output: str, exit_code: int | None) -> BuildFailedError:
    """Build the exception chain describing why a build failed.

    Args:
        output: Combined build stdout and stderr
        exit_code: Process exit code, if the process exited

    Returns:
        BuildFailedError whose ``__cause__`` is the first reported failure.
        Further sections are kept on ``additional_failures``.
    """
    sections = extract_failure_sections(output)
    if not sections:
        return BuildFailedError(f"Gradle build failed with exit code {exit_code}", exit_code=exit_code)

    headline = sections[0][0]
    suffix = f" (and {len(sections) - 1} more failure(s))" if len(sections) > 1 else ""
    error = BuildFailedError(f"Gradle build failed: {headline}{suffix}", exit_code=exit_code)
    error.__cause__ = _chain(sections[0])
    error.additional_failures = [_chain(section) for section in sections[1:]]
    return error
