"""Significant-cause resolution for failed builds.

When a whole build fails, the exception that reaches us is usually a
generic wrapper ("build failed with exit code 1") around a task wrapper
("Execution failed for task ':test'") around the actual reason
("There were failing tests", "Compilation failed"). This module walks the
chain to find the reason worth reporting.

Cause chains are not trusted to be acyclic: the walk keeps an identity set
of visited exceptions and a hard depth bound.
"""

from gradle_mcp.contracts.errors import (
    BuildFailedError,
    BuildInvocationError,
    CompilationError,
    DependencyResolutionError,
    ScriptEvaluationError,
    TaskExecutionError,
    TestFailuresError,
)

MAX_CAUSE_DEPTH = 20

# Finding one of these ends the search.
SPECIFIC_FAILURE_TYPES: tuple[type[BaseException], ...] = (
    TestFailuresError,
    CompilationError,
    ScriptEvaluationError,
    DependencyResolutionError,
)

# Never reported while anything else is available.
WRAPPER_FAILURE_TYPES: tuple[type[BaseException], ...] = (
    BuildFailedError,
    TaskExecutionError,
    BuildInvocationError,
)


def cause_of(error: BaseException) -> BaseException | None:
    """Next link of a cause chain.

    Explicit chaining (``raise ... from``) wins; implicit context is used
    unless it was suppressed with ``from None``.
    """
    if error.__cause__ is not None:
        return error.__cause__
    if error.__suppress_context__:
        return None
    return error.__context__


def find_significant_cause(error: BaseException) -> BaseException:
    """Return the most specific, informative exception in ``error``'s chain.

    Walks ``error``, its cause, its cause's cause, ...:

    - a SPECIFIC_FAILURE_TYPES instance is returned immediately
    - anything that is not a WRAPPER_FAILURE_TYPES instance becomes the
      best answer so far, and the walk continues in case a more specific
      cause is nested deeper
    - revisiting an exception (a cycle) or going deeper than
      MAX_CAUSE_DEPTH stops the walk with the best answer so far

    Args:
        error: Outermost exception of the chain

    Returns:
        The significant cause, or ``error`` itself when the chain holds
        nothing but wrappers.
    """
    best: BaseException | None = None
    visited: set[int] = set()
    current: BaseException | None = error
    depth = 0

    while current is not None:
        if id(current) in visited or depth > MAX_CAUSE_DEPTH:
            break
        visited.add(id(current))

        if isinstance(current, SPECIFIC_FAILURE_TYPES):
            return current
        if not isinstance(current, WRAPPER_FAILURE_TYPES):
            best = current

        current = cause_of(current)
        depth += 1

    return best if best is not None else error


def describe_cause(error: BaseException) -> str:
    """``TypeName: message`` for notes; the type name alone when empty."""
    message = str(error).strip()
    if not message:
        return type(error).__name__
    return f"{type(error).__name__}: {message}"
