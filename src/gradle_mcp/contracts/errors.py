"""Exception hierarchy for Gradle invocation and build failures.

Two families live here:

- Invocation errors (``BuildInvocationError`` and subclasses): the build
  could not be started or did not finish. These abort an aggregation run
  and surface as a structured error with an empty result tree.
- Failure-chain types (``GradleFailure`` and subclasses): built from
  Gradle's "What went wrong" report after a build fails. They are chained
  through ``__cause__`` from the outermost wrapper down to the root cause,
  and are consumed by ``aggregation.causes.find_significant_cause``.
"""


class GradleMcpError(Exception):
    """Base class for all gradle-mcp errors."""


# =============================================================================
# Invocation errors
# =============================================================================


class BuildInvocationError(GradleMcpError):
    """Raised when a Gradle build cannot be invoked or does not complete.

    Attributes:
        project_path: Project directory the build was run against
    """

    def __init__(self, message: str, *, project_path: str | None = None) -> None:
        self.project_path = project_path
        super().__init__(message)


class GradleConnectionError(BuildInvocationError):
    """Raised when no Gradle launcher can be resolved for a project.

    Covers a project path that is not a directory, a missing wrapper with
    no ``gradle`` on PATH, and launcher processes that fail to start.
    """


# =============================================================================
# Failure-chain types (parsed from build output)
# =============================================================================


class GradleFailure(GradleMcpError):
    """One entry of Gradle's failure report.

    Plain instances are unclassified messages; subclasses mark messages
    that were recognised.
    """


class BuildFailedError(GradleFailure):
    """Outermost wrapper: the build process exited unsuccessfully.

    Attributes:
        exit_code: Process exit code, if the process exited
        additional_failures: Chains of any further reported failures; the
            first one is this error's ``__cause__``
    """

    def __init__(self, message: str, *, exit_code: int | None = None) -> None:
        self.exit_code = exit_code
        self.additional_failures: list[GradleFailure] = []
        super().__init__(message)


class TaskExecutionError(GradleFailure):
    """Wrapper: ``Execution failed for task ':x'.``"""

    def __init__(self, message: str, *, task_path: str | None = None) -> None:
        self.task_path = task_path
        super().__init__(message)


class TestFailuresError(GradleFailure):
    """Specific: ``There were failing tests.``"""

    __test__ = False


class CompilationError(GradleFailure):
    """Specific: source compilation failed."""


class ScriptEvaluationError(GradleFailure):
    """Specific: a build script could not be evaluated."""


class DependencyResolutionError(GradleFailure):
    """Specific: a configuration could not be resolved."""
