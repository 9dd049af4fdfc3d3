"""Adapter exposing one Gradle test run as a build event source."""

from __future__ import annotations

from pathlib import Path

from gradle_mcp.contracts.events import BuildOutcome, EventListener
from gradle_mcp.gradle.service import BuildExecutionConfig, BuildResult, GradleService


class GradleTestRun:
    """Runs the configured build once, reporting test events to a listener.

    Implements ``BuildEventSource``. Exceptions from connecting to or
    starting the build propagate out of ``run``; a build that ran and
    failed is reported through the returned ``BuildOutcome``.
    """

    __test__ = False

    def __init__(self, service: GradleService, project_path: str | Path, config: BuildExecutionConfig) -> None:
        self._service = service
        self._project_path = project_path
        self._config = config
        self.result: BuildResult | None = None

    def run(self, listener: EventListener) -> BuildOutcome:
        self.result = self._service.execute_build(self._project_path, self._config, listener)
        return BuildOutcome(success=self.result.success, failure=self.result.exception)
