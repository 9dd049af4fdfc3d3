"""Gradle build runner.

Runs Gradle as a subprocess in plain console mode. Test events and project
information come back over the build's stdout as marker lines printed by
init scripts (see ``init_scripts``); everything else is ordinary build
output.

Lifecycle of one build:
    connection()    resolve the launcher for the project directory
    Popen           start gradle with tasks, arguments and init scripts
    reader threads  stdout: decode event lines, collect the rest
                    stderr: collect
    wait            optional timeout; on expiry the process is killed
    flush           deliver events still held for a start that never came
    BuildResult     exit code, captured output, parsed failure chain
"""

from __future__ import annotations

import json
import os
import shutil
import subprocess
import tempfile
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any

import structlog

from gradle_mcp.contracts.errors import BuildInvocationError, GradleConnectionError, GradleFailure
from gradle_mcp.contracts.events import BuildEvent, EventListener
from gradle_mcp.gradle.decoder import EventDecodeError, EventDecoder, is_event_line
from gradle_mcp.gradle.failures import parse_failure_chain
from gradle_mcp.gradle.init_scripts import (
    PROJECT_INFO_MARKER,
    PROJECT_INFO_SCRIPT,
    PROJECT_INFO_TASK,
    TEST_EVENTS_SCRIPT,
    write_init_script,
)

logger = structlog.get_logger(__name__)

_WRAPPER_NAME = "gradlew.bat" if os.name == "nt" else "gradlew"


@dataclass(frozen=True, slots=True)
class GradleConnection:
    """A project directory paired with the launcher that builds it."""

    project_dir: Path
    launcher: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class BuildExecutionConfig:
    """What to run.

    Attributes:
        tasks: Task names, in execution order
        arguments: Gradle command-line arguments
        jvm_arguments: JVM arguments for the Gradle daemon/process
        environment_variables: Merged over the server's own environment
    """

    tasks: tuple[str, ...]
    arguments: tuple[str, ...] = ()
    jvm_arguments: tuple[str, ...] = ()
    environment_variables: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class BuildResult:
    """What a finished build produced.

    ``exception`` is the failure chain parsed from Gradle's report and is
    set iff ``success`` is False.
    """

    success: bool
    output: str
    error_output: str
    exception: GradleFailure | None = None
    exit_code: int | None = None


def _drain(stream: IO[str], on_line: Callable[[str], None]) -> None:
    for line in iter(stream.readline, ""):
        on_line(line.rstrip("\r\n"))
    stream.close()


class GradleService:
    """Runs builds and fetches project models for Gradle projects.

    Example:
        service = GradleService(timeout_seconds=600)
        result = service.execute_build("/work/app", BuildExecutionConfig(tasks=("build",)))
    """

    def __init__(
        self,
        *,
        executable: str | None = None,
        timeout_seconds: float | None = None,
        debug: bool = False,
    ) -> None:
        self._executable = executable
        self._timeout_seconds = timeout_seconds
        self._debug = debug

    @property
    def debug(self) -> bool:
        return self._debug

    def resolve_launcher(self, project_dir: Path) -> tuple[str, ...]:
        """Launcher command: explicit executable, project wrapper, then PATH."""
        if self._executable is not None:
            resolved = shutil.which(self._executable)
            if resolved is None:
                raise GradleConnectionError(
                    f"Configured Gradle executable not found: {self._executable}",
                    project_path=str(project_dir),
                )
            return (resolved,)
        wrapper = project_dir / _WRAPPER_NAME
        if wrapper.is_file():
            return (str(wrapper),)
        resolved = shutil.which("gradle")
        if resolved is None:
            raise GradleConnectionError(
                f"No Gradle wrapper in {project_dir} and no 'gradle' on PATH",
                project_path=str(project_dir),
            )
        return (resolved,)

    @contextmanager
    def connection(self, project_path: str | Path) -> Iterator[GradleConnection]:
        """Validate the project directory and resolve its launcher.

        Raises:
            GradleConnectionError: Path is not a directory or no launcher found
        """
        project_dir = Path(project_path).expanduser()
        if not project_dir.is_dir():
            raise GradleConnectionError(
                f"Project path is not a directory: {project_path}",
                project_path=str(project_path),
            )
        project_dir = project_dir.resolve()
        connection = GradleConnection(project_dir=project_dir, launcher=self.resolve_launcher(project_dir))
        logger.debug("Gradle connection opened", project_dir=str(project_dir), launcher=connection.launcher[0])
        try:
            yield connection
        finally:
            logger.debug("Gradle connection closed", project_dir=str(project_dir))

    def execute_build(
        self,
        project_path: str | Path,
        config: BuildExecutionConfig,
        listener: EventListener | None = None,
    ) -> BuildResult:
        """Run a build to completion.

        Args:
            project_path: Gradle project root directory
            config: Tasks, arguments and environment
            listener: Receives decoded test events, from the stdout reader
                thread; events held by the decoder for a late start are
                delivered after the output ends. No test events are
                captured when None

        Returns:
            BuildResult; a failing build is a result, not an exception

        Raises:
            GradleConnectionError: Project or launcher could not be resolved
            BuildInvocationError: Process could not start or timed out
        """
        with self.connection(project_path) as connection, tempfile.TemporaryDirectory(prefix="gradle-mcp-") as tmp:
            init_scripts: list[Path] = []
            decoder: EventDecoder | None = None
            if listener is not None:
                init_scripts.append(write_init_script(Path(tmp), "test-events.gradle", TEST_EVENTS_SCRIPT))
                decoder = EventDecoder()
            return self._run(connection, config, init_scripts, decoder, listener)

    def fetch_project_model(self, project_path: str | Path) -> dict[str, Any]:
        """Fetch build structure, root tasks, environment and project details.

        Returns:
            Mapping with keys ``buildStructure``, ``tasks``, ``environment``
            and ``projectDetails``

        Raises:
            GradleConnectionError: Project or launcher could not be resolved
            BuildInvocationError: The model task failed or printed no model
        """
        config = BuildExecutionConfig(
            tasks=(PROJECT_INFO_TASK,),
            arguments=("--quiet", "--no-configuration-cache"),
        )
        with self.connection(project_path) as connection, tempfile.TemporaryDirectory(prefix="gradle-mcp-") as tmp:
            script = write_init_script(Path(tmp), "project-info.gradle", PROJECT_INFO_SCRIPT)
            result = self._run(connection, config, [script], None, None)

        if not result.success:
            message = str(result.exception) if result.exception is not None else "unknown error"
            raise BuildInvocationError(
                f"Project model task failed: {message}",
                project_path=str(project_path),
            ) from result.exception
        for line in result.output.splitlines():
            if line.startswith(PROJECT_INFO_MARKER):
                model: dict[str, Any] = json.loads(line[len(PROJECT_INFO_MARKER) :])
                return model
        raise BuildInvocationError("Project model task printed no model", project_path=str(project_path))

    def build_command(
        self,
        connection: GradleConnection,
        config: BuildExecutionConfig,
        init_scripts: list[Path],
    ) -> list[str]:
        """Full command line for one build."""
        command = [*connection.launcher, *config.tasks, *config.arguments, "--console=plain"]
        if config.jvm_arguments:
            command.append(f"-Dorg.gradle.jvmargs={' '.join(config.jvm_arguments)}")
        for script in init_scripts:
            command.extend(["--init-script", str(script)])
        return command

    def _run(
        self,
        connection: GradleConnection,
        config: BuildExecutionConfig,
        init_scripts: list[Path],
        decoder: EventDecoder | None,
        listener: EventListener | None,
    ) -> BuildResult:
        command = self.build_command(connection, config, init_scripts)
        env = {**os.environ, **config.environment_variables}
        project_path = str(connection.project_dir)
        logger.info("Executing Gradle build", tasks=list(config.tasks), arguments=list(config.arguments))

        try:
            process = subprocess.Popen(
                command,
                cwd=connection.project_dir,
                env=env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except OSError as e:
            raise BuildInvocationError(f"Failed to start Gradle: {e}", project_path=project_path) from e

        output: list[str] = []
        error_output: list[str] = []

        def deliver(sink: EventListener, events: list[BuildEvent]) -> None:
            for event in events:
                # The reader must keep draining or the build blocks on a full pipe
                try:
                    sink(event)
                except Exception as e:
                    logger.warning("Test event listener failed", error=str(e), exc_info=True)

        def on_stdout(line: str) -> None:
            if decoder is not None and listener is not None and is_event_line(line):
                try:
                    events = decoder.decode(line)
                except EventDecodeError as e:
                    logger.warning("Skipping malformed test event line", error=str(e))
                    return
                deliver(listener, events)
                return
            output.append(line)

        readers = [
            threading.Thread(target=_drain, args=(process.stdout, on_stdout), name="gradle-stdout", daemon=True),
            threading.Thread(target=_drain, args=(process.stderr, error_output.append), name="gradle-stderr", daemon=True),
        ]
        for reader in readers:
            reader.start()

        try:
            exit_code = process.wait(timeout=self._timeout_seconds)
        except subprocess.TimeoutExpired as e:
            process.kill()
            process.wait()
            for reader in readers:
                reader.join()
            logger.error("Gradle build timed out", timeout_seconds=self._timeout_seconds, tasks=list(config.tasks))
            raise BuildInvocationError(
                f"Gradle build timed out after {self._timeout_seconds} seconds",
                project_path=project_path,
            ) from e
        for reader in readers:
            reader.join()
        if decoder is not None and listener is not None:
            deliver(listener, decoder.flush())

        stdout_text = "\n".join(output)
        stderr_text = "\n".join(error_output)
        if self._debug:
            logger.debug("Gradle build output", stdout=stdout_text, stderr=stderr_text)

        if exit_code == 0:
            logger.info("Gradle build succeeded", tasks=list(config.tasks))
            return BuildResult(success=True, output=stdout_text, error_output=stderr_text, exit_code=exit_code)

        failure = parse_failure_chain(f"{stdout_text}\n{stderr_text}", exit_code)
        logger.warning("Gradle build failed", tasks=list(config.tasks), exit_code=exit_code, error=str(failure))
        return BuildResult(
            success=False,
            output=stdout_text,
            error_output=stderr_text,
            exception=failure,
            exit_code=exit_code,
        )
