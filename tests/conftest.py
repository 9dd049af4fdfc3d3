# tests/conftest.py
"""Shared test fixtures and helpers.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/

Tests never launch a real Gradle build. Aggregator tests replay scripted
event streams (tests/helpers/events.py); runner tests use a fake ``gradlew``
shell script written into a temporary project directory.
"""

import os
import stat
from collections.abc import Callable
from pathlib import Path

import pytest
from hypothesis import Phase, Verbosity, settings

from gradle_mcp.contracts import AggregationOptions
from gradle_mcp.gradle.service import GradleService
from tests.helpers.events import EventScript

settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Load profile from environment, default to "ci"
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


@pytest.fixture
def script() -> EventScript:
    return EventScript()


@pytest.fixture
def unlimited() -> AggregationOptions:
    """Options keeping every (non-noise) line of failed tests."""
    return AggregationOptions(max_log_lines=0)


@pytest.fixture
def fake_gradle_project(tmp_path: Path) -> Callable[[str], Path]:
    """Factory writing a project whose ``gradlew`` runs the given shell body.

    The script receives Gradle's command line as "$@".
    """
    if os.name == "nt":
        pytest.skip("fake gradlew is a POSIX shell script")

    def make(body: str) -> Path:
        project = tmp_path / "project"
        project.mkdir(exist_ok=True)
        wrapper = project / "gradlew"
        wrapper.write_text("#!/bin/sh\n" + body + "\n", encoding="utf-8")
        wrapper.chmod(wrapper.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return project

    return make


@pytest.fixture
def service() -> GradleService:
    return GradleService(timeout_seconds=30)
