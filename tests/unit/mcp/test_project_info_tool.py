# tests/unit/mcp/test_project_info_tool.py
"""Tests for the get_gradle_project_info tool logic."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import pytest

from gradle_mcp.contracts import InfoCategory
from gradle_mcp.contracts.errors import BuildInvocationError, GradleConnectionError
from gradle_mcp.mcp.tools.project_info import get_project_info, resolve_categories

MODEL: dict[str, Any] = {
    "buildStructure": {"rootProjectName": "app", "rootProjectPath": ":", "subprojects": []},
    "tasks": [{"name": "build", "path": ":build", "group": "build", "description": "Builds"}],
    "environment": {"gradleVersion": "8.7", "javaHome": "/jdk", "jvmArguments": ["-Xmx2g"]},
    "projectDetails": {"name": "app", "path": ":", "description": None, "buildScript": "/work/build.gradle"},
}


class StubService:
    def __init__(self, model: dict[str, Any] | None = None, *, error: Exception | None = None) -> None:
        self._model = model
        self._error = error
        self.fetches = 0
        self.connections = 0

    @contextmanager
    def connection(self, project_path: str | Path) -> Iterator[None]:
        self.connections += 1
        if isinstance(self._error, GradleConnectionError):
            raise self._error
        yield None

    def fetch_project_model(self, project_path: str | Path) -> dict[str, Any]:
        self.fetches += 1
        if self._error is not None:
            raise self._error
        assert self._model is not None
        return self._model


class TestResolveCategories:
    def test_none_means_all(self) -> None:
        assert resolve_categories(None) == list(InfoCategory)

    def test_empty_means_none(self) -> None:
        assert resolve_categories([]) == []

    @pytest.mark.parametrize("name", ["buildStructure", "BUILD_STRUCTURE", "buildstructure", '"buildStructure"'])
    def test_name_normalization(self, name: str) -> None:
        assert resolve_categories([name]) == [InfoCategory.BUILD_STRUCTURE]

    def test_invalid_names_ignored_and_order_fixed(self) -> None:
        assert resolve_categories(["tasks", "bogus", "environment", "tasks"]) == [
            InfoCategory.TASKS,
            InfoCategory.ENVIRONMENT,
        ]


class TestGetProjectInfo:
    def test_all_categories(self) -> None:
        response = get_project_info(StubService(MODEL), "/work")  # type: ignore[arg-type]

        assert response["requested_path"] == "/work"
        assert response["build_structure"] == MODEL["buildStructure"]
        assert response["tasks"] == MODEL["tasks"]
        assert response["environment"] == MODEL["environment"]
        assert response["root_project_details"] == MODEL["projectDetails"]
        assert "errors" not in response

    def test_subset(self) -> None:
        response = get_project_info(StubService(MODEL), "/work", ["tasks"])  # type: ignore[arg-type]

        assert set(response) == {"requested_path", "tasks"}

    def test_empty_request_only_validates_path(self) -> None:
        service = StubService(MODEL)

        response = get_project_info(service, "/work", [])  # type: ignore[arg-type]

        assert response == {"requested_path": "/work"}
        assert service.fetches == 0
        assert service.connections == 1

    def test_empty_request_with_bad_path(self) -> None:
        service = StubService(error=GradleConnectionError("Project path is not a directory: /nope"))

        response = get_project_info(service, "/nope", [])  # type: ignore[arg-type]

        assert response["errors"] == [
            "Gradle connection failed for '/nope': Project path is not a directory: /nope",
        ]

    def test_category_missing_from_model(self) -> None:
        model = {key: value for key, value in MODEL.items() if key != "environment"}

        response = get_project_info(StubService(model), "/work", ["environment", "tasks"])  # type: ignore[arg-type]

        assert response["tasks"] == MODEL["tasks"]
        assert response["errors"] == ["Failed to fetch environment info: not reported by the build"]

    def test_model_failure_reported_per_category(self) -> None:
        service = StubService(error=BuildInvocationError("Project model task failed: boom"))

        response = get_project_info(service, "/work", ["buildStructure", "projectDetails"])  # type: ignore[arg-type]

        assert response["errors"] == [
            "Failed to fetch build structure: Project model task failed: boom",
            "Failed to fetch project details: Project model task failed: boom",
        ]
        assert "build_structure" not in response
