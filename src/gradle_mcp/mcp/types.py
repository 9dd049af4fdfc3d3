# src/gradle_mcp/mcp/types.py
"""TypedDict definitions for MCP tool response payloads.

At runtime these are plain dicts and serialize identically via
json.dumps(); mypy uses them to verify that response structures match.

Naming:
  - {Noun}Record   -- items in a list
  - {Noun}Info     -- one category of project information
  - {Noun}Response -- complete tool payloads

``total=False`` + ``Required[]`` where keys are conditionally present
(project info only carries the categories that were requested and fetched).
"""

from typing import Required, TypedDict

# ══════════════════════════════════════════════════════════════════════════════
# Project information
# ══════════════════════════════════════════════════════════════════════════════


class SubprojectRecord(TypedDict):
    """One project of a multi-project build."""

    name: str
    path: str
    is_root: bool


class BuildStructureInfo(TypedDict):
    """Root project and subprojects of the build."""

    root_project_name: str
    root_project_path_gradle: str
    build_identifier_path: str
    subprojects: list[SubprojectRecord]


class TaskRecord(TypedDict):
    """A task of the root project."""

    name: str
    path: str
    description: str | None


class EnvironmentInfo(TypedDict):
    """Gradle and JVM the build runs with."""

    gradle_version: str
    java_home: str
    jvm_arguments: list[str]


class ProjectDetailsInfo(TypedDict):
    """Root project details."""

    name: str
    path: str
    description: str | None
    build_script_path: str | None


class ProjectInfoResponse(TypedDict, total=False):
    """Payload of ``get_gradle_project_info``."""

    requested_path: Required[str]
    build_structure: BuildStructureInfo
    tasks: list[TaskRecord]
    environment: EnvironmentInfo
    root_project_details: ProjectDetailsInfo
    errors: list[str]


# ══════════════════════════════════════════════════════════════════════════════
# Test runs
# ══════════════════════════════════════════════════════════════════════════════


class ResultNodeRecord(TypedDict):
    """One node of ``test_hierarchy`` (see ``ResultNode.to_dict``)."""

    display_name: str
    type: str
    outcome: str
    failure_message: str | None
    output_lines: list[str]
    children: list["ResultNodeRecord"]


class RunTestsResponse(TypedDict):
    """Payload of ``run_gradle_tests`` when the build ran."""

    tasks_executed: list[str]
    arguments: list[str]
    environment_variables: dict[str, str]
    test_hierarchy: list[ResultNodeRecord]
    success: bool
    notes: str | None


class RunTestsErrorResponse(TypedDict):
    """Payload of ``run_gradle_tests`` when the build could not be invoked."""

    error: str
    message: str | None
    success: bool
    tasks_executed: list[str]
    arguments: list[str]
    environment_variables: dict[str, str]
    test_hierarchy: list[ResultNodeRecord]
    notes: str | None
    details: str | None
